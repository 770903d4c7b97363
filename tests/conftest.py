"""Shared fixtures: a valid signed record, a sequencer key, a fake chain."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Optional

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import encode_hex

from rollup_registry.chain.reader import ChainStateReader
from rollup_registry.engine.signature import build_message
from rollup_registry.models.record import Operation, RollupRecord

SEQUENCER_KEY = "0x" + "11" * 32
OTHER_KEY = "0x" + "22" * 32
SEQUENCER = Account.from_key(SEQUENCER_KEY).address

CONFIG_ADDRESS = "0x5f5a4f1b7c3d2e9a8b6c4d2e0f1a3b5c7d9e0f1a"
NATIVE_TOKEN_L2 = "0xdeaddeaddeaddeaddeaddeaddeaddeaddead0000"
ERC20_L1 = "0x7a9bb1c6e4f2d0a3b5c7e9f1a2b4c6d8e0f1a2b3"

CREATED_AT = "2025-06-01T11:00:00Z"
CREATED_TS = 1748775600
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

TARGET = f"data/sepolia/{CONFIG_ADDRESS}.json"


def make_document(**overrides: Any) -> dict[str, Any]:
    """A schema-valid, unsigned sepolia record. Top-level keys may be overridden."""
    document: dict[str, Any] = {
        "l1ChainId": 11155111,
        "l2ChainId": 111551119090,
        "name": "Example L2",
        "description": "Example optimistic rollup",
        "rollupType": "optimistic",
        "stack": {"name": "custom", "version": "1.0.0"},
        "rpcUrl": "https://rpc.example-l2.io",
        "nativeToken": {"type": "eth", "symbol": "ETH", "name": "Ether", "decimals": 18},
        "status": "active",
        "createdAt": CREATED_AT,
        "lastUpdated": CREATED_AT,
        "l1Contracts": {"SystemConfig": CONFIG_ADDRESS},
        "l2Contracts": {"NativeToken": NATIVE_TOKEN_L2},
        "bridges": [],
        "explorers": [],
        "sequencer": {"address": SEQUENCER},
        "staking": {"isCandidate": False},
        "networkConfig": {"blockTime": 2, "gasLimit": "30000000"},
        "metadata": {
            "version": "1.0.0",
            "signature": "0x" + "00" * 65,
            "signedBy": SEQUENCER,
        },
    }
    document.update(overrides)
    return document


def sign(
    document: dict[str, Any],
    operation: Operation = Operation.REGISTER,
    key: str = SEQUENCER_KEY,
    timestamp: Optional[int] = None,
    legacy: bool = False,
) -> dict[str, Any]:
    """Return a signed copy of *document*."""
    signed_doc = copy.deepcopy(document)
    record = RollupRecord.from_document(signed_doc)
    if not legacy and timestamp is None:
        timestamp = record.expected_signature_timestamp(operation)
    message = build_message(record, operation, None if legacy else timestamp)
    account = Account.from_key(key)
    signed = account.sign_message(encode_defunct(text=message))
    signed_doc["metadata"]["signature"] = encode_hex(signed.signature)
    signed_doc["metadata"]["signedBy"] = account.address
    return signed_doc


class FakeChainClient:
    """In-memory stand-in for ChainClient."""

    def __init__(self) -> None:
        self.code: dict[str, bytes] = {}
        self.views: dict[tuple[str, str], Any] = {}
        self.receipts: dict[str, Any] = {}
        self.transactions: dict[str, Any] = {}
        self.error: Optional[Exception] = None

    def deploy(self, address: str, sequencer: str = SEQUENCER) -> None:
        self.code[address.lower()] = b"\x60\x80\x60\x40"
        self.views[(address.lower(), "unsafeBlockSigner")] = sequencer

    def get_code(self, address: str) -> bytes:
        if self.error is not None:
            raise self.error
        return self.code.get(address.lower(), b"")

    def call_view(self, address: str, abi: Any, fn_name: str) -> Any:
        if self.error is not None:
            raise self.error
        assert any(entry.get("name") == fn_name for entry in abi)
        key = (address.lower(), fn_name)
        if key not in self.views:
            raise ValueError("execution reverted")
        return self.views[key]

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Any]:
        if self.error is not None:
            raise self.error
        return self.receipts.get(tx_hash)

    def get_transaction(self, tx_hash: str) -> Optional[Any]:
        return self.transactions.get(tx_hash)


@pytest.fixture
def chain() -> FakeChainClient:
    client = FakeChainClient()
    client.deploy(CONFIG_ADDRESS)
    return client


@pytest.fixture
def reader(chain: FakeChainClient) -> ChainStateReader:
    return ChainStateReader(chain)


@pytest.fixture
def document() -> dict[str, Any]:
    return sign(make_document())
