"""Thin web3 client — the only module that talks to an RPC endpoint.

Exposes exactly the reads the registry consumes: bytecode lookup, a
zero-argument view call, and transaction / receipt lookup by hash.
Transport exceptions propagate; ChainStateReader converts them to typed
failures.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from web3 import HTTPProvider, Web3
from web3.exceptions import TransactionNotFound


class ChainClient:
    """Read-only access to one L1 network over JSON-RPC.

    Usage:
        client = ChainClient("https://ethereum-sepolia-rpc.publicnode.com")
        code = client.get_code("0x...")
    """

    def __init__(self, rpc_url: str, timeout: Optional[float] = None) -> None:
        request_kwargs = {"timeout": timeout} if timeout else None
        self._w3 = Web3(HTTPProvider(rpc_url, request_kwargs=request_kwargs))
        self.rpc_url = rpc_url

    def get_code(self, address: str) -> bytes:
        return bytes(self._w3.eth.get_code(Web3.to_checksum_address(address)))

    def call_view(
        self, address: str, abi: Sequence[Mapping[str, Any]], fn_name: str
    ) -> Any:
        contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=list(abi)
        )
        return getattr(contract.functions, fn_name)().call()

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Mapping[str, Any]]:
        try:
            return self._w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None

    def get_transaction(self, tx_hash: str) -> Optional[Mapping[str, Any]]:
        try:
            return self._w3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return None
