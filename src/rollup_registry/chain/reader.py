"""Chain-state reader — live on-chain facts the registry binds records to.

Every read goes through an injected ChainClient. Without one, reads fail
with RPC_UNAVAILABLE. Transport errors are logged and converted to typed
failures.

Nothing is cached: the sequencer is re-read on every validation run.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from rollup_registry.chain.abi import (
    CANDIDATE_REGISTERED_EVENT,
    LAYER2_MANAGER_ABI,
    REGISTER_CANDIDATE_FUNCTION,
    SYSTEM_CONFIG_ABI,
    decode_event_log,
    decode_function_call,
)
from rollup_registry.models.record import NativeTokenType, RollupRecord
from rollup_registry.models.results import CheckResult, Failure

logger = logging.getLogger(__name__)

RPC_NOT_CONFIGURED = "RPC provider not set. Configure an RPC endpoint first."


class ChainReads(Protocol):
    """The reads ChainStateReader needs; satisfied by ChainClient."""

    def get_code(self, address: str) -> bytes: ...

    def call_view(self, address: str, abi: Any, fn_name: str) -> Any: ...

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Any]: ...

    def get_transaction(self, tx_hash: str) -> Optional[Any]: ...


def _lower(value: Any) -> str:
    return str(value).lower() if value is not None else ""


class ChainStateReader:
    """Reads and cross-checks SystemConfig and staking registry state."""

    def __init__(self, client: Optional[ChainReads] = None) -> None:
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None

    def contract_exists(self, address: str) -> CheckResult:
        if self._client is None:
            return CheckResult.fail(Failure.RPC_UNAVAILABLE, RPC_NOT_CONFIGURED)

        try:
            code = self._client.get_code(address)
        except Exception as exc:
            logger.warning("getCode failed for %s: %s", address, exc)
            return CheckResult.fail(
                Failure.CALL_FAILED,
                f"Failed to check contract existence: {exc}",
            )

        if not code or not any(code):
            return CheckResult.fail(
                Failure.NO_CONTRACT_DEPLOYED,
                f"No contract deployed at address: {address}",
            )
        return CheckResult.ok()

    def read_sequencer_address(self, config_address: str) -> Optional[str]:
        """Current ``unsafeBlockSigner()`` of a SystemConfig, lowercased.

        Returns None on any call or decode failure.
        """
        if self._client is None:
            logger.warning("Cannot read sequencer of %s: %s", config_address, RPC_NOT_CONFIGURED)
            return None
        try:
            signer = self._client.call_view(config_address, SYSTEM_CONFIG_ABI, "unsafeBlockSigner")
        except Exception as exc:
            logger.warning(
                "Failed to get sequencer address from SystemConfig %s: %s",
                config_address, exc,
            )
            return None
        return _lower(signer) or None

    def validate_on_chain_sequencer(self, record: RollupRecord) -> CheckResult:
        """Declared ``sequencer.address`` must equal the on-chain signer."""
        config_address = record.config_address
        if not config_address:
            return CheckResult.fail(
                Failure.NO_CONTRACT_DEPLOYED,
                "SystemConfig address is required for sequencer validation",
            )

        existence = self.contract_exists(config_address)
        if not existence.valid:
            return existence

        on_chain = self.read_sequencer_address(config_address)
        if on_chain is None:
            return CheckResult.fail(
                Failure.CALL_FAILED,
                "Failed to fetch sequencer address from SystemConfig contract",
            )

        declared = _lower(record.sequencer_address)
        if on_chain != declared:
            return CheckResult.fail(
                Failure.SEQUENCER_MISMATCH,
                f"Sequencer address mismatch. OnChain: {on_chain}, Metadata: {declared}",
                on_chain_address=on_chain,
                declared_address=declared,
            )
        return CheckResult.ok(on_chain_address=on_chain)

    def validate_native_token_address(self, record: RollupRecord) -> CheckResult:
        """ERC20 native tokens must match ``SystemConfig.nativeTokenAddress()``."""
        if record.native_token_type != NativeTokenType.ERC20.value:
            return CheckResult.ok()
        declared = record.native_token_l1_address
        if not declared or not record.config_address:
            # Missing fields are structural errors reported elsewhere
            return CheckResult.ok()

        if self._client is None:
            return CheckResult.fail(Failure.RPC_UNAVAILABLE, RPC_NOT_CONFIGURED)

        try:
            on_chain = self._client.call_view(
                record.config_address, SYSTEM_CONFIG_ABI, "nativeTokenAddress"
            )
        except Exception as exc:
            logger.warning("nativeTokenAddress() failed for %s: %s", record.config_address, exc)
            return CheckResult.fail(
                Failure.CALL_FAILED,
                f"Native token address validation failed: {exc}",
            )

        if _lower(on_chain) != declared.lower():
            return CheckResult.fail(
                Failure.NATIVE_TOKEN_MISMATCH,
                f"Native token address mismatch. SystemConfig.nativeTokenAddress(): "
                f"{_lower(on_chain)}, Metadata nativeToken.l1Address: {declared.lower()}",
            )
        return CheckResult.ok()

    def validate_staking_registration(
        self, record: RollupRecord, registry_address: str
    ) -> CheckResult:
        """Verify the candidacy registration transaction end to end.

        Receipt must exist and target the staking registry; the call must be
        ``registerCandidateAddOn`` for this SystemConfig; the emitted
        ``RegisteredCandidateAddOn`` event must name this SystemConfig and
        the declared candidate address.
        """
        if not record.is_candidate:
            return CheckResult.ok()

        tx_hash = record.registration_tx_hash
        candidate = record.candidate_address
        config_address = _lower(record.config_address)
        if not tx_hash or not candidate:
            return CheckResult.fail(
                Failure.TX_NOT_FOUND,
                "Registration transaction hash and candidate address are required "
                "when isCandidate is true",
            )

        if self._client is None:
            return CheckResult.fail(Failure.RPC_UNAVAILABLE, RPC_NOT_CONFIGURED)

        try:
            receipt = self._client.get_transaction_receipt(tx_hash)
            tx = self._client.get_transaction(tx_hash) if receipt else None
        except Exception as exc:
            logger.warning("Transaction lookup failed for %s: %s", tx_hash, exc)
            return CheckResult.fail(
                Failure.CALL_FAILED,
                f"Staking registration validation failed: {exc}",
            )

        if not receipt:
            return CheckResult.fail(Failure.TX_NOT_FOUND, f"Transaction not found: {tx_hash}")

        recipient = receipt.get("to")
        if _lower(recipient) != registry_address.lower():
            return CheckResult.fail(
                Failure.WRONG_RECIPIENT,
                f"Transaction was not sent to Layer2ManagerProxy ({registry_address}), "
                f"got: {recipient}",
            )

        if not tx:
            return CheckResult.fail(
                Failure.TX_NOT_FOUND, f"Transaction details not found: {tx_hash}"
            )

        try:
            call = decode_function_call(LAYER2_MANAGER_ABI, tx.get("input", tx.get("data", b"")))
        except Exception as exc:
            logger.debug("Undecodable call data in %s: %s", tx_hash, exc)
            call = None
        if call is None or call.name != REGISTER_CANDIDATE_FUNCTION:
            got = call.name if call is not None else "unknown"
            return CheckResult.fail(
                Failure.UNEXPECTED_CALL,
                f"Expected {REGISTER_CANDIDATE_FUNCTION} function call, got: {got}",
            )

        rollup_config = call.args["rollupConfig"]
        if _lower(rollup_config) != config_address:
            return CheckResult.fail(
                Failure.PARAM_MISMATCH,
                f"rollupConfig parameter ({rollup_config}) does not match "
                f"SystemConfig address ({record.config_address})",
            )

        event = None
        for log in receipt.get("logs") or []:
            try:
                event = decode_event_log(LAYER2_MANAGER_ABI, CANDIDATE_REGISTERED_EVENT, log)
            except Exception as exc:
                logger.debug("Skipping undecodable log in %s: %s", tx_hash, exc)
                event = None
            if event is not None:
                break

        if event is None:
            return CheckResult.fail(
                Failure.EVENT_NOT_FOUND,
                f"{CANDIDATE_REGISTERED_EVENT} event not found in transaction logs",
            )

        if _lower(event["candidateAddOn"]) != candidate.lower():
            return CheckResult.fail(
                Failure.CANDIDATE_MISMATCH,
                f"candidateAddress ({candidate}) does not match event candidateAddOn "
                f"({event['candidateAddOn']})",
            )
        if _lower(event["rollupConfig"]) != config_address:
            return CheckResult.fail(
                Failure.CANDIDATE_MISMATCH,
                f"Event rollupConfig ({event['rollupConfig']}) does not match "
                f"SystemConfig address ({record.config_address})",
            )

        return CheckResult.ok(candidate_address=_lower(event["candidateAddOn"]))
