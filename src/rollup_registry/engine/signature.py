"""Signature authorizer — binds a record change to the live sequencer key.

A registry change is authorized when one key satisfies three facts at once:
1. It recovers from ``metadata.signature`` over a supported message format.
2. It is the declared ``metadata.signedBy``.
3. It is the sequencer the SystemConfig contract names on-chain right now.

Message formats are strategies tried in order. The legacy format carries
no timestamp; the timestamped format appends the unix time the record
itself declares (``createdAt`` for register, ``lastUpdated`` for update).
Only that single expected timestamp is tried.

Timestamped signatures additionally have a bounded age and must agree
exactly with the record's declared timestamps.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from eth_account import Account
from eth_account.messages import encode_defunct

from rollup_registry.chain.reader import ChainStateReader
from rollup_registry.engine.schema import SIGNATURE_PATTERN
from rollup_registry.engine.timestamps import validate_timestamp_consistency
from rollup_registry.models.record import Operation, RollupRecord, unix_to_iso
from rollup_registry.models.results import CheckResult, Failure

logger = logging.getLogger(__name__)

MESSAGE_HEADER = "Tokamak Rollup Registry"

# Age window for timestamped signatures, in seconds
MAX_SIGNATURE_AGE = 86_400
MAX_FUTURE_SKEW = 300

_SIGNATURE_PATTERN = re.compile(SIGNATURE_PATTERN)


def build_message(
    record: RollupRecord,
    operation: Operation,
    timestamp: Optional[int] = None,
) -> str:
    """The exact UTF-8 text a sequencer signs for *operation* on *record*."""
    config_address = (record.config_address or "").lower()
    message = (
        f"{MESSAGE_HEADER}\n"
        f"L1 Chain ID: {record.get('l1ChainId')}\n"
        f"L2 Chain ID: {record.get('l2ChainId')}\n"
        f"Operation: {operation.value}\n"
        f"SystemConfig: {config_address}"
    )
    if timestamp is not None:
        message += f"\nTimestamp: {timestamp}"
    return message


def recover_signer(message: str, signature: str) -> str:
    """Recover the lowercase address that signed *message* (EIP-191)."""
    return Account.recover_message(encode_defunct(text=message), signature=signature).lower()


@dataclass(frozen=True)
class SignedMessage:
    """One candidate message for recovery."""
    text: str
    timestamp: Optional[int] = None


class LegacyMessage:
    """Untimestamped format, kept for records signed before timestamps."""
    name = "legacy"

    def build(self, record: RollupRecord, operation: Operation) -> Optional[SignedMessage]:
        return SignedMessage(text=build_message(record, operation))


class TimestampedMessage:
    """Current format: the legacy text plus the record's declared unix time."""
    name = "timestamped"

    def build(self, record: RollupRecord, operation: Operation) -> Optional[SignedMessage]:
        timestamp = record.expected_signature_timestamp(operation)
        if timestamp is None:
            return None
        return SignedMessage(text=build_message(record, operation, timestamp), timestamp=timestamp)


DEFAULT_FORMATS: tuple = (LegacyMessage(), TimestampedMessage())


class SignatureAuthorizer:
    """Verifies ``metadata.signature`` for a register or update.

    Usage:
        authorizer = SignatureAuthorizer(reader)
        result = authorizer.validate(record, Operation.UPDATE)
    """

    def __init__(
        self,
        reader: ChainStateReader,
        formats: Sequence = DEFAULT_FORMATS,
        now: Optional[datetime] = None,
    ) -> None:
        self._reader = reader
        self._formats = tuple(formats)
        self._now = now

    def validate(
        self,
        record: RollupRecord,
        operation: Operation,
        now: Optional[datetime] = None,
    ) -> CheckResult:
        on_chain = self._reader.validate_on_chain_sequencer(record)
        if not on_chain.valid:
            return CheckResult.fail(
                on_chain.failure or Failure.CALL_FAILED,
                f"OnChain validation failed: {on_chain.error}",
            )
        on_chain_address = on_chain.data.get("on_chain_address", "")

        signature = record.signature
        if signature is None or not _SIGNATURE_PATTERN.match(signature):
            return CheckResult.fail(Failure.INVALID_SIGNATURE, "Invalid signature format")
        signed_by = (record.signed_by or "").lower()

        if operation == Operation.UPDATE and record.last_updated is None:
            return CheckResult.fail(
                Failure.INVALID_TIMESTAMP,
                "lastUpdated timestamp is required for update operations",
            )

        try:
            selected, recovered = self._recover(record, operation, signature, signed_by)
        except Exception as exc:
            logger.debug("Signature recovery failed: %s", exc)
            return CheckResult.fail(
                Failure.INVALID_SIGNATURE,
                f"Signature verification failed: {exc}",
            )

        if selected is None:
            expected = record.expected_signature_timestamp(operation)
            attempted = (
                f"{expected} ({unix_to_iso(expected)})" if expected is not None else "none"
            )
            return CheckResult.fail(
                Failure.SIGNER_MISMATCH,
                f"Signature verification failed: signature does not recover signedBy "
                f"({signed_by}) under any supported message format. Expected timestamp: "
                f"{attempted}. Please ensure you used the same timestamp for both "
                f"signature generation and metadata fields.",
            )

        if selected.timestamp is not None:
            window = self.check_signature_age(selected.timestamp, now)
            if not window.valid:
                return window
            consistency = validate_timestamp_consistency(record, selected.timestamp, operation)
            if not consistency.valid:
                return consistency

        if recovered != on_chain_address:
            return CheckResult.fail(
                Failure.NOT_ON_CHAIN_SEQUENCER,
                f"Signature verification failed: signer ({recovered}) is not the "
                f"onchain sequencer ({on_chain_address})",
            )

        return CheckResult.ok(
            recovered_address=recovered,
            timestamp=selected.timestamp,
        )

    def _recover(
        self,
        record: RollupRecord,
        operation: Operation,
        signature: str,
        signed_by: str,
    ) -> tuple[Optional[SignedMessage], Optional[str]]:
        recovered = None
        for fmt in self._formats:
            message = fmt.build(record, operation)
            if message is None:
                continue
            recovered = recover_signer(message.text, signature)
            if recovered == signed_by:
                logger.debug("Signature matched %s format", fmt.name)
                return message, recovered
        return None, recovered

    def check_signature_age(
        self, timestamp: int, now: Optional[datetime] = None
    ) -> CheckResult:
        """Accept ``-MAX_FUTURE_SKEW <= age < MAX_SIGNATURE_AGE`` seconds."""
        current = now or self._now or datetime.now(timezone.utc)
        age = int(current.timestamp()) - timestamp

        if age >= MAX_SIGNATURE_AGE:
            return CheckResult.fail(
                Failure.SIGNATURE_EXPIRED,
                f"Signature expired: signature is {age // 3600} hours old, maximum "
                f"allowed is {MAX_SIGNATURE_AGE // 3600} hours. Please generate a new "
                f"signature.",
            )
        if age < -MAX_FUTURE_SKEW:
            return CheckResult.fail(
                Failure.SIGNATURE_IN_FUTURE,
                "Signature timestamp is too far in the future. Please check your "
                "system time.",
            )
        return CheckResult.ok(age=age)
