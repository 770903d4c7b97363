"""Temporal consistency — exact signature timestamps and forward-only updates.

All comparisons are on whole unix seconds, so fractional seconds in the
document's ISO strings never matter.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from rollup_registry.models.record import Operation, RollupRecord, to_unix_seconds
from rollup_registry.models.results import CheckResult, Failure


def _mismatch(signature_timestamp: int, field_name: str, field_timestamp: Optional[int]) -> CheckResult:
    return CheckResult.fail(
        Failure.TIMESTAMP_MISMATCH,
        f"Timestamp mismatch: signature timestamp ({signature_timestamp}) must exactly "
        f"match metadata {field_name} timestamp ({field_timestamp}). Please use the same "
        f"timestamp from signature generation for both signature and metadata "
        f"{field_name} field.",
    )


def validate_timestamp_consistency(
    record: RollupRecord,
    signature_timestamp: int,
    operation: Operation,
) -> CheckResult:
    """The signed timestamp must equal the document's declared timestamps.

    register: equal to both ``createdAt`` and ``lastUpdated``.
    update: equal to ``lastUpdated``.
    """
    last_updated = to_unix_seconds(record.last_updated)

    if operation == Operation.REGISTER:
        created_at = to_unix_seconds(record.created_at)
        if created_at is None:
            return CheckResult.fail(
                Failure.INVALID_TIMESTAMP,
                f"Invalid createdAt timestamp: {record.created_at}",
            )
        if signature_timestamp != created_at:
            return _mismatch(signature_timestamp, "createdAt", created_at)
        if last_updated is None and record.last_updated is None:
            # A register may omit lastUpdated; it then defaults to createdAt
            last_updated = created_at
        if signature_timestamp != last_updated:
            return _mismatch(signature_timestamp, "lastUpdated", last_updated)
        return CheckResult.ok()

    if record.last_updated is None:
        return CheckResult.fail(
            Failure.INVALID_TIMESTAMP,
            "lastUpdated timestamp is required for update operations",
        )
    if signature_timestamp != last_updated:
        return _mismatch(signature_timestamp, "lastUpdated", last_updated)
    return CheckResult.ok()


def validate_update_timestamp(
    record: RollupRecord,
    previous: Optional[Mapping[str, Any]],
    operation: Operation,
) -> CheckResult:
    """Check the proposed record against the previously accepted version.

    register: no previous record may exist at this identity.
    update: one must exist, and ``lastUpdated`` must move strictly forward.
    """
    if operation == Operation.REGISTER:
        if previous is not None:
            return CheckResult.fail(
                Failure.ALREADY_REGISTERED,
                f"Register operation failed: a record already exists for "
                f"SystemConfig {record.config_address}",
            )
        return CheckResult.ok()

    if previous is None:
        return CheckResult.fail(
            Failure.NOT_REGISTERED,
            f"Update operation failed: no existing record for SystemConfig "
            f"{record.config_address}",
        )

    previous_value = RollupRecord.from_document(previous).last_updated
    existing = to_unix_seconds(previous_value)
    proposed = to_unix_seconds(record.last_updated)
    if existing is None or proposed is None:
        return CheckResult.fail(
            Failure.INVALID_TIMESTAMP,
            f"Update timestamp validation failed: cannot compare lastUpdated values. "
            f"Existing: {previous_value}, New: {record.last_updated}",
        )

    if proposed <= existing:
        return CheckResult.fail(
            Failure.STALE_UPDATE,
            f"Update timestamp must be after existing timestamp. "
            f"Existing: {previous_value}, New: {record.last_updated}",
        )
    return CheckResult.ok()
