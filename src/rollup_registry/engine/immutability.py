"""Immutability checker — protected identity fields never change on update."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from rollup_registry.models.record import SYSTEM_CONFIG_KEY, RollupRecord, get_nested_value


# (document path, display name)
IMMUTABLE_FIELDS: tuple[tuple[str, str], ...] = (
    ("l1ChainId", "L1 Chain ID"),
    ("l2ChainId", "L2 Chain ID"),
    (f"l1Contracts.{SYSTEM_CONFIG_KEY}", "SystemConfig address"),
    ("rollupType", "Rollup type"),
    ("stack.name", "Stack name"),
    ("createdAt", "Creation timestamp"),
)

# Compared case-insensitively
ADDRESS_FIELDS = frozenset({f"l1Contracts.{SYSTEM_CONFIG_KEY}"})


def _changed(path: str, existing: Any, proposed: Any) -> bool:
    if path in ADDRESS_FIELDS and isinstance(existing, str) and isinstance(proposed, str):
        return existing.lower() != proposed.lower()
    return existing != proposed


def _check_staking(record: RollupRecord, previous: RollupRecord) -> list[str]:
    """Once a candidacy transaction is on record, it and its result are fixed."""
    errors: list[str] = []
    if not (previous.is_candidate and previous.registration_tx_hash):
        return errors

    if record.registration_tx_hash != previous.registration_tx_hash:
        errors.append(
            "Staking registration transaction hash cannot be changed during update. "
            f"Existing: {previous.registration_tx_hash}, New: {record.registration_tx_hash}"
        )
    if (record.candidate_address or "").lower() != (previous.candidate_address or "").lower():
        errors.append(
            "Staking candidate address cannot be changed during update. "
            f"Existing: {previous.candidate_address}, New: {record.candidate_address}"
        )
    return errors


def validate_immutable_fields(
    record: RollupRecord,
    previous: Optional[Mapping[str, Any]],
) -> list[str]:
    """Diff *record* against the previously accepted document.

    Returns list of errors, one per changed protected field. Empty list = valid.
    No previous document means nothing to protect yet.
    """
    if previous is None:
        return []

    try:
        if not isinstance(previous, Mapping):
            raise TypeError(
                f"previous record must be a JSON object, got {type(previous).__name__}"
            )

        errors: list[str] = []
        for path, name in IMMUTABLE_FIELDS:
            existing = get_nested_value(previous, path)
            proposed = record.get(path)
            if existing is not None and _changed(path, existing, proposed):
                errors.append(
                    f"Immutable field '{name}' cannot be changed during update. "
                    f"Existing: {existing}, New: {proposed}"
                )

        errors.extend(_check_staking(record, RollupRecord.from_document(previous)))
        return errors
    except (TypeError, AttributeError, KeyError, ValueError) as exc:
        return [f"Failed to validate immutable fields: {exc}"]
