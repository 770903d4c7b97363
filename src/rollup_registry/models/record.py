"""Rollup record — a read-only view over one registry JSON document.

The registry stores one document per SystemConfig contract. Validation
receives the document untyped (straight from JSON), so this view never
assumes the shape is correct: every accessor degrades to ``None`` or an
empty mapping when a field is missing or has the wrong type, and each
check still runs after the schema check has failed.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional


class Operation(str, enum.Enum):
    """Admissible change kinds."""
    REGISTER = "register"
    UPDATE = "update"


class RollupKind(str, enum.Enum):
    """Declared rollup technology class."""
    OPTIMISTIC = "optimistic"
    ZK = "zk"
    SOVEREIGN = "sovereign"


class NativeTokenType(str, enum.Enum):
    """L2 native token kind. ETH is the base asset; ERC20 lives on L1."""
    ETH = "eth"
    ERC20 = "erc20"


class RollupStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    DEPRECATED = "deprecated"
    SHUTDOWN = "shutdown"


# Document keys for the identity anchor contracts
SYSTEM_CONFIG_KEY = "SystemConfig"
NATIVE_TOKEN_KEY = "NativeToken"

RECORD_FILE_EXTENSION = ".json"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 date-time string into an aware UTC datetime.

    Accepts the trailing ``Z`` designator. Naive values are taken as UTC.
    Returns None for anything that is not a parseable string.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_unix_seconds(value: Any) -> Optional[int]:
    """Whole unix seconds for an ISO 8601 string (floored), or None."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return math.floor(parsed.timestamp())


def unix_to_iso(seconds: int) -> str:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def get_nested_value(obj: Any, path: str) -> Any:
    """Resolve a dot-separated path, returning None on any missing segment."""
    current = obj
    for key in path.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return None
        current = current[key]
    return current


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _integer(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


@dataclass(frozen=True)
class RollupRecord:
    """Typed accessors over a registry document.

    The raw document is kept as-is in ``document``; nothing is copied
    or normalised, so diffs against a previous version see exactly what
    was submitted.
    """
    document: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_document(cls, document: Any) -> "RollupRecord":
        return cls(document=_mapping(document))

    def get(self, path: str) -> Any:
        return get_nested_value(self.document, path)

    # --- identity ---------------------------------------------------------

    @property
    def l1_chain_id(self) -> Optional[int]:
        return _integer(self.document.get("l1ChainId"))

    @property
    def l2_chain_id(self) -> Optional[int]:
        return _integer(self.document.get("l2ChainId"))

    @property
    def name(self) -> Optional[str]:
        return _text(self.document.get("name"))

    @property
    def rollup_type(self) -> Optional[str]:
        return _text(self.document.get("rollupType"))

    @property
    def stack_name(self) -> Optional[str]:
        return _text(self.get("stack.name"))

    @property
    def l1_contracts(self) -> Mapping[str, Any]:
        return _mapping(self.document.get("l1Contracts"))

    @property
    def l2_contracts(self) -> Mapping[str, Any]:
        return _mapping(self.document.get("l2Contracts"))

    @property
    def config_address(self) -> Optional[str]:
        return _text(self.l1_contracts.get(SYSTEM_CONFIG_KEY))

    # --- temporal ---------------------------------------------------------

    @property
    def created_at(self) -> Optional[str]:
        return _text(self.document.get("createdAt"))

    @property
    def last_updated(self) -> Optional[str]:
        return _text(self.document.get("lastUpdated"))

    # --- operational ------------------------------------------------------

    @property
    def sequencer_address(self) -> Optional[str]:
        return _text(self.get("sequencer.address"))

    @property
    def native_token_type(self) -> Optional[str]:
        return _text(self.get("nativeToken.type"))

    @property
    def native_token_l1_address(self) -> Optional[str]:
        return _text(self.get("nativeToken.l1Address"))

    @property
    def staking(self) -> Mapping[str, Any]:
        return _mapping(self.document.get("staking"))

    @property
    def is_candidate(self) -> bool:
        return self.staking.get("isCandidate") is True

    @property
    def registration_tx_hash(self) -> Optional[str]:
        return _text(self.staking.get("registrationTxHash"))

    @property
    def candidate_address(self) -> Optional[str]:
        return _text(self.staking.get("candidateAddress"))

    # --- authorization ----------------------------------------------------

    @property
    def signature(self) -> Optional[str]:
        return _text(self.get("metadata.signature"))

    @property
    def signed_by(self) -> Optional[str]:
        return _text(self.get("metadata.signedBy"))

    @property
    def schema_version(self) -> Optional[str]:
        return _text(self.get("metadata.version"))

    def expected_signature_timestamp(self, operation: Operation) -> Optional[int]:
        """Unix seconds a timestamped signature must carry for *operation*."""
        if operation == Operation.REGISTER:
            return to_unix_seconds(self.created_at)
        return to_unix_seconds(self.last_updated)
