"""Result values for validation checks.

Checks never raise on expected bad input. Single-outcome checks return a
``CheckResult``; checks that can find many problems return ``list[str]``.
The pipeline concatenates them into one ``ValidationVerdict``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional


class ErrorCategory(str, enum.Enum):
    """Error taxonomy for reported findings."""
    STRUCTURAL = "structural"
    AUTHORIZATION = "authorization"
    CHAIN_STATE = "chain_state"
    CONSISTENCY = "consistency"
    IMMUTABILITY = "immutability"


class Failure(str, enum.Enum):
    """Typed failure codes carried by a failed CheckResult."""
    # Chain state
    RPC_UNAVAILABLE = "rpc_unavailable"
    NO_CONTRACT_DEPLOYED = "no_contract_deployed"
    CALL_FAILED = "call_failed"
    SEQUENCER_MISMATCH = "sequencer_mismatch"
    NATIVE_TOKEN_MISMATCH = "native_token_mismatch"
    TX_NOT_FOUND = "tx_not_found"
    WRONG_RECIPIENT = "wrong_recipient"
    UNEXPECTED_CALL = "unexpected_call"
    PARAM_MISMATCH = "param_mismatch"
    EVENT_NOT_FOUND = "event_not_found"
    CANDIDATE_MISMATCH = "candidate_mismatch"
    # Authorization
    INVALID_SIGNATURE = "invalid_signature"
    SIGNATURE_EXPIRED = "signature_expired"
    SIGNATURE_IN_FUTURE = "signature_in_future"
    SIGNER_MISMATCH = "signer_mismatch"
    NOT_ON_CHAIN_SEQUENCER = "not_on_chain_sequencer"
    # Temporal / consistency
    INVALID_TIMESTAMP = "invalid_timestamp"
    TIMESTAMP_MISMATCH = "timestamp_mismatch"
    STALE_UPDATE = "stale_update"
    ALREADY_REGISTERED = "already_registered"
    NOT_REGISTERED = "not_registered"
    PREVIOUS_UNAVAILABLE = "previous_unavailable"


_CATEGORY: dict[Failure, ErrorCategory] = {
    Failure.RPC_UNAVAILABLE: ErrorCategory.CHAIN_STATE,
    Failure.NO_CONTRACT_DEPLOYED: ErrorCategory.CHAIN_STATE,
    Failure.CALL_FAILED: ErrorCategory.CHAIN_STATE,
    Failure.SEQUENCER_MISMATCH: ErrorCategory.CHAIN_STATE,
    Failure.NATIVE_TOKEN_MISMATCH: ErrorCategory.CHAIN_STATE,
    Failure.TX_NOT_FOUND: ErrorCategory.CHAIN_STATE,
    Failure.WRONG_RECIPIENT: ErrorCategory.CHAIN_STATE,
    Failure.UNEXPECTED_CALL: ErrorCategory.CHAIN_STATE,
    Failure.PARAM_MISMATCH: ErrorCategory.CHAIN_STATE,
    Failure.EVENT_NOT_FOUND: ErrorCategory.CHAIN_STATE,
    Failure.CANDIDATE_MISMATCH: ErrorCategory.CHAIN_STATE,
    Failure.INVALID_SIGNATURE: ErrorCategory.AUTHORIZATION,
    Failure.SIGNATURE_EXPIRED: ErrorCategory.AUTHORIZATION,
    Failure.SIGNATURE_IN_FUTURE: ErrorCategory.AUTHORIZATION,
    Failure.SIGNER_MISMATCH: ErrorCategory.AUTHORIZATION,
    Failure.NOT_ON_CHAIN_SEQUENCER: ErrorCategory.AUTHORIZATION,
    Failure.INVALID_TIMESTAMP: ErrorCategory.STRUCTURAL,
    Failure.TIMESTAMP_MISMATCH: ErrorCategory.AUTHORIZATION,
    Failure.STALE_UPDATE: ErrorCategory.CONSISTENCY,
    Failure.ALREADY_REGISTERED: ErrorCategory.CONSISTENCY,
    Failure.NOT_REGISTERED: ErrorCategory.CONSISTENCY,
    Failure.PREVIOUS_UNAVAILABLE: ErrorCategory.CHAIN_STATE,
}


def category_of(failure: Failure) -> ErrorCategory:
    return _CATEGORY[failure]


@dataclass(frozen=True)
class CheckResult:
    """Outcome of a single check.

    - valid=True: check passed; ``data`` may carry values read along the way
      (e.g. the on-chain sequencer address).
    - valid=False: ``failure`` says what kind, ``error`` says it in words.
    """
    valid: bool
    error: str = ""
    failure: Optional[Failure] = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **data: Any) -> "CheckResult":
        return cls(valid=True, data=dict(data))

    @classmethod
    def fail(cls, failure: Failure, error: str, **data: Any) -> "CheckResult":
        return cls(valid=False, error=error, failure=failure, data=dict(data))

    @property
    def category(self) -> Optional[ErrorCategory]:
        return category_of(self.failure) if self.failure is not None else None


@dataclass(frozen=True)
class SchemaError:
    """One structural finding, located by a JSON-pointer-like path."""
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path or '/'}: {self.message}"


@dataclass(frozen=True)
class SchemaResult:
    valid: bool
    errors: list[SchemaError] = field(default_factory=list)


@dataclass(frozen=True)
class ValidationVerdict:
    """Final accept/reject outcome of one pipeline run.

    No partial credit: ``valid`` is True only when ``errors`` is empty.
    ``warnings`` never affect the verdict.
    """
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    operation: Optional[str] = None
    network: Optional[str] = None
