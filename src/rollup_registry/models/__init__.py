"""Core data models for the rollup registry."""

from rollup_registry.models.record import (
    NativeTokenType,
    Operation,
    RollupKind,
    RollupRecord,
    RollupStatus,
)
from rollup_registry.models.results import (
    CheckResult,
    ErrorCategory,
    Failure,
    SchemaError,
    SchemaResult,
    ValidationVerdict,
)

__all__ = [
    "NativeTokenType",
    "Operation",
    "RollupKind",
    "RollupRecord",
    "RollupStatus",
    "CheckResult",
    "ErrorCategory",
    "Failure",
    "SchemaError",
    "SchemaResult",
    "ValidationVerdict",
]
