"""Validation engine — schema, addresses, signatures, history, orchestration."""

from rollup_registry.engine.address import AddressChecker
from rollup_registry.engine.schema import SchemaChecker
from rollup_registry.engine.signature import SignatureAuthorizer
from rollup_registry.engine.pipeline import ValidationPipeline

__all__ = ["AddressChecker", "SchemaChecker", "SignatureAuthorizer", "ValidationPipeline"]
