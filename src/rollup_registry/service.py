"""Registry service — file-level facade over the validation pipeline.

Reads a record file, works out which L1 network it belongs to, connects
a chain reader for that network, and runs the requested checks. All
operations return a ServiceResult; nothing here raises on a bad record.

Network resolution: the ``data/{network}/`` path segment first, then the
record's ``l1ChainId``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

from rollup_registry.chain.client import ChainClient
from rollup_registry.chain.reader import ChainReads, ChainStateReader
from rollup_registry.config import (
    NETWORKS,
    RpcConfig,
    get_registry_base_url,
    get_rpc_config,
    network_for_chain_id,
)
from rollup_registry.engine.network import extract_network_from_path
from rollup_registry.engine.pipeline import ValidationPipeline
from rollup_registry.engine.schema import SchemaChecker
from rollup_registry.engine.signature import SignatureAuthorizer, build_message
from rollup_registry.models.record import Operation, RollupRecord
from rollup_registry.persistence.previous import PreviousRecordSource, RemoteRecordSource

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


def default_client_factory(rpc: RpcConfig) -> ChainReads:
    return ChainClient(rpc.url, timeout=rpc.timeout)


class RegistryService:
    """Validates registry record files.

    Usage:
        service = RegistryService()
        result = service.validate_file("data/sepolia/0xabc....json",
                                       pr_title="[Rollup] sepolia 0xAbC... - My L2")
    """

    def __init__(
        self,
        previous_source: Optional[PreviousRecordSource] = None,
        client_factory: Callable[[RpcConfig], ChainReads] = default_client_factory,
        now: Optional[datetime] = None,
        use_remote_previous: bool = True,
    ) -> None:
        if previous_source is None and use_remote_previous:
            previous_source = RemoteRecordSource(get_registry_base_url())
        self._previous_source = previous_source
        self._client_factory = client_factory
        self._now = now

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @staticmethod
    def load_document(path: Path | str) -> tuple[Any, list[str]]:
        """Read and parse a record file. Returns (document, errors)."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            return None, [f"Cannot read file {path}: {exc}"]
        try:
            return json.loads(text), []
        except json.JSONDecodeError as exc:
            return None, [f"Invalid JSON in {path}: {exc}"]

    def resolve_network(self, path: Path | str, document: Any) -> Optional[str]:
        network = extract_network_from_path(str(path))
        if network in NETWORKS:
            return network
        by_chain = network_for_chain_id(RollupRecord.from_document(document).l1_chain_id)
        return by_chain.name if by_chain else None

    def reader_for(self, network: Optional[str]) -> ChainStateReader:
        """Chain reader for *network*; unconfigured when the network is unknown."""
        if network is None:
            logger.warning("Unknown network; on-chain checks will report RPC unavailable")
            return ChainStateReader(None)
        rpc = get_rpc_config(network)
        logger.info(
            "Using %s RPC for %s: %s",
            "custom" if rpc.is_custom else "public", network, rpc.url,
        )
        return ChainStateReader(self._client_factory(rpc))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def validate_file(
        self,
        path: Path | str,
        pr_title: Optional[str] = None,
        operation: Optional[Operation] = None,
    ) -> ServiceResult:
        """Full pipeline run for one record file."""
        document, errors = self.load_document(path)
        if errors:
            return ServiceResult(success=False, errors=errors)

        network = self.resolve_network(path, document)
        pipeline = ValidationPipeline(
            self.reader_for(network),
            self._previous_source,
            now=self._now,
        )
        verdict = pipeline.validate(
            document, str(path), operation_hint=pr_title, operation=operation,
        )
        return ServiceResult(
            success=verdict.valid,
            errors=list(verdict.errors),
            warnings=list(verdict.warnings),
            data={"operation": verdict.operation, "network": verdict.network},
        )

    def validate_schema_file(self, path: Path | str) -> ServiceResult:
        document, errors = self.load_document(path)
        if errors:
            return ServiceResult(success=False, errors=errors)
        result = SchemaChecker().validate(document)
        return ServiceResult(success=result.valid, errors=[str(e) for e in result.errors])

    def validate_onchain_file(self, path: Path | str) -> ServiceResult:
        """Sequencer, native token and staking checks only."""
        document, errors = self.load_document(path)
        if errors:
            return ServiceResult(success=False, errors=errors)

        record = RollupRecord.from_document(document)
        network = self.resolve_network(path, document)
        reader = self.reader_for(network)

        results = [
            reader.validate_on_chain_sequencer(record),
            reader.validate_native_token_address(record),
        ]
        warnings: list[str] = []
        registry = NETWORKS[network].staking_registry if network else None
        if record.is_candidate and registry:
            results.append(reader.validate_staking_registration(record, registry))
        elif record.is_candidate:
            warnings.append(f"No staking registry configured for network {network}")

        errors = [r.error for r in results if not r.valid]
        data = {"network": network}
        data.update(results[0].data)
        return ServiceResult(success=not errors, errors=errors, warnings=warnings, data=data)

    def validate_signature_file(self, path: Path | str, operation: Operation) -> ServiceResult:
        document, errors = self.load_document(path)
        if errors:
            return ServiceResult(success=False, errors=errors)

        record = RollupRecord.from_document(document)
        reader = self.reader_for(self.resolve_network(path, document))
        result = SignatureAuthorizer(reader, now=self._now).validate(record, operation)
        if not result.valid:
            return ServiceResult(success=False, errors=[result.error])
        return ServiceResult(success=True, data=dict(result.data))

    def signing_message(
        self,
        path: Path | str,
        operation: Operation,
        timestamp: Optional[int] = None,
    ) -> ServiceResult:
        """The message a sequencer must sign for this record.

        Without an explicit timestamp, the record's own declared time for
        *operation* is used.
        """
        document, errors = self.load_document(path)
        if errors:
            return ServiceResult(success=False, errors=errors)

        record = RollupRecord.from_document(document)
        if not record.config_address:
            return ServiceResult(success=False, errors=["l1Contracts.SystemConfig is required"])
        if timestamp is None:
            timestamp = record.expected_signature_timestamp(operation)
        if timestamp is None:
            field_name = "createdAt" if operation == Operation.REGISTER else "lastUpdated"
            return ServiceResult(
                success=False, errors=[f"{field_name} must be a valid ISO 8601 timestamp"],
            )
        return ServiceResult(
            success=True,
            data={"message": build_message(record, operation, timestamp), "timestamp": timestamp},
        )
