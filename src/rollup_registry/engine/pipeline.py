"""Validation pipeline — runs every check on one proposed record.

Stages, in order:
 1. Network context from the target path (``data/{network}/...``).
 2. Schema.
 3. Operation tag, cross-checked against the record and path.
 4. Filename == lowercase SystemConfig address + ``.json``.
 5. Signature authorization for the resolved operation.
 6. Contract and sequencer address formats.
 7. Native token: ERC20 needs a valid l1Address matching SystemConfig.
 8. Network / chain-id plausibility.
 9. Staking registration, when the network has a staking registry.
10. Previous record: existence rule for the operation; on update,
    immutable fields and forward-only ``lastUpdated``.

Every stage runs regardless of earlier failures. Errors are concatenated
in stage order; the verdict is valid only if no stage reported anything.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import PurePath
from typing import Any, Mapping, Optional

from rollup_registry.chain.reader import ChainStateReader
from rollup_registry.config import NETWORKS
from rollup_registry.engine.address import AddressChecker
from rollup_registry.engine.immutability import validate_immutable_fields
from rollup_registry.engine.network import (
    extract_network_from_path,
    parse_operation_tag,
    validate_network_chain_id,
)
from rollup_registry.engine.schema import SchemaChecker
from rollup_registry.engine.signature import SignatureAuthorizer
from rollup_registry.engine.timestamps import validate_update_timestamp
from rollup_registry.models.record import NativeTokenType, Operation, RollupRecord
from rollup_registry.models.results import ValidationVerdict
from rollup_registry.persistence.previous import (
    PreviousRecordSource,
    RecordIdentity,
    RecordSourceError,
)

logger = logging.getLogger(__name__)


def default_staking_registries() -> dict[str, str]:
    return {
        name: config.staking_registry
        for name, config in NETWORKS.items()
        if config.staking_registry
    }


class _Findings:
    """Ordered error and warning accumulator for one run."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def extend(self, stage: str, errors: list[str]) -> None:
        if errors:
            logger.debug("Stage %s: %d error(s)", stage, len(errors))
        self.errors.extend(errors)

    def check(self, stage: str, result: Any) -> None:
        if not result.valid:
            self.extend(stage, [result.error])


class ValidationPipeline:
    """Validates one proposed record against chain state and its history.

    Usage:
        pipeline = ValidationPipeline(ChainStateReader(client), DirectoryRecordSource("."))
        verdict = pipeline.validate(document, "data/sepolia/0xabc....json",
                                    operation_hint="[Update] sepolia 0xAbC... - My L2")
    """

    def __init__(
        self,
        reader: ChainStateReader,
        previous_source: Optional[PreviousRecordSource] = None,
        now: Optional[datetime] = None,
        staking_registries: Optional[Mapping[str, str]] = None,
        schema_checker: Optional[SchemaChecker] = None,
    ) -> None:
        self.reader = reader
        self.previous_source = previous_source
        self.now = now
        self.staking_registries = (
            dict(staking_registries) if staking_registries is not None
            else default_staking_registries()
        )
        self.schema = schema_checker or SchemaChecker()
        self.addresses = AddressChecker()
        self.authorizer = SignatureAuthorizer(reader, now=now)

    def validate(
        self,
        document: Any,
        target: str,
        operation_hint: Optional[str] = None,
        operation: Optional[Operation | str] = None,
    ) -> ValidationVerdict:
        record = RollupRecord.from_document(document)
        findings = _Findings()

        # 1. Network context
        network = extract_network_from_path(target)
        if network is None:
            findings.extend("network", [f"Could not extract network from file path: {target}"])

        # 2. Schema
        schema = self.schema.validate(document)
        findings.extend(
            "schema", [f"Schema validation failed: {error}" for error in schema.errors]
        )

        # 3. Operation tag
        resolved = self._resolve_operation(record, network, operation_hint, operation, findings)

        # 4. Filename
        findings.extend("filename", self._check_filename(record, target))

        # 5. Signature
        findings.check("signature", self.authorizer.validate(record, resolved))

        # 6. Address formats
        findings.extend("addresses", self.addresses.validate_contract_addresses(
            record.l1_contracts, record.l2_contracts, record.sequencer_address,
        ))

        # 7. Native token
        findings.extend("native_token", self._check_native_token_format(record))
        findings.check("native_token", self.reader.validate_native_token_address(record))

        # 8. Network / chain id
        if network is not None:
            findings.extend("chain_id", validate_network_chain_id(network, record.l1_chain_id))

        # 9. Staking registration
        self._check_staking(record, network, findings)

        # 10. Previous record
        self._check_previous(record, network, resolved, findings)

        return ValidationVerdict(
            valid=not findings.errors,
            errors=findings.errors,
            warnings=findings.warnings,
            operation=resolved.value,
            network=network,
        )

    def _resolve_operation(
        self,
        record: RollupRecord,
        network: Optional[str],
        operation_hint: Optional[str],
        explicit: Optional[Operation | str],
        findings: _Findings,
    ) -> Operation:
        """Tag (when valid) > explicit operation > register."""
        explicit_op = None
        if explicit is not None:
            try:
                explicit_op = Operation(explicit)
            except ValueError:
                findings.extend("operation", [
                    f"Unknown operation: {explicit}. Expected one of: "
                    + ", ".join(o.value for o in Operation)
                ])

        if operation_hint is None:
            return explicit_op or Operation.REGISTER

        tag = parse_operation_tag(operation_hint)
        if not tag.valid:
            findings.extend("operation_tag", [tag.error])
            return explicit_op or Operation.REGISTER

        errors: list[str] = []
        config_address = (record.config_address or "").lower()
        if tag.address.lower() != config_address:
            errors.append(
                f"PR title SystemConfig address ({tag.address}) does not match "
                f"metadata SystemConfig address ({record.config_address})"
            )
        if network is not None and tag.network != network:
            errors.append(
                f"PR title network ({tag.network}) does not match file path network ({network})"
            )
        if tag.name != record.name:
            errors.append(
                f"PR title rollup name ({tag.name}) does not match metadata name ({record.name})"
            )
        if explicit_op is not None and explicit_op != tag.operation:
            errors.append(
                f"Requested operation ({explicit_op.value}) does not match PR title "
                f"operation ({tag.operation.value})"
            )
        findings.extend("operation_tag", errors)
        return tag.operation

    def _check_filename(self, record: RollupRecord, target: str) -> list[str]:
        config_address = record.config_address
        if not config_address:
            return []
        filename = PurePath(target.replace("\\", "/")).name
        if self.addresses.validate_filename(filename, config_address):
            return []
        return [f"Filename should be {config_address.lower()}.json, got {filename}"]

    def _check_native_token_format(self, record: RollupRecord) -> list[str]:
        if record.native_token_type != NativeTokenType.ERC20.value:
            return []
        l1_address = record.native_token_l1_address
        if not l1_address:
            return ["ERC20 native token requires l1Address"]
        if not self.addresses.is_valid_address(l1_address):
            return [f"Invalid ERC20 native token L1 address: {l1_address}"]
        return []

    def _check_staking(
        self, record: RollupRecord, network: Optional[str], findings: _Findings
    ) -> None:
        if not record.is_candidate:
            return
        registry = self.staking_registries.get(network or "")
        if registry is None:
            findings.warnings.append(
                f"No staking registry configured for network {network}; "
                f"skipping candidate registration check"
            )
            return
        findings.check("staking", self.reader.validate_staking_registration(record, registry))

    def _check_previous(
        self,
        record: RollupRecord,
        network: Optional[str],
        operation: Operation,
        findings: _Findings,
    ) -> None:
        # Register problems here are reported as warnings; update problems block.
        def report(message: str) -> None:
            if operation == Operation.UPDATE:
                findings.extend("previous", [message])
            else:
                findings.warnings.append(message)

        if network is None or not record.config_address:
            report("Cannot locate previous record: network or SystemConfig address unknown")
            return
        if self.previous_source is None:
            report("Previous record source not configured; history checks skipped")
            return

        identity = RecordIdentity(network=network, config_address=record.config_address)
        try:
            previous = self.previous_source.fetch_previous(identity)
        except RecordSourceError as exc:
            logger.warning("Previous record lookup failed for %s: %s", identity.storage_key, exc)
            report(f"Failed to load previous record {identity.storage_key}: {exc}")
            return

        findings.check("history", validate_update_timestamp(record, previous, operation))
        if operation == Operation.UPDATE:
            findings.extend("immutability", validate_immutable_fields(record, previous))
