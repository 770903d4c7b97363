"""Schema checker — document shape, formats, and stack-conditional contracts.

Two passes:
1. A base JSON Schema (Draft 7) covering required fields, types, enums,
   address/hash patterns and URI/date-time formats. Every violation is
   collected; nothing fails fast.
2. Once the base pass is clean, a lookup keyed by (rollupType, stack.name)
   adds stack-specific required L1/L2 contract sets. Missing entries are
   reported by contract name.
"""

from __future__ import annotations

from typing import Any

from jsonschema import Draft7Validator, FormatChecker

from rollup_registry.models.record import RollupKind, RollupRecord
from rollup_registry.models.results import SchemaError, SchemaResult


ADDRESS_PATTERN = "^0x[a-fA-F0-9]{40}$"
TX_HASH_PATTERN = "^0x[a-fA-F0-9]{64}$"
SIGNATURE_PATTERN = "^0x[a-fA-F0-9]{130}$"

_ADDRESS = {"type": "string", "pattern": ADDRESS_PATTERN}
_URI = {"type": "string", "format": "uri"}
_DATE_TIME = {"type": "string", "format": "date-time"}
_COMPONENT_STATUS = {"enum": ["active", "inactive", "maintenance", "none"]}

ROLLUP_RECORD_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": [
        "l1ChainId", "l2ChainId", "name", "description", "rollupType", "stack",
        "rpcUrl", "nativeToken", "status", "createdAt", "lastUpdated",
        "l1Contracts", "l2Contracts", "bridges", "explorers", "sequencer",
        "staking", "networkConfig", "metadata",
    ],
    "properties": {
        "l1ChainId": {"type": "integer", "minimum": 1},
        "l2ChainId": {"type": "integer", "minimum": 1},
        "name": {"type": "string", "minLength": 1},
        "description": {"type": "string", "minLength": 1},
        "logo": _URI,
        "website": _URI,
        "rollupType": {"type": "string", "enum": [k.value for k in RollupKind]},
        "stack": {
            "type": "object",
            "required": ["name", "version"],
            "properties": {
                "name": {"type": "string"},
                "version": {"type": "string"},
                "zkProofSystem": {"type": "string", "enum": ["plonk", "stark", "groth16", "fflonk"]},
            },
        },
        "rpcUrl": _URI,
        "wsUrl": _URI,
        "nativeToken": {
            "type": "object",
            "required": ["type", "symbol", "name", "decimals"],
            "properties": {
                "type": {"enum": ["eth", "erc20"]},
                "symbol": {"type": "string", "minLength": 1},
                "name": {"type": "string", "minLength": 1},
                "decimals": {"type": "integer", "minimum": 0, "maximum": 18},
                "l1Address": _ADDRESS,
                "logoUrl": _URI,
                "coingeckoId": {"type": "string"},
            },
        },
        "status": {
            "type": "string",
            "enum": ["active", "inactive", "maintenance", "deprecated", "shutdown"],
        },
        "createdAt": _DATE_TIME,
        "lastUpdated": _DATE_TIME,
        "l1Contracts": {
            "type": "object",
            "required": ["SystemConfig"],
            "properties": {"SystemConfig": _ADDRESS},
            "additionalProperties": True,
        },
        "l2Contracts": {
            "type": "object",
            "required": ["NativeToken"],
            "properties": {"NativeToken": _ADDRESS},
            "additionalProperties": True,
        },
        "bridges": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "type", "url", "supportedTokens"],
                "properties": {
                    "name": {"type": "string"},
                    "type": {"enum": ["native", "canonical", "third-party"]},
                    "url": _URI,
                    "status": _COMPONENT_STATUS,
                    "supportedTokens": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["symbol", "l1Address", "l2Address", "decimals"],
                            "properties": {
                                "symbol": {"type": "string"},
                                "l1Address": _ADDRESS,
                                "l2Address": _ADDRESS,
                                "decimals": {"type": "integer", "minimum": 0},
                                "isNativeToken": {"type": "boolean"},
                                "isWrappedETH": {"type": "boolean"},
                            },
                        },
                    },
                },
            },
        },
        "explorers": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "url", "type"],
                "properties": {
                    "name": {"type": "string"},
                    "url": _URI,
                    "type": {"enum": ["blockscout", "etherscan", "custom"]},
                    "status": _COMPONENT_STATUS,
                    "apiUrl": _URI,
                },
            },
        },
        "supportResources": {
            "type": "object",
            "properties": {
                "statusPageUrl": _URI,
                "supportContactUrl": _URI,
                "documentationUrl": _URI,
                "communityUrl": _URI,
                "helpCenterUrl": _URI,
                "announcementUrl": _URI,
            },
        },
        "sequencer": {
            "type": "object",
            "required": ["address"],
            "properties": {
                "address": _ADDRESS,
                "batcherAddress": _ADDRESS,
                "proposerAddress": _ADDRESS,
                "aggregatorAddress": _ADDRESS,
                "trustedSequencer": _ADDRESS,
            },
        },
        "staking": {
            "type": "object",
            "required": ["isCandidate"],
            "properties": {
                "isCandidate": {"type": "boolean"},
                "candidateRegisteredAt": _DATE_TIME,
                "candidateStatus": {
                    "enum": ["not_registered", "pending", "active", "suspended", "terminated"],
                },
                "registrationTxHash": {"type": "string", "pattern": TX_HASH_PATTERN},
                "candidateAddress": _ADDRESS,
                "rollupConfigAddress": _ADDRESS,
                "stakingServiceName": {"type": "string"},
            },
            "if": {"properties": {"isCandidate": {"const": True}}},
            "then": {"required": ["isCandidate", "registrationTxHash", "candidateAddress"]},
        },
        "networkConfig": {
            "type": "object",
            "required": ["blockTime", "gasLimit"],
            "properties": {
                "blockTime": {"type": "number", "minimum": 1},
                "gasLimit": {"type": "string"},
                "baseFeePerGas": {"type": "string"},
                "priorityFeePerGas": {"type": "string"},
                "batchSubmissionFrequency": {"type": "number", "minimum": 1},
                "outputRootFrequency": {"type": "number", "minimum": 1},
                "batchTimeout": {"type": "number"},
                "trustedAggregatorTimeout": {"type": "number"},
                "forceBatchTimeout": {"type": "number"},
            },
        },
        "withdrawalConfig": {
            "type": "object",
            "required": ["challengePeriod", "expectedWithdrawalDelay", "monitoringInfo"],
            "properties": {
                "challengePeriod": {"type": "number", "minimum": 1},
                "expectedWithdrawalDelay": {"type": "number", "minimum": 1},
                "monitoringInfo": {
                    "type": "object",
                    "required": ["l2OutputOracleAddress"],
                    "properties": {
                        "l2OutputOracleAddress": _ADDRESS,
                        "outputProposedEventTopic": {"type": "string"},
                    },
                },
            },
        },
        "shutdown": {
            "type": "object",
            "required": ["isPlanned", "reason"],
            "properties": {
                "isPlanned": {"type": "boolean"},
                "plannedShutdownDate": _DATE_TIME,
                "actualShutdownDate": _DATE_TIME,
                "reason": {"type": "string"},
                "migrationInfo": {
                    "type": "object",
                    "properties": {
                        "targetChain": {"type": "string"},
                        "migrationDeadline": {"type": "string"},
                        "migrationGuide": {"type": "string"},
                    },
                },
                "stakingImpact": {
                    "type": "object",
                    "properties": {
                        "candidateRemovalDate": _DATE_TIME,
                        "finalRewardDate": _DATE_TIME,
                        "penaltyApplied": {"type": "boolean"},
                    },
                },
            },
        },
        "metadata": {
            "type": "object",
            "required": ["version", "signature", "signedBy"],
            "properties": {
                "version": {"type": "string"},
                "signature": {"type": "string", "pattern": SIGNATURE_PATTERN},
                "signedBy": _ADDRESS,
            },
        },
    },
}


THANOS_L1_REQUIRED_CONTRACTS: tuple[str, ...] = (
    "SystemConfig", "ProxyAdmin", "AddressManager", "SuperchainConfig",
    "DisputeGameFactory", "L1CrossDomainMessenger", "L1ERC721Bridge",
    "L1StandardBridge", "OptimismMintableERC20Factory", "OptimismPortal",
    "AnchorStateRegistry", "DelayedWETH", "L1UsdcBridge", "L2OutputOracle",
    "Mips", "PermissionedDelayedWETH", "PreimageOracle", "ProtocolVersions",
    "SafeProxyFactory", "SafeSingleton", "SystemOwnerSafe",
)

THANOS_L2_REQUIRED_CONTRACTS: tuple[str, ...] = (
    "NativeToken", "WETH", "L2ToL1MessagePasser", "DeployerWhitelist",
    "L2CrossDomainMessenger", "GasPriceOracle", "L2StandardBridge",
    "SequencerFeeVault", "OptimismMintableERC20Factory", "L1BlockNumber",
    "L1Block", "GovernanceToken", "LegacyMessagePasser", "L2ERC721Bridge",
    "OptimismMintableERC721Factory", "ProxyAdmin", "BaseFeeVault",
    "L1FeeVault", "ETH",
)

# (rollupType, stack.name) -> (required L1 contracts, required L2 contracts)
STACK_REQUIRED_CONTRACTS: dict[tuple[str, str], tuple[tuple[str, ...], tuple[str, ...]]] = {
    (RollupKind.OPTIMISTIC.value, "thanos"): (
        THANOS_L1_REQUIRED_CONTRACTS,
        THANOS_L2_REQUIRED_CONTRACTS,
    ),
}


def _pointer(segments: Any) -> str:
    return "/" + "/".join(str(s) for s in segments) if segments else "/"


class SchemaChecker:
    """Validates an untyped document. Never raises."""

    def __init__(self, schema: dict[str, Any] = ROLLUP_RECORD_SCHEMA) -> None:
        Draft7Validator.check_schema(schema)
        self._validator = Draft7Validator(schema, format_checker=FormatChecker())

    def validate(self, document: Any) -> SchemaResult:
        errors = [
            SchemaError(path=_pointer(error.absolute_path), message=error.message)
            for error in sorted(
                self._validator.iter_errors(document),
                key=lambda e: [str(p) for p in e.absolute_path],
            )
        ]
        if errors:
            return SchemaResult(valid=False, errors=errors)

        errors = self.validate_stack_contracts(RollupRecord.from_document(document))
        return SchemaResult(valid=not errors, errors=errors)

    def validate_stack_contracts(self, record: RollupRecord) -> list[SchemaError]:
        """Second pass: contract sets required by the declared stack."""
        key = (record.rollup_type or "", record.stack_name or "")
        required = STACK_REQUIRED_CONTRACTS.get(key)
        if required is None:
            return []

        l1_required, l2_required = required
        label = f"{record.stack_name} {record.rollup_type} rollup"
        errors: list[SchemaError] = []
        for contract in l1_required:
            if not record.l1_contracts.get(contract):
                errors.append(SchemaError(
                    path=f"/l1Contracts/{contract}",
                    message=f"Missing required L1 contract '{contract}' for {label}",
                ))
        for contract in l2_required:
            if not record.l2_contracts.get(contract):
                errors.append(SchemaError(
                    path=f"/l2Contracts/{contract}",
                    message=f"Missing required L2 contract '{contract}' for {label}",
                ))
        return errors
