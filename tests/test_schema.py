"""Tests for schema checker — proves all structural errors are reported together."""

import pytest

from conftest import CONFIG_ADDRESS, make_document
from rollup_registry.engine.schema import (
    THANOS_L1_REQUIRED_CONTRACTS,
    THANOS_L2_REQUIRED_CONTRACTS,
    SchemaChecker,
)
from rollup_registry.models.results import SchemaError


@pytest.fixture(scope="module")
def checker() -> SchemaChecker:
    return SchemaChecker()


def _thanos_contracts() -> tuple[dict, dict]:
    l1 = {name: "0x" + f"{i + 1:040x}" for i, name in enumerate(THANOS_L1_REQUIRED_CONTRACTS)}
    l1["SystemConfig"] = CONFIG_ADDRESS
    l2 = {name: "0x" + f"{i + 100:040x}" for i, name in enumerate(THANOS_L2_REQUIRED_CONTRACTS)}
    return l1, l2


class TestBaseSchema:
    def test_valid_document(self, checker: SchemaChecker) -> None:
        result = checker.validate(make_document())
        assert result.valid
        assert result.errors == []

    def test_missing_required_field(self, checker: SchemaChecker) -> None:
        document = make_document()
        del document["name"]
        result = checker.validate(document)
        assert not result.valid
        assert any("'name' is a required property" in e.message for e in result.errors)

    def test_not_an_object(self, checker: SchemaChecker) -> None:
        result = checker.validate(["not", "a", "record"])
        assert not result.valid

    def test_bad_address_pattern_has_path(self, checker: SchemaChecker) -> None:
        document = make_document(l1Contracts={"SystemConfig": "0x1234"})
        result = checker.validate(document)
        assert [e.path for e in result.errors] == ["/l1Contracts/SystemConfig"]

    def test_unknown_enum_value(self, checker: SchemaChecker) -> None:
        result = checker.validate(make_document(rollupType="validium"))
        assert [e.path for e in result.errors] == ["/rollupType"]

    def test_bad_date_time_format(self, checker: SchemaChecker) -> None:
        result = checker.validate(make_document(createdAt="yesterday"))
        assert [e.path for e in result.errors] == ["/createdAt"]

    def test_all_errors_collected(self, checker: SchemaChecker) -> None:
        document = make_document(l1ChainId=0, rollupType="plasma")
        del document["description"]
        result = checker.validate(document)
        paths = {e.path for e in result.errors}
        assert {"/", "/l1ChainId", "/rollupType"} <= paths

    def test_error_string_format(self) -> None:
        assert str(SchemaError(path="/name", message="bad")) == "/name: bad"


class TestStakingCondition:
    def test_candidate_without_tx_hash_fails(self, checker: SchemaChecker) -> None:
        document = make_document(staking={"isCandidate": True, "candidateAddress": CONFIG_ADDRESS})
        result = checker.validate(document)
        assert not result.valid
        assert any("registrationTxHash" in e.message for e in result.errors)

    def test_candidate_with_registration_passes(self, checker: SchemaChecker) -> None:
        document = make_document(staking={
            "isCandidate": True,
            "registrationTxHash": "0x" + "ab" * 32,
            "candidateAddress": CONFIG_ADDRESS,
        })
        assert checker.validate(document).valid

    def test_non_candidate_needs_nothing_else(self, checker: SchemaChecker) -> None:
        assert checker.validate(make_document(staking={"isCandidate": False})).valid


class TestStackContracts:
    def test_thanos_missing_contracts_named(self, checker: SchemaChecker) -> None:
        document = make_document(stack={"name": "thanos", "version": "1.0.0"})
        result = checker.validate(document)
        assert not result.valid
        messages = [e.message for e in result.errors]
        assert (
            "Missing required L1 contract 'OptimismPortal' for thanos optimistic rollup"
            in messages
        )
        assert any("'L2StandardBridge'" in m for m in messages)
        assert "/l1Contracts/OptimismPortal" in [e.path for e in result.errors]
        # SystemConfig and NativeToken are present
        expected = len(THANOS_L1_REQUIRED_CONTRACTS) - 1 + len(THANOS_L2_REQUIRED_CONTRACTS) - 1
        assert len(result.errors) == expected

    def test_thanos_complete_passes(self, checker: SchemaChecker) -> None:
        l1, l2 = _thanos_contracts()
        document = make_document(
            stack={"name": "thanos", "version": "1.0.0"}, l1Contracts=l1, l2Contracts=l2,
        )
        assert checker.validate(document).valid

    def test_other_stack_not_conditional(self, checker: SchemaChecker) -> None:
        document = make_document(
            rollupType="zk", stack={"name": "thanos", "version": "1.0.0"},
        )
        assert checker.validate(document).valid

    def test_conditional_pass_waits_for_clean_base(self, checker: SchemaChecker) -> None:
        document = make_document(stack={"name": "thanos", "version": "1.0.0"})
        del document["description"]
        result = checker.validate(document)
        assert not any("Missing required L1 contract" in e.message for e in result.errors)
