"""Tests for the record view — proves malformed documents degrade instead of raising."""

from conftest import CONFIG_ADDRESS, CREATED_TS, make_document
from rollup_registry.models.record import Operation, RollupRecord
from rollup_registry.models.results import CheckResult, ErrorCategory, Failure


class TestRollupRecord:
    def test_accessors(self) -> None:
        record = RollupRecord.from_document(make_document())
        assert record.l1_chain_id == 11155111
        assert record.config_address == CONFIG_ADDRESS
        assert record.stack_name == "custom"
        assert record.is_candidate is False
        assert record.expected_signature_timestamp(Operation.REGISTER) == CREATED_TS

    def test_non_mapping_document(self) -> None:
        record = RollupRecord.from_document(["not", "a", "dict"])
        assert record.config_address is None
        assert record.l1_contracts == {}
        assert record.expected_signature_timestamp(Operation.UPDATE) is None

    def test_wrong_types_read_as_none(self) -> None:
        record = RollupRecord.from_document(make_document(
            l1ChainId="11155111", l1Contracts="0xabc", sequencer=None, staking={"isCandidate": "yes"},
        ))
        assert record.l1_chain_id is None
        assert record.config_address is None
        assert record.sequencer_address is None
        assert record.is_candidate is False

    def test_boolean_is_not_a_chain_id(self) -> None:
        assert RollupRecord.from_document(make_document(l2ChainId=True)).l2_chain_id is None


class TestCheckResult:
    def test_ok(self) -> None:
        result = CheckResult.ok(value=1)
        assert result.valid
        assert result.category is None
        assert result.data == {"value": 1}

    def test_fail_category(self) -> None:
        result = CheckResult.fail(Failure.STALE_UPDATE, "too old")
        assert not result.valid
        assert result.category == ErrorCategory.CONSISTENCY

    def test_every_failure_has_a_category(self) -> None:
        for failure in Failure:
            assert CheckResult.fail(failure, "x").category is not None
