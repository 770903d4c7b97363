"""Tests for signature authorizer — proves the three-way signer binding and age window."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import (
    CONFIG_ADDRESS,
    CREATED_TS,
    NOW,
    OTHER_KEY,
    SEQUENCER,
    FakeChainClient,
    make_document,
    sign,
)
from rollup_registry.chain.reader import ChainStateReader
from rollup_registry.engine.signature import (
    MAX_FUTURE_SKEW,
    MAX_SIGNATURE_AGE,
    SignatureAuthorizer,
    build_message,
    recover_signer,
)
from rollup_registry.models.record import Operation, RollupRecord
from rollup_registry.models.results import ErrorCategory, Failure


def _at(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


@pytest.fixture
def authorizer(reader: ChainStateReader) -> SignatureAuthorizer:
    return SignatureAuthorizer(reader, now=NOW)


class TestMessage:
    def test_legacy_format(self) -> None:
        record = RollupRecord.from_document(make_document())
        assert build_message(record, Operation.REGISTER) == (
            "Tokamak Rollup Registry\n"
            "L1 Chain ID: 11155111\n"
            "L2 Chain ID: 111551119090\n"
            "Operation: register\n"
            f"SystemConfig: {CONFIG_ADDRESS}"
        )

    def test_timestamped_format(self) -> None:
        record = RollupRecord.from_document(make_document())
        message = build_message(record, Operation.UPDATE, 1748775600)
        assert message.endswith("Operation: update\n"
                                f"SystemConfig: {CONFIG_ADDRESS}\nTimestamp: 1748775600")

    def test_config_address_lowercased(self) -> None:
        upper = "0x" + CONFIG_ADDRESS[2:].upper()
        record = RollupRecord.from_document(make_document(l1Contracts={"SystemConfig": upper}))
        assert f"SystemConfig: {CONFIG_ADDRESS}" in build_message(record, Operation.REGISTER)

    def test_recover_signer(self) -> None:
        document = sign(make_document())
        record = RollupRecord.from_document(document)
        message = build_message(record, Operation.REGISTER, CREATED_TS)
        assert recover_signer(message, record.signature) == SEQUENCER.lower()


class TestAuthorization:
    def test_timestamped_register(self, authorizer: SignatureAuthorizer) -> None:
        record = RollupRecord.from_document(sign(make_document()))
        result = authorizer.validate(record, Operation.REGISTER)
        assert result.valid, result.error
        assert result.data["timestamp"] == CREATED_TS
        assert result.data["recovered_address"] == SEQUENCER.lower()

    def test_legacy_register_skips_age_window(self, reader: ChainStateReader) -> None:
        record = RollupRecord.from_document(sign(make_document(), legacy=True))
        far_future = NOW + timedelta(days=365)
        result = SignatureAuthorizer(reader, now=far_future).validate(record, Operation.REGISTER)
        assert result.valid, result.error
        assert result.data["timestamp"] is None

    def test_timestamped_update(self, authorizer: SignatureAuthorizer) -> None:
        document = make_document(lastUpdated="2025-06-01T11:30:00Z")
        record = RollupRecord.from_document(sign(document, Operation.UPDATE))
        assert authorizer.validate(record, Operation.UPDATE).valid

    def test_wrong_operation_fails(self, authorizer: SignatureAuthorizer) -> None:
        record = RollupRecord.from_document(sign(make_document(), Operation.REGISTER))
        result = authorizer.validate(record, Operation.UPDATE)
        assert not result.valid
        assert result.category == ErrorCategory.AUTHORIZATION

    def test_signed_by_other_key(self, authorizer: SignatureAuthorizer) -> None:
        # Signature and signedBy agree, but the signer is not the sequencer
        record = RollupRecord.from_document(sign(make_document(), key=OTHER_KEY))
        result = authorizer.validate(record, Operation.REGISTER)
        assert result.failure == Failure.NOT_ON_CHAIN_SEQUENCER
        assert "is not the onchain sequencer" in result.error

    def test_signed_by_does_not_match_signature(self, authorizer: SignatureAuthorizer) -> None:
        document = sign(make_document(), key=OTHER_KEY)
        document["metadata"]["signedBy"] = SEQUENCER
        result = authorizer.validate(RollupRecord.from_document(document), Operation.REGISTER)
        assert result.failure == Failure.SIGNER_MISMATCH
        assert f"Expected timestamp: {CREATED_TS}" in result.error

    def test_signature_over_other_timestamp(self, authorizer: SignatureAuthorizer) -> None:
        record = RollupRecord.from_document(sign(make_document(), timestamp=CREATED_TS + 1))
        result = authorizer.validate(record, Operation.REGISTER)
        assert not result.valid
        assert str(CREATED_TS) in result.error

    def test_malformed_signature(self, authorizer: SignatureAuthorizer) -> None:
        document = make_document()
        document["metadata"]["signature"] = "0x1234"
        result = authorizer.validate(RollupRecord.from_document(document), Operation.REGISTER)
        assert result.failure == Failure.INVALID_SIGNATURE

    def test_unrecoverable_signature(self, authorizer: SignatureAuthorizer) -> None:
        document = make_document()
        document["metadata"]["signature"] = "0x" + "00" * 65
        result = authorizer.validate(RollupRecord.from_document(document), Operation.REGISTER)
        assert not result.valid

    def test_onchain_failure_reported_first(self) -> None:
        record = RollupRecord.from_document(sign(make_document()))
        result = SignatureAuthorizer(ChainStateReader(None), now=NOW).validate(
            record, Operation.REGISTER,
        )
        assert result.failure == Failure.RPC_UNAVAILABLE
        assert result.error.startswith("OnChain validation failed:")

    def test_sequencer_rotated_on_chain(self, chain: FakeChainClient) -> None:
        chain.deploy(CONFIG_ADDRESS, sequencer="0x" + "3" * 40)
        record = RollupRecord.from_document(sign(make_document()))
        result = SignatureAuthorizer(ChainStateReader(chain), now=NOW).validate(
            record, Operation.REGISTER,
        )
        assert result.failure == Failure.SEQUENCER_MISMATCH


class TestAgeWindow:
    @pytest.mark.parametrize("age, valid", [
        (0, True),
        (MAX_SIGNATURE_AGE - 1, True),
        (MAX_SIGNATURE_AGE, False),
        (-MAX_FUTURE_SKEW + 1, True),
        (-MAX_FUTURE_SKEW, True),
        (-MAX_FUTURE_SKEW - 1, False),
    ])
    def test_boundaries(self, authorizer: SignatureAuthorizer, age: int, valid: bool) -> None:
        result = authorizer.check_signature_age(CREATED_TS, now=_at(CREATED_TS + age))
        assert result.valid is valid

    def test_expired_failure(self, authorizer: SignatureAuthorizer) -> None:
        result = authorizer.check_signature_age(CREATED_TS, now=_at(CREATED_TS + MAX_SIGNATURE_AGE))
        assert result.failure == Failure.SIGNATURE_EXPIRED
        assert "Signature expired" in result.error

    def test_future_failure(self, authorizer: SignatureAuthorizer) -> None:
        result = authorizer.check_signature_age(CREATED_TS, now=_at(CREATED_TS - 301))
        assert result.failure == Failure.SIGNATURE_IN_FUTURE

    @pytest.mark.parametrize("age, valid", [
        (86_399, True),
        (86_400, False),
        (-299, True),
        (-301, False),
    ])
    def test_full_authorization_at_boundaries(
        self, reader: ChainStateReader, age: int, valid: bool,
    ) -> None:
        record = RollupRecord.from_document(sign(make_document()))
        authorizer = SignatureAuthorizer(reader, now=_at(CREATED_TS + age))
        assert authorizer.validate(record, Operation.REGISTER).valid is valid


class TestTimestampConsistencyInAuthorization:
    def test_register_requires_last_updated_equal(self, authorizer: SignatureAuthorizer) -> None:
        document = make_document(lastUpdated="2025-06-01T11:00:01Z")
        record = RollupRecord.from_document(sign(document))
        result = authorizer.validate(record, Operation.REGISTER)
        assert result.failure == Failure.TIMESTAMP_MISMATCH
        assert "lastUpdated" in result.error
