"""Unit tests for roles, signatures, progress units and assignments."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from training_signoff.domain.models import (
    ALL_YEARS,
    REQUIRED_SIGNATURE_ROLES,
    Role,
    Signature,
    parse_year_scope,
)
from tests.helpers.builders import make_assignment, make_signature, make_unit


class TestRole:
    def test_exactly_three_roles(self) -> None:
        assert {r.value for r in Role} == {"Coordinator", "Trainer", "Trainee"}
        assert REQUIRED_SIGNATURE_ROLES == frozenset(Role)

    @pytest.mark.parametrize("name", ["Coordinator", "coordinator", " COORDINATOR "])
    def test_parse_is_case_insensitive(self, name: str) -> None:
        assert Role.parse(name) is Role.COORDINATOR

    def test_parse_passes_role_through(self) -> None:
        assert Role.parse(Role.TRAINER) is Role.TRAINER

    def test_parse_unknown_role_fails(self) -> None:
        with pytest.raises(ValueError, match="Unknown role"):
            Role.parse("Administrator")


class TestSignature:
    def test_create_computes_verifiable_hash(self) -> None:
        sig = make_signature(uuid4(), Role.TRAINER)

        assert len(sig.content_hash) == 32
        assert sig.verify_content_hash() is True

    def test_tampered_signature_fails_verification(self) -> None:
        sig = make_signature(uuid4(), Role.TRAINER)
        forged = Signature(
            signature_id=sig.signature_id,
            unit_id=sig.unit_id,
            role=Role.COORDINATOR,
            signer_id=sig.signer_id,
            signed_at=sig.signed_at,
            content_hash=sig.content_hash,
        )

        assert forged.verify_content_hash() is False

    def test_naive_timestamp_rejected(self) -> None:
        with pytest.raises(ValueError, match="timezone-aware"):
            Signature.create(
                signature_id=uuid4(),
                unit_id=uuid4(),
                role=Role.TRAINEE,
                signer_id=uuid4(),
                signed_at=datetime(2024, 1, 1),
            )

    def test_wrong_hash_length_rejected(self) -> None:
        with pytest.raises(ValueError, match="32 bytes"):
            Signature(
                signature_id=uuid4(),
                unit_id=uuid4(),
                role=Role.TRAINEE,
                signer_id=uuid4(),
                signed_at=datetime.now(timezone.utc),
                content_hash=b"short",
            )

    def test_signature_is_immutable(self) -> None:
        sig = make_signature(uuid4(), Role.TRAINER)

        with pytest.raises(FrozenInstanceError):
            sig.role = Role.COORDINATOR  # type: ignore[misc]

    def test_to_dict_serializes_ids_and_hash(self) -> None:
        sig = make_signature(uuid4(), Role.COORDINATOR)
        data = sig.to_dict()

        assert data["role"] == "Coordinator"
        assert data["unit_id"] == str(sig.unit_id)
        assert data["content_hash"] == sig.content_hash.hex()


class TestProgressUnit:
    def test_signed_roles_are_distinct(self) -> None:
        unit = make_unit(signed_roles=(Role.TRAINER, Role.TRAINER, Role.TRAINEE))

        assert unit.signed_roles == frozenset({Role.TRAINER, Role.TRAINEE})
        assert unit.duplicate_roles() == frozenset({Role.TRAINER})

    def test_with_progress_leaves_unset_flags_alone(self) -> None:
        unit = make_unit(ojt_done=True, practical_done=False)

        updated = unit.with_progress(practical_done=True)

        assert updated.ojt_done is True
        assert updated.practical_done is True
        assert unit.practical_done is False


class TestAssignment:
    def test_find_unit(self) -> None:
        assignment = make_assignment(unit_count=3)
        unit = assignment.progress_units[1]

        assert assignment.find_unit(unit.unit_id) == unit
        assert assignment.find_unit(uuid4()) is None

    def test_with_active_cycle_returns_copy(self) -> None:
        assignment = make_assignment(active_cycle=True)

        archived = assignment.with_active_cycle(False)

        assert archived.active_cycle is False
        assert assignment.active_cycle is True
        assert archived.training_year == assignment.training_year

    def test_with_unit_replaces_by_id_only(self) -> None:
        assignment = make_assignment(unit_count=2)
        first, second = assignment.progress_units

        updated = assignment.with_unit(first.with_progress(ojt_done=True))

        assert updated.progress_units[0].ojt_done is True
        assert updated.progress_units[1] == second


class TestYearScope:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(2024, 2024), ("2023", 2023), ("all", ALL_YEARS), (" ALL ", ALL_YEARS)],
    )
    def test_parse(self, raw, expected) -> None:
        assert parse_year_scope(raw) == expected

    @pytest.mark.parametrize("raw", ["twenty", "", True])
    def test_parse_invalid(self, raw) -> None:
        with pytest.raises(ValueError, match="Invalid training year"):
            parse_year_scope(raw)
