"""Unit tests for the signing policy."""

from uuid import uuid4

import pytest

from training_signoff.domain.models import Role
from training_signoff.domain.services import RoleAuthority, SignatureLedger, SignOffDenial
from tests.helpers.builders import make_signature, make_unit


@pytest.fixture
def authority() -> RoleAuthority:
    return RoleAuthority()


class TestSignableRoles:
    def test_matrix(self, authority: RoleAuthority) -> None:
        assert authority.signable_roles(Role.COORDINATOR) == {Role.COORDINATOR, Role.TRAINER}
        assert authority.signable_roles(Role.TRAINER) == {Role.TRAINER}
        assert authority.signable_roles(Role.TRAINEE) == {Role.TRAINEE}


class TestEvaluateSign:
    @pytest.mark.parametrize(
        ("acting_role", "requested_role", "allowed"),
        [
            (Role.COORDINATOR, Role.COORDINATOR, True),
            (Role.COORDINATOR, Role.TRAINER, True),
            (Role.COORDINATOR, Role.TRAINEE, False),
            (Role.TRAINER, Role.TRAINER, True),
            (Role.TRAINER, Role.COORDINATOR, False),
            (Role.TRAINER, Role.TRAINEE, False),
            (Role.TRAINEE, Role.COORDINATOR, False),
            (Role.TRAINEE, Role.TRAINER, False),
        ],
    )
    def test_role_matrix(
        self, authority: RoleAuthority, acting_role: Role, requested_role: Role, allowed: bool
    ) -> None:
        ledger = SignatureLedger(make_unit())

        assert authority.can_sign(acting_role, uuid4(), requested_role, ledger) is allowed

    def test_trainee_signs_own_unit(self, authority: RoleAuthority) -> None:
        unit = make_unit()
        ledger = SignatureLedger(unit)

        assert authority.can_sign(Role.TRAINEE, unit.trainee_id, Role.TRAINEE, ledger) is True

    def test_trainee_cannot_sign_other_trainees_unit(self, authority: RoleAuthority) -> None:
        decision = authority.evaluate_sign(
            Role.TRAINEE, uuid4(), Role.TRAINEE, SignatureLedger(make_unit())
        )

        assert decision.allowed is False
        assert decision.denial is SignOffDenial.NOT_OWN_UNIT

    def test_role_already_signed(self, authority: RoleAuthority) -> None:
        ledger = SignatureLedger(make_unit(signed_roles=(Role.TRAINER,)))

        decision = authority.evaluate_sign(Role.TRAINER, uuid4(), Role.TRAINER, ledger)

        assert decision.denial is SignOffDenial.ROLE_ALREADY_SIGNED

    def test_permission_checked_before_already_signed(self, authority: RoleAuthority) -> None:
        ledger = SignatureLedger(make_unit(signed_roles=(Role.COORDINATOR,)))

        decision = authority.evaluate_sign(Role.TRAINER, uuid4(), Role.COORDINATOR, ledger)

        assert decision.denial is SignOffDenial.ROLE_NOT_PERMITTED

    def test_one_identity_cannot_fill_two_roles(self, authority: RoleAuthority) -> None:
        coordinator = uuid4()
        unit = make_unit()
        unit = unit.with_signatures((make_signature(unit.unit_id, Role.COORDINATOR, coordinator),))

        decision = authority.evaluate_sign(
            Role.COORDINATOR, coordinator, Role.TRAINER, SignatureLedger(unit)
        )

        assert decision.denial is SignOffDenial.SIGNER_ALREADY_SIGNED


class TestCanRemove:
    def test_only_signer_may_remove(self, authority: RoleAuthority) -> None:
        signer = uuid4()
        signature = make_signature(uuid4(), Role.TRAINER, signer)

        assert authority.can_remove(signer, signature) is True
        assert authority.can_remove(uuid4(), signature) is False


class TestOtherPermissions:
    def test_progress_editors(self, authority: RoleAuthority) -> None:
        assert authority.can_edit_progress(Role.COORDINATOR) is True
        assert authority.can_edit_progress(Role.TRAINER) is True
        assert authority.can_edit_progress(Role.TRAINEE) is False

    def test_cycle_managers(self, authority: RoleAuthority) -> None:
        assert authority.can_manage_cycles(Role.COORDINATOR) is True
        assert authority.can_manage_cycles(Role.TRAINER) is False
        assert authority.can_manage_cycles(Role.TRAINEE) is False
