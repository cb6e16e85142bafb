"""Role authority: the single signing policy.

Decides which roles an acting identity may sign as on a given unit, and
who may remove a signature. Every mutation path consults this policy;
it is never re-derived inline.

Policy:
- Coordinator may sign as Coordinator or Trainer
- Trainer may sign only as Trainer
- Trainee may sign only as Trainee, and only on their own unit
- No signature for a role that is already signed
- No second signature by an identity already holding one on the unit
- Only the signer may remove a signature

The policy is stateless and deterministic: it reads the ledger and the
arguments, and nothing else.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from training_signoff.domain.models.role import Role
from training_signoff.domain.models.signature import Signature

if TYPE_CHECKING:
    from training_signoff.domain.services.signature_ledger import SignatureLedger


SIGNABLE_ROLES: dict[Role, frozenset[Role]] = {
    Role.COORDINATOR: frozenset({Role.COORDINATOR, Role.TRAINER}),
    Role.TRAINER: frozenset({Role.TRAINER}),
    Role.TRAINEE: frozenset({Role.TRAINEE}),
}

PROGRESS_EDITOR_ROLES: frozenset[Role] = frozenset({Role.COORDINATOR, Role.TRAINER})


class SignOffDenial(str, Enum):
    """Why a sign-off request was refused."""

    ROLE_NOT_PERMITTED = "role_not_permitted"
    NOT_OWN_UNIT = "not_own_unit"
    ROLE_ALREADY_SIGNED = "role_already_signed"
    SIGNER_ALREADY_SIGNED = "signer_already_signed"
    NOT_SIGNER = "not_signer"


@dataclass(frozen=True, eq=True)
class AuthorityDecision:
    """Outcome of a policy check.

    Attributes:
        allowed: Whether the request may proceed.
        denial: Reason for refusal when not allowed.
    """

    allowed: bool
    denial: SignOffDenial | None = None

    @classmethod
    def allow(cls) -> AuthorityDecision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, denial: SignOffDenial) -> AuthorityDecision:
        return cls(allowed=False, denial=denial)


class RoleAuthority:
    """Stateless signing policy."""

    def signable_roles(self, acting_role: Role) -> frozenset[Role]:
        """Roles the acting role may sign under."""
        return SIGNABLE_ROLES[acting_role]

    def evaluate_sign(
        self,
        acting_role: Role,
        acting_identity: UUID,
        requested_role: Role,
        ledger: SignatureLedger,
    ) -> AuthorityDecision:
        """Check a sign request and report the reason for any refusal.

        Permission is checked before the ledger state, so an actor who may
        never sign the requested role is refused as such even when the role
        happens to be signed already.
        """
        if requested_role not in SIGNABLE_ROLES[acting_role]:
            return AuthorityDecision.deny(SignOffDenial.ROLE_NOT_PERMITTED)

        if acting_role is Role.TRAINEE and acting_identity != ledger.trainee_id:
            return AuthorityDecision.deny(SignOffDenial.NOT_OWN_UNIT)

        if ledger.signature_for(requested_role) is not None:
            return AuthorityDecision.deny(SignOffDenial.ROLE_ALREADY_SIGNED)

        if ledger.holds_signature(acting_identity):
            return AuthorityDecision.deny(SignOffDenial.SIGNER_ALREADY_SIGNED)

        return AuthorityDecision.allow()

    def can_sign(
        self,
        acting_role: Role,
        acting_identity: UUID,
        requested_role: Role,
        ledger: SignatureLedger,
    ) -> bool:
        """Return True if the actor may add a signature for requested_role."""
        return self.evaluate_sign(
            acting_role, acting_identity, requested_role, ledger
        ).allowed

    def can_remove(self, acting_identity: UUID, signature: Signature) -> bool:
        """Return True iff the actor created the signature."""
        return signature.signer_id == acting_identity

    def can_edit_progress(self, acting_role: Role) -> bool:
        """Coordinators and Trainers may toggle OJT/practical and edit notes."""
        return acting_role in PROGRESS_EDITOR_ROLES

    def can_manage_cycles(self, acting_role: Role) -> bool:
        """Only Coordinators may archive/restore cycles or create/delete assignments."""
        return acting_role is Role.COORDINATOR
