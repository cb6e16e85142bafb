"""Signature ledger: the signature set of exactly one progress unit.

The ledger applies sign/unsign requests to one unit, consulting the
RoleAuthority, and reports the unit's completion after each mutation so
callers can react without another round-trip.

Constraints:
- At most one signature per role and per signer (duplicates already in
  storage are reported, never silently merged)
- Mutations never touch sibling units or the parent assignment
- Expected refusals are returned as results, not raised

The application service splits ``add`` into ``check_add`` followed by an
atomic repository insert and ``record``, so the storage layer has the
final word when two requests race for the same role.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from structlog import get_logger

from training_signoff.domain.errors import (
    AlreadySignedError,
    InvariantViolationError,
    NotAuthorizedError,
    ProgressUnitNotFoundError,
    SignatureNotFoundError,
    SignerAlreadySignedError,
)
from training_signoff.domain.models.progress_unit import ProgressUnit
from training_signoff.domain.models.role import Role
from training_signoff.domain.models.signature import Signature
from training_signoff.domain.services.completion_evaluator import is_unit_complete
from training_signoff.domain.services.role_authority import (
    RoleAuthority,
    SignOffDenial,
)

logger = get_logger(__name__)


class SignOffStatus(str, Enum):
    """Outcome of a sign or unsign request."""

    SIGNED = "signed"
    REMOVED = "removed"
    ALREADY_SIGNED = "already_signed"
    NOT_AUTHORIZED = "not_authorized"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, eq=True)
class SignOffResult:
    """Typed result of a ledger mutation.

    Attributes:
        status: What happened.
        unit_id: The unit the request targeted (None if it does not exist).
        role: Role requested (sign) or removed (unsign), when known.
        signature: The created or removed signature, when applicable.
        existing_signature_id: The signature occupying the role on
            ALREADY_SIGNED.
        denial: Reason on NOT_AUTHORIZED.
        unit_complete: Completion of the unit after the request.
        actor_id: Acting identity.
        target_id: The unit or signature id the request referred to.
    """

    status: SignOffStatus
    unit_id: UUID | None
    role: Role | None = None
    signature: Signature | None = None
    existing_signature_id: UUID | None = None
    denial: SignOffDenial | None = None
    unit_complete: bool = False
    actor_id: UUID | None = None
    target_id: UUID | None = None

    @property
    def ok(self) -> bool:
        """True when the request changed the ledger."""
        return self.status in (SignOffStatus.SIGNED, SignOffStatus.REMOVED)

    def raise_for_status(self) -> SignOffResult:
        """Raise the matching domain error for a refused request.

        Returns:
            self, when the request succeeded.

        Raises:
            AlreadySignedError: The role is already signed.
            SignerAlreadySignedError: The actor already signed this unit.
            NotAuthorizedError: Any other refusal by the signing policy.
            ProgressUnitNotFoundError: The unit to sign does not exist.
            SignatureNotFoundError: The signature does not exist.
        """
        if self.status is SignOffStatus.ALREADY_SIGNED:
            raise AlreadySignedError(
                unit_id=self.unit_id,  # type: ignore[arg-type]
                role=self.role,  # type: ignore[arg-type]
                existing_signature_id=self.existing_signature_id,
            )
        if self.status is SignOffStatus.NOT_AUTHORIZED:
            if self.denial is SignOffDenial.SIGNER_ALREADY_SIGNED:
                raise SignerAlreadySignedError(
                    unit_id=self.unit_id,  # type: ignore[arg-type]
                    signer_id=self.actor_id,  # type: ignore[arg-type]
                )
            action = (
                "remove signature"
                if self.denial is SignOffDenial.NOT_SIGNER
                else f"sign as {self.role.value if self.role else 'unknown role'}"
            )
            raise NotAuthorizedError(
                actor_id=self.actor_id,
                action=action,
                reason=self.denial.value if self.denial else "denied",
            )
        if self.status is SignOffStatus.NOT_FOUND:
            # Sign requests always carry a role; a missing unit leaves unit_id unset.
            if self.role is not None and self.unit_id is None:
                raise ProgressUnitNotFoundError(self.target_id)  # type: ignore[arg-type]
            raise SignatureNotFoundError(self.target_id)  # type: ignore[arg-type]
        return self

    def to_dict(self) -> dict:
        """Serialize for API responses."""
        return {
            "status": self.status.value,
            "unit_id": str(self.unit_id) if self.unit_id else None,
            "role": self.role.value if self.role else None,
            "signature": self.signature.to_dict() if self.signature else None,
            "existing_signature_id": (
                str(self.existing_signature_id) if self.existing_signature_id else None
            ),
            "denial": self.denial.value if self.denial else None,
            "unit_complete": self.unit_complete,
        }


class SignatureLedger:
    """Signature set of one progress unit.

    Example:
        >>> ledger = SignatureLedger(unit)
        >>> result = ledger.add(Role.TRAINER, trainer_id, Role.TRAINER)
        >>> result.status
        <SignOffStatus.SIGNED: 'signed'>
    """

    def __init__(
        self,
        unit: ProgressUnit,
        authority: RoleAuthority | None = None,
    ) -> None:
        self._unit = unit
        self._authority = authority or RoleAuthority()
        self._violations = self._detect_violations(unit)
        if self._violations:
            logger.warning(
                "duplicate_role_signatures_detected",
                unit_id=str(unit.unit_id),
                roles=[violation.role.value for violation in self._violations],
            )

    @staticmethod
    def _detect_violations(unit: ProgressUnit) -> tuple[InvariantViolationError, ...]:
        return tuple(
            InvariantViolationError(
                unit_id=unit.unit_id,
                role=role,
                signature_ids=tuple(
                    sig.signature_id for sig in unit.signatures if sig.role is role
                ),
            )
            for role in sorted(unit.duplicate_roles(), key=lambda r: r.value)
        )

    @property
    def unit(self) -> ProgressUnit:
        """Current state of the unit, including ledger mutations."""
        return self._unit

    @property
    def unit_id(self) -> UUID:
        return self._unit.unit_id

    @property
    def trainee_id(self) -> UUID:
        """Trainee owning the unit."""
        return self._unit.trainee_id

    @property
    def signatures(self) -> tuple[Signature, ...]:
        return self._unit.signatures

    @property
    def invariant_violations(self) -> tuple[InvariantViolationError, ...]:
        """Duplicate-role problems found in the stored signatures."""
        return self._violations

    def signature_for(self, role: Role) -> Signature | None:
        """The (first) signature for a role, if any."""
        for sig in self._unit.signatures:
            if sig.role is role:
                return sig
        return None

    def holds_signature(self, identity: UUID) -> bool:
        """Whether the identity already signed this unit under any role."""
        return any(sig.signer_id == identity for sig in self._unit.signatures)

    def find(self, signature_id: UUID) -> Signature | None:
        for sig in self._unit.signatures:
            if sig.signature_id == signature_id:
                return sig
        return None

    def is_complete(self) -> bool:
        return is_unit_complete(self._unit)

    def check_add(
        self,
        role: Role,
        acting_identity: UUID,
        acting_role: Role,
    ) -> SignOffResult | None:
        """Check a sign request against the current signature set.

        Returns:
            None if the request may proceed, otherwise the refusal result.
        """
        decision = self._authority.evaluate_sign(
            acting_role, acting_identity, role, self
        )
        if decision.allowed:
            return None

        if decision.denial is SignOffDenial.ROLE_ALREADY_SIGNED:
            existing = self.signature_for(role)
            return SignOffResult(
                status=SignOffStatus.ALREADY_SIGNED,
                unit_id=self.unit_id,
                role=role,
                existing_signature_id=existing.signature_id if existing else None,
                unit_complete=self.is_complete(),
                actor_id=acting_identity,
                target_id=self.unit_id,
            )

        return SignOffResult(
            status=SignOffStatus.NOT_AUTHORIZED,
            unit_id=self.unit_id,
            role=role,
            denial=decision.denial,
            unit_complete=self.is_complete(),
            actor_id=acting_identity,
            target_id=self.unit_id,
        )

    def record(self, signature: Signature) -> SignOffResult:
        """Attach a signature that has already been persisted.

        Raises:
            ValueError: If the signature belongs to another unit.
        """
        if signature.unit_id != self.unit_id:
            raise ValueError(
                f"Signature {signature.signature_id} belongs to unit "
                f"{signature.unit_id}, not {self.unit_id}"
            )
        self._unit = self._unit.with_signatures(self._unit.signatures + (signature,))
        return SignOffResult(
            status=SignOffStatus.SIGNED,
            unit_id=self.unit_id,
            role=signature.role,
            signature=signature,
            unit_complete=self.is_complete(),
            actor_id=signature.signer_id,
            target_id=self.unit_id,
        )

    def add(
        self,
        role: Role,
        acting_identity: UUID,
        acting_role: Role,
        signed_at: datetime | None = None,
    ) -> SignOffResult:
        """Add a signature in memory, if the policy allows it."""
        refusal = self.check_add(role, acting_identity, acting_role)
        if refusal is not None:
            return refusal

        signature = Signature.create(
            signature_id=uuid4(),
            unit_id=self.unit_id,
            role=role,
            signer_id=acting_identity,
            signed_at=signed_at or datetime.now(timezone.utc),
        )
        return self.record(signature)

    def check_remove(
        self,
        signature_id: UUID,
        acting_identity: UUID,
    ) -> SignOffResult | None:
        """Check an unsign request.

        Returns:
            None if the request may proceed, otherwise the refusal result.
        """
        signature = self.find(signature_id)
        if signature is None:
            return SignOffResult(
                status=SignOffStatus.NOT_FOUND,
                unit_id=self.unit_id,
                unit_complete=self.is_complete(),
                actor_id=acting_identity,
                target_id=signature_id,
            )

        if not self._authority.can_remove(acting_identity, signature):
            return SignOffResult(
                status=SignOffStatus.NOT_AUTHORIZED,
                unit_id=self.unit_id,
                role=signature.role,
                denial=SignOffDenial.NOT_SIGNER,
                unit_complete=self.is_complete(),
                actor_id=acting_identity,
                target_id=signature_id,
            )
        return None

    def discard(self, signature_id: UUID) -> SignOffResult:
        """Drop a signature whose deletion has already been persisted."""
        signature = self.find(signature_id)
        if signature is None:
            raise SignatureNotFoundError(signature_id)
        self._unit = self._unit.with_signatures(
            tuple(sig for sig in self._unit.signatures if sig.signature_id != signature_id)
        )
        return SignOffResult(
            status=SignOffStatus.REMOVED,
            unit_id=self.unit_id,
            role=signature.role,
            signature=signature,
            unit_complete=self.is_complete(),
            actor_id=signature.signer_id,
            target_id=signature_id,
        )

    def remove(self, signature_id: UUID, acting_identity: UUID) -> SignOffResult:
        """Remove a signature in memory, if the actor is its signer."""
        refusal = self.check_remove(signature_id, acting_identity)
        if refusal is not None:
            return refusal
        return self.discard(signature_id)
