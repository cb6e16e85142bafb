"""Sign-off domain errors.

Exception classes for signature add/remove failures. Application services
return these outcomes as typed results; the exceptions are raised by
repositories at the persistence boundary and by ``raise_for_status()``
for callers that prefer exceptions.

Constraints:
- At most one signature per (unit, role) and per (unit, signer)
- Only the signer may remove a signature
- "Not allowed" and "already signed" are always reported distinctly
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from training_signoff.domain.exceptions import TrainingSignOffError
from training_signoff.domain.models.role import Role


class SignOffError(TrainingSignOffError):
    """Base error for sign-off operations."""

    pass


class AlreadySignedError(SignOffError):
    """Raised when a role already has a signature on the unit.

    HTTP Status: 409 Conflict

    Attributes:
        unit_id: The progress unit.
        role: The role that is already signed.
        existing_signature_id: The existing signature, if known.
        signed_at: When the existing signature was recorded, if known.
    """

    def __init__(
        self,
        unit_id: UUID,
        role: Role,
        existing_signature_id: UUID | None = None,
        signed_at: datetime | None = None,
    ) -> None:
        self.unit_id = unit_id
        self.role = role
        self.existing_signature_id = existing_signature_id
        self.signed_at = signed_at
        super().__init__(f"Unit {unit_id} already has a {role.value} signature")

    def to_rfc7807_dict(self) -> dict:
        """Serialize to RFC 7807 problem details format."""
        result: dict = {
            "type": "urn:training-signoff:sign-off:already-signed",
            "title": "Already Signed",
            "status": 409,
            "detail": f"Unit {self.unit_id} already has a {self.role.value} signature",
            "unit_id": str(self.unit_id),
            "role": self.role.value,
        }

        if self.existing_signature_id is not None:
            result["existing_signature_id"] = str(self.existing_signature_id)

        if self.signed_at is not None:
            result["signed_at"] = self.signed_at.isoformat()

        return result


class SignerAlreadySignedError(SignOffError):
    """Raised when the signer already holds a signature on the unit.

    One identity may not occupy two roles on the same unit.

    HTTP Status: 403 Forbidden
    """

    def __init__(
        self,
        unit_id: UUID,
        signer_id: UUID,
        existing_signature_id: UUID | None = None,
    ) -> None:
        self.unit_id = unit_id
        self.signer_id = signer_id
        self.existing_signature_id = existing_signature_id
        super().__init__(f"Signer {signer_id} already holds a signature on unit {unit_id}")


class NotAuthorizedError(SignOffError):
    """Raised when the actor may not perform the requested sign-off action.

    HTTP Status: 403 Forbidden

    Attributes:
        actor_id: Identity of the acting user.
        action: What was attempted (e.g. "sign as Trainee").
        reason: Machine-readable denial reason.
    """

    def __init__(self, actor_id: UUID | None, action: str, reason: str) -> None:
        self.actor_id = actor_id
        self.action = action
        self.reason = reason
        super().__init__(f"Not authorized to {action}: {reason}")

    def to_rfc7807_dict(self) -> dict:
        """Serialize to RFC 7807 problem details format."""
        return {
            "type": "urn:training-signoff:sign-off:not-authorized",
            "title": "Not Authorized",
            "status": 403,
            "detail": f"Not authorized to {self.action}",
            "reason": self.reason,
            "actor_id": str(self.actor_id) if self.actor_id else None,
        }


class SignatureNotFoundError(SignOffError):
    """Raised when a signature does not exist (on the given unit).

    HTTP Status: 404 Not Found
    """

    def __init__(self, signature_id: UUID) -> None:
        self.signature_id = signature_id
        super().__init__(f"Signature not found: {signature_id}")


class ProgressUnitNotFoundError(SignOffError):
    """Raised when a progress unit does not exist.

    HTTP Status: 404 Not Found
    """

    def __init__(self, unit_id: UUID) -> None:
        self.unit_id = unit_id
        super().__init__(f"Progress unit not found: {unit_id}")


class InvariantViolationError(SignOffError):
    """Describes a unit whose stored signatures break the one-per-role rule.

    Should be unreachable through the repository. Evaluation tolerates
    it (a role is satisfied if at least one signature exists for it), so
    instances are reported rather than raised during reads.
    """

    def __init__(self, unit_id: UUID, role: Role, signature_ids: tuple[UUID, ...]) -> None:
        self.unit_id = unit_id
        self.role = role
        self.signature_ids = signature_ids
        super().__init__(
            f"Unit {unit_id} has {len(signature_ids)} signatures for role {role.value}"
        )
