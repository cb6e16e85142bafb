"""Sign-off service: evaluate, sign and unsign progress units.

This module orchestrates the SignatureLedger against the assignment
repository. The ledger decides whether a request is allowed; the
repository's atomic insert decides which of two racing requests wins.

Constraints:
- Permission is checked before "already signed", so an actor who may
  never sign a role is told NOT_AUTHORIZED
- Two concurrent sign requests for the same role on the same unit yield
  exactly one SIGNED and one ALREADY_SIGNED
- Only the signer may remove a signature, whatever their role
- Expected refusals are returned as results; unexpected persistence
  failures propagate unchanged and are never retried

Usage:
    service = SignOffService(repository)
    result = await service.sign_unit(unit_id, Role.TRAINER, trainer_id, Role.TRAINER)
    if result.status is SignOffStatus.ALREADY_SIGNED:
        ...
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING
from uuid import UUID

from structlog import get_logger

from training_signoff.application.ports.assignment_management import (
    UnitProgressResult,
    UnitProgressStatus,
)
from training_signoff.domain.errors import (
    AlreadySignedError,
    ProgressUnitNotFoundError,
    SignatureNotFoundError,
    SignerAlreadySignedError,
)
from training_signoff.domain.models.assignment import Assignment
from training_signoff.domain.models.progress_unit import ProgressUnit
from training_signoff.domain.models.role import Role
from training_signoff.domain.services.completion_evaluator import (
    AssignmentEvaluation,
    UnitEvaluation,
    evaluate_assignment,
    evaluate_unit,
    is_unit_complete,
)
from training_signoff.domain.services.role_authority import (
    RoleAuthority,
    SignOffDenial,
)
from training_signoff.domain.services.signature_ledger import (
    SignatureLedger,
    SignOffResult,
    SignOffStatus,
)

if TYPE_CHECKING:
    from training_signoff.application.ports.assignment_repository import (
        AssignmentRepositoryProtocol,
    )
    from training_signoff.application.ports.sign_off_metrics import (
        SignOffMetricsProtocol,
    )

logger = get_logger(__name__)


class SignOffService:
    """Applies sign-off requests to progress units.

    Attributes:
        _repository: Assignment repository (units and signatures).
        _authority: Signing policy shared with every ledger.
        _metrics: Optional outcome counters.
    """

    def __init__(
        self,
        repository: AssignmentRepositoryProtocol,
        authority: RoleAuthority | None = None,
        metrics: SignOffMetricsProtocol | None = None,
    ) -> None:
        self._repository = repository
        self._authority = authority or RoleAuthority()
        self._metrics = metrics

    def evaluate_unit(self, unit: ProgressUnit) -> UnitEvaluation:
        """Completion breakdown of one unit."""
        return evaluate_unit(unit)

    def evaluate_assignment(self, assignment: Assignment) -> AssignmentEvaluation:
        """Completion counts and classification of one assignment."""
        return evaluate_assignment(assignment)

    async def evaluate_assignment_by_id(self, assignment_id: UUID) -> AssignmentEvaluation:
        """Load an assignment and evaluate it.

        Raises:
            AssignmentNotFoundError: No such assignment, or it is deleted.
        """
        assignment = await self._repository.load_assignment(assignment_id)
        return evaluate_assignment(assignment)

    async def sign_unit(
        self,
        unit_id: UUID,
        role: Role,
        acting_identity: UUID,
        acting_role: Role,
    ) -> SignOffResult:
        """Sign a progress unit under a role.

        Args:
            unit_id: The unit to sign.
            role: The role to sign as.
            acting_identity: The user signing.
            acting_role: The user's own role.

        Returns:
            SignOffResult with status SIGNED, ALREADY_SIGNED,
            NOT_AUTHORIZED or NOT_FOUND, and the unit's completion after
            the request.
        """
        log = logger.bind(
            unit_id=str(unit_id),
            role=role.value,
            acting_identity=str(acting_identity),
            acting_role=acting_role.value,
        )

        try:
            unit = await self._repository.load_progress_unit(unit_id)
        except ProgressUnitNotFoundError:
            log.warning("sign_off_unit_not_found")
            return self._record(
                "sign",
                SignOffResult(
                    status=SignOffStatus.NOT_FOUND,
                    unit_id=None,
                    role=role,
                    actor_id=acting_identity,
                    target_id=unit_id,
                ),
            )

        ledger = SignatureLedger(unit, self._authority)
        refusal = ledger.check_add(role, acting_identity, acting_role)
        if refusal is not None:
            log.warning(
                "sign_off_refused",
                status=refusal.status.value,
                denial=refusal.denial.value if refusal.denial else None,
            )
            return self._record("sign", refusal)

        try:
            signature = await self._repository.insert_signature_if_absent(
                unit_id=unit_id,
                role=role,
                signer_id=acting_identity,
                signed_at=datetime.now(timezone.utc),
            )
        except AlreadySignedError as e:
            # Lost the race to a concurrent request for the same role
            log.warning(
                "sign_off_already_signed",
                existing_signature_id=(
                    str(e.existing_signature_id) if e.existing_signature_id else None
                ),
            )
            return self._record(
                "sign",
                SignOffResult(
                    status=SignOffStatus.ALREADY_SIGNED,
                    unit_id=unit_id,
                    role=role,
                    existing_signature_id=e.existing_signature_id,
                    unit_complete=await self._current_completion(unit_id),
                    actor_id=acting_identity,
                    target_id=unit_id,
                ),
            )
        except SignerAlreadySignedError:
            log.warning("sign_off_signer_already_signed")
            return self._record(
                "sign",
                SignOffResult(
                    status=SignOffStatus.NOT_AUTHORIZED,
                    unit_id=unit_id,
                    role=role,
                    denial=SignOffDenial.SIGNER_ALREADY_SIGNED,
                    unit_complete=await self._current_completion(unit_id),
                    actor_id=acting_identity,
                    target_id=unit_id,
                ),
            )
        except ProgressUnitNotFoundError:
            # Assignment deleted between the load and the insert
            log.warning("sign_off_unit_removed")
            return self._record(
                "sign",
                SignOffResult(
                    status=SignOffStatus.NOT_FOUND,
                    unit_id=None,
                    role=role,
                    actor_id=acting_identity,
                    target_id=unit_id,
                ),
            )

        # Reload so signatures written concurrently for other roles count
        try:
            ledger = SignatureLedger(
                await self._repository.load_progress_unit(unit_id), self._authority
            )
            unit_complete = ledger.is_complete()
        except ProgressUnitNotFoundError:
            unit_complete = ledger.record(signature).unit_complete

        log.info(
            "sign_off_signed",
            signature_id=str(signature.signature_id),
            unit_complete=unit_complete,
        )
        return self._record(
            "sign",
            SignOffResult(
                status=SignOffStatus.SIGNED,
                unit_id=unit_id,
                role=role,
                signature=signature,
                unit_complete=unit_complete,
                actor_id=acting_identity,
                target_id=unit_id,
            ),
        )

    async def unsign_unit(
        self,
        signature_id: UUID,
        acting_identity: UUID,
    ) -> SignOffResult:
        """Remove a signature.

        Only the signer may remove it; no role overrides this.

        Returns:
            SignOffResult with status REMOVED, NOT_AUTHORIZED or NOT_FOUND.
        """
        log = logger.bind(
            signature_id=str(signature_id),
            acting_identity=str(acting_identity),
        )

        try:
            signature = await self._repository.load_signature(signature_id)
            unit = await self._repository.load_progress_unit(signature.unit_id)
        except (SignatureNotFoundError, ProgressUnitNotFoundError):
            log.warning("unsign_signature_not_found")
            return self._record(
                "unsign",
                SignOffResult(
                    status=SignOffStatus.NOT_FOUND,
                    unit_id=None,
                    actor_id=acting_identity,
                    target_id=signature_id,
                ),
            )

        ledger = SignatureLedger(unit, self._authority)
        refusal = ledger.check_remove(signature_id, acting_identity)
        if refusal is not None:
            log.warning(
                "unsign_refused",
                status=refusal.status.value,
                signer_id=str(signature.signer_id),
            )
            return self._record("unsign", refusal)

        try:
            await self._repository.delete_signature(signature_id)
        except SignatureNotFoundError:
            # Removed concurrently by the same signer
            log.warning("unsign_signature_already_removed")
            return self._record(
                "unsign",
                SignOffResult(
                    status=SignOffStatus.NOT_FOUND,
                    unit_id=unit.unit_id,
                    role=signature.role,
                    unit_complete=await self._current_completion(unit.unit_id),
                    actor_id=acting_identity,
                    target_id=signature_id,
                ),
            )

        result = ledger.discard(signature_id)
        log.info(
            "unsign_removed",
            unit_id=str(unit.unit_id),
            role=signature.role.value,
            unit_complete=result.unit_complete,
        )
        return self._record("unsign", result)

    async def update_unit_progress(
        self,
        unit_id: UUID,
        acting_role: Role,
        ojt_done: bool | None = None,
        practical_done: bool | None = None,
    ) -> UnitProgressResult:
        """Toggle the OJT and/or practical flags of a unit.

        Coordinators and Trainers may edit progress. The practical flag is
        stored even when the curriculum item does not require one, but it
        only affects completion when it does.
        """
        log = logger.bind(unit_id=str(unit_id), acting_role=acting_role.value)

        if not self._authority.can_edit_progress(acting_role):
            log.warning("unit_progress_update_not_authorized")
            return UnitProgressResult(
                status=UnitProgressStatus.NOT_AUTHORIZED,
                unit_id=unit_id,
                acting_role=acting_role,
            )

        try:
            unit = await self._repository.update_unit_progress(
                unit_id, ojt_done=ojt_done, practical_done=practical_done
            )
        except ProgressUnitNotFoundError:
            log.warning("unit_progress_unit_not_found")
            return UnitProgressResult(
                status=UnitProgressStatus.NOT_FOUND,
                unit_id=unit_id,
                acting_role=acting_role,
            )

        complete = is_unit_complete(unit)
        log.info(
            "unit_progress_updated",
            ojt_done=unit.ojt_done,
            practical_done=unit.practical_done,
            unit_complete=complete,
        )
        return UnitProgressResult(
            status=UnitProgressStatus.UPDATED,
            unit_id=unit_id,
            unit=unit,
            unit_complete=complete,
            acting_role=acting_role,
        )

    async def _current_completion(self, unit_id: UUID) -> bool:
        try:
            unit = await self._repository.load_progress_unit(unit_id)
        except ProgressUnitNotFoundError:
            return False
        return is_unit_complete(unit)

    def _record(self, operation: str, result: SignOffResult) -> SignOffResult:
        if self._metrics is not None:
            self._metrics.record_sign_off(
                operation,
                result.role.value if result.role else "unknown",
                result.status.value,
            )
        return result
