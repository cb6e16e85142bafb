"""Training assignment service: assign modules, edit notes, soft delete.

Constraints:
- Only Coordinators create or delete assignments
- Coordinators and Trainers edit notes
- Archived trainees receive no new assignments
- A module already assigned (not deleted) for the same year and cycle
  flag is skipped, not duplicated
- New assignments get one progress unit per curriculum item, every flag
  false and no signatures
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from structlog import get_logger

from training_signoff.application.ports.assignment_management import (
    AssignmentChangeResult,
    AssignmentChangeStatus,
    ModuleAssignmentResult,
    ModuleAssignmentStatus,
)
from training_signoff.domain.errors import AssignmentNotFoundError
from training_signoff.domain.models.assignment import Assignment
from training_signoff.domain.models.curriculum import CurriculumModuleRef
from training_signoff.domain.models.progress_unit import ProgressUnit
from training_signoff.domain.models.role import Role
from training_signoff.domain.services.role_authority import RoleAuthority

if TYPE_CHECKING:
    from training_signoff.application.ports.assignment_repository import (
        AssignmentRepositoryProtocol,
    )
    from training_signoff.application.ports.trainee_directory import (
        TraineeDirectoryProtocol,
    )

logger = get_logger(__name__)


def build_assignment(
    trainee_id: UUID,
    module: CurriculumModuleRef,
    training_year: int,
    active_cycle: bool = True,
) -> Assignment:
    """Create a fresh assignment with one empty unit per curriculum item."""
    assignment_id = uuid4()
    units = tuple(
        ProgressUnit(
            unit_id=uuid4(),
            assignment_id=assignment_id,
            trainee_id=trainee_id,
            curriculum_item=item,
        )
        for item in module.items
    )
    return Assignment(
        assignment_id=assignment_id,
        trainee_id=trainee_id,
        curriculum_module=module,
        training_year=training_year,
        active_cycle=active_cycle,
        progress_units=units,
        created_at=datetime.now(timezone.utc),
    )


class TrainingAssignmentService:
    """Creates, annotates and soft-deletes assignments."""

    def __init__(
        self,
        repository: AssignmentRepositoryProtocol,
        trainee_directory: TraineeDirectoryProtocol | None = None,
        authority: RoleAuthority | None = None,
    ) -> None:
        self._repository = repository
        self._trainee_directory = trainee_directory
        self._authority = authority or RoleAuthority()

    async def assign_modules(
        self,
        trainee_id: UUID,
        modules: Sequence[CurriculumModuleRef],
        training_year: int,
        acting_role: Role,
        active_cycle: bool = True,
    ) -> ModuleAssignmentResult:
        """Assign curriculum modules to a trainee for a training cycle.

        Args:
            trainee_id: The trainee receiving the modules.
            modules: Catalog modules to assign, in display order.
            training_year: Year the assignments belong to.
            acting_role: Role of the caller; only Coordinators may assign.
            active_cycle: Cycle flag for the new assignments.

        Returns:
            ModuleAssignmentResult with the created assignments and the
            module ids skipped as already assigned.

        Raises:
            ValueError: If no modules are given.
        """
        if not modules:
            raise ValueError("No modules provided")

        log = logger.bind(
            trainee_id=str(trainee_id),
            training_year=training_year,
            active_cycle=active_cycle,
            acting_role=acting_role.value,
        )

        if not self._authority.can_manage_cycles(acting_role):
            log.warning("assign_modules_not_authorized")
            return ModuleAssignmentResult(
                status=ModuleAssignmentStatus.NOT_AUTHORIZED,
                trainee_id=trainee_id,
                acting_role=acting_role,
            )

        if self._trainee_directory is not None and await self._trainee_directory.is_archived(
            trainee_id
        ):
            log.warning("assign_modules_trainee_archived")
            return ModuleAssignmentResult(
                status=ModuleAssignmentStatus.TRAINEE_ARCHIVED,
                trainee_id=trainee_id,
                acting_role=acting_role,
            )

        existing = await self._repository.load_assignments_for_trainee(trainee_id)
        taken = {
            a.module_id
            for a in existing
            if not a.deleted
            and a.training_year == training_year
            and a.active_cycle == active_cycle
        }

        created: list[Assignment] = []
        skipped: list[UUID] = []
        for module in modules:
            if module.module_id in taken:
                skipped.append(module.module_id)
                continue
            assignment = await self._repository.create_assignment(
                build_assignment(trainee_id, module, training_year, active_cycle)
            )
            taken.add(module.module_id)
            created.append(assignment)

        log.info(
            "modules_assigned",
            created=len(created),
            skipped=len(skipped),
        )
        return ModuleAssignmentResult(
            status=(
                ModuleAssignmentStatus.ASSIGNED
                if created
                else ModuleAssignmentStatus.NOTHING_TO_ASSIGN
            ),
            trainee_id=trainee_id,
            created=tuple(created),
            skipped=tuple(skipped),
            acting_role=acting_role,
        )

    async def update_notes(
        self,
        assignment_id: UUID,
        notes: str,
        acting_role: Role,
    ) -> AssignmentChangeResult:
        """Replace the notes of an assignment (Coordinator or Trainer)."""
        log = logger.bind(assignment_id=str(assignment_id), acting_role=acting_role.value)

        if not self._authority.can_edit_progress(acting_role):
            log.warning("update_notes_not_authorized")
            return AssignmentChangeResult(
                status=AssignmentChangeStatus.NOT_AUTHORIZED,
                assignment_id=assignment_id,
                action="edit notes",
                acting_role=acting_role,
            )

        try:
            assignment = await self._repository.update_notes(assignment_id, notes)
        except AssignmentNotFoundError:
            log.warning("update_notes_assignment_not_found")
            return AssignmentChangeResult(
                status=AssignmentChangeStatus.NOT_FOUND,
                assignment_id=assignment_id,
                action="edit notes",
                acting_role=acting_role,
            )

        log.info("assignment_notes_updated", length=len(notes))
        return AssignmentChangeResult(
            status=AssignmentChangeStatus.UPDATED,
            assignment_id=assignment_id,
            action="edit notes",
            assignment=assignment,
            acting_role=acting_role,
        )

    async def delete_assignment(
        self,
        assignment_id: UUID,
        acting_role: Role,
    ) -> AssignmentChangeResult:
        """Soft-delete an assignment (Coordinator only).

        Deleted assignments disappear from every query, transition and
        statistic; their units and signatures are kept in storage.
        """
        log = logger.bind(assignment_id=str(assignment_id), acting_role=acting_role.value)

        if not self._authority.can_manage_cycles(acting_role):
            log.warning("delete_assignment_not_authorized")
            return AssignmentChangeResult(
                status=AssignmentChangeStatus.NOT_AUTHORIZED,
                assignment_id=assignment_id,
                action="delete assignment",
                acting_role=acting_role,
            )

        try:
            await self._repository.mark_deleted(assignment_id)
        except AssignmentNotFoundError:
            log.warning("delete_assignment_not_found")
            return AssignmentChangeResult(
                status=AssignmentChangeStatus.NOT_FOUND,
                assignment_id=assignment_id,
                action="delete assignment",
                acting_role=acting_role,
            )

        log.info("assignment_deleted")
        return AssignmentChangeResult(
            status=AssignmentChangeStatus.DELETED,
            assignment_id=assignment_id,
            action="delete assignment",
            acting_role=acting_role,
        )
