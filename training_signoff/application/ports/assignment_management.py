"""Results of assignment management operations.

Creating assignments, editing notes, soft deletes and progress toggles
return typed results the same way sign-offs do: refusals and missing
targets are statuses, and raise_for_status() converts them to domain
errors on request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from training_signoff.domain.errors import (
    AssignmentNotFoundError,
    NotAuthorizedError,
    ProgressUnitNotFoundError,
    TraineeArchivedError,
)
from training_signoff.domain.models.assignment import Assignment
from training_signoff.domain.models.progress_unit import ProgressUnit
from training_signoff.domain.models.role import Role


class ModuleAssignmentStatus(str, Enum):
    ASSIGNED = "assigned"
    NOTHING_TO_ASSIGN = "nothing_to_assign"
    NOT_AUTHORIZED = "not_authorized"
    TRAINEE_ARCHIVED = "trainee_archived"


@dataclass(frozen=True, eq=True)
class ModuleAssignmentResult:
    """Outcome of assigning curriculum modules to a trainee.

    Attributes:
        status: Overall outcome.
        trainee_id: The trainee the modules were assigned to.
        created: Newly created assignments.
        skipped: Module ids that were already assigned in the same cycle.
        acting_role: Role of the caller.
    """

    status: ModuleAssignmentStatus
    trainee_id: UUID
    created: tuple[Assignment, ...] = field(default_factory=tuple)
    skipped: tuple[UUID, ...] = field(default_factory=tuple)
    acting_role: Role | None = None

    def raise_for_status(self) -> ModuleAssignmentResult:
        """Raise on refusal; NOTHING_TO_ASSIGN is not an error."""
        if self.status is ModuleAssignmentStatus.NOT_AUTHORIZED:
            raise NotAuthorizedError(
                actor_id=None,
                action="assign modules",
                reason=f"role {self.acting_role.value if self.acting_role else 'unknown'} "
                "may not assign modules",
            )
        if self.status is ModuleAssignmentStatus.TRAINEE_ARCHIVED:
            raise TraineeArchivedError(self.trainee_id)
        return self

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "trainee_id": str(self.trainee_id),
            "created": [str(a.assignment_id) for a in self.created],
            "skipped": [str(m) for m in self.skipped],
        }


class AssignmentChangeStatus(str, Enum):
    UPDATED = "updated"
    DELETED = "deleted"
    NOT_AUTHORIZED = "not_authorized"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, eq=True)
class AssignmentChangeResult:
    """Outcome of a notes edit or soft delete."""

    status: AssignmentChangeStatus
    assignment_id: UUID
    action: str
    assignment: Assignment | None = None
    acting_role: Role | None = None

    @property
    def ok(self) -> bool:
        return self.status in (AssignmentChangeStatus.UPDATED, AssignmentChangeStatus.DELETED)

    def raise_for_status(self) -> AssignmentChangeResult:
        if self.status is AssignmentChangeStatus.NOT_AUTHORIZED:
            raise NotAuthorizedError(
                actor_id=None,
                action=self.action,
                reason=f"role {self.acting_role.value if self.acting_role else 'unknown'} "
                f"may not {self.action}",
            )
        if self.status is AssignmentChangeStatus.NOT_FOUND:
            raise AssignmentNotFoundError(self.assignment_id)
        return self


class UnitProgressStatus(str, Enum):
    UPDATED = "updated"
    NOT_AUTHORIZED = "not_authorized"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, eq=True)
class UnitProgressResult:
    """Outcome of an OJT/practical toggle.

    Attributes:
        status: Overall outcome.
        unit_id: The targeted unit.
        unit: The unit after the update (UPDATED only).
        unit_complete: Completion of the unit after the request.
        acting_role: Role of the caller.
    """

    status: UnitProgressStatus
    unit_id: UUID
    unit: ProgressUnit | None = None
    unit_complete: bool = False
    acting_role: Role | None = None

    @property
    def ok(self) -> bool:
        return self.status is UnitProgressStatus.UPDATED

    def raise_for_status(self) -> UnitProgressResult:
        if self.status is UnitProgressStatus.NOT_AUTHORIZED:
            raise NotAuthorizedError(
                actor_id=None,
                action="update progress",
                reason=f"role {self.acting_role.value if self.acting_role else 'unknown'} "
                "may not update progress",
            )
        if self.status is UnitProgressStatus.NOT_FOUND:
            raise ProgressUnitNotFoundError(self.unit_id)
        return self

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "unit_id": str(self.unit_id),
            "ojt_done": self.unit.ojt_done if self.unit else None,
            "practical_done": self.unit.practical_done if self.unit else None,
            "unit_complete": self.unit_complete,
        }
