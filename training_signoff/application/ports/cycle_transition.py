"""Cycle transition results.

Archive and restore touch every matching assignment of a trainee. The
result tells the caller exactly which assignments ended in the target
state, which failed and why, and which were still being written when the
deadline expired.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from training_signoff.domain.errors import (
    CycleTransitionError,
    CycleTransitionNotAuthorizedError,
    TraineeArchivedError,
)
from training_signoff.domain.models.assignment import YearScope
from training_signoff.domain.models.role import Role


class CycleDirection(str, Enum):
    """Which way a transition moves assignments."""

    ARCHIVE = "archive"
    RESTORE = "restore"

    @property
    def target_active(self) -> bool:
        """active_cycle value the transition writes."""
        return self is CycleDirection.RESTORE


class CycleTransitionStatus(str, Enum):
    """Overall outcome of a cycle transition."""

    COMPLETED = "completed"
    PARTIAL_FAILURE = "partial_failure"
    NOT_AUTHORIZED = "not_authorized"
    TRAINEE_ARCHIVED = "trainee_archived"


@dataclass(frozen=True, eq=True)
class BulkFailure:
    """One assignment whose update failed."""

    assignment_id: UUID
    reason: str

    def to_dict(self) -> dict:
        return {"assignment_id": str(self.assignment_id), "reason": self.reason}


class CycleTransitionIncompleteError(CycleTransitionError):
    """Raised by raise_for_status when some assignments were not moved.

    HTTP Status: 207 Multi-Status (partial success)
    """

    def __init__(self, result: CycleTransitionResult) -> None:
        self.result = result
        super().__init__(
            f"Cycle {result.direction.value} for trainee {result.trainee_id}: "
            f"{len(result.failed)} failed, {len(result.unconfirmed)} unconfirmed"
        )


@dataclass(frozen=True, eq=True)
class CycleTransitionResult:
    """Outcome of archive_cycle / restore_cycle.

    Attributes:
        status: Overall outcome.
        direction: Archive or restore.
        trainee_id: The trainee whose assignments were targeted.
        training_year: The year filter that was applied.
        succeeded: Assignments confirmed in the target state, including
            those that were already there.
        changed: Subset of succeeded whose flag was actually written.
        failed: Assignments whose update raised, with the reason.
        unconfirmed: Assignments whose update was still in flight when
            the deadline expired. Their final state is unknown.
        acting_role: Role of the caller.
    """

    status: CycleTransitionStatus
    direction: CycleDirection
    trainee_id: UUID
    training_year: YearScope
    succeeded: tuple[UUID, ...] = field(default_factory=tuple)
    changed: tuple[UUID, ...] = field(default_factory=tuple)
    failed: tuple[BulkFailure, ...] = field(default_factory=tuple)
    unconfirmed: tuple[UUID, ...] = field(default_factory=tuple)
    acting_role: Role | None = None

    @property
    def ok(self) -> bool:
        return self.status is CycleTransitionStatus.COMPLETED

    @property
    def failed_ids(self) -> tuple[UUID, ...]:
        return tuple(failure.assignment_id for failure in self.failed)

    def raise_for_status(self) -> CycleTransitionResult:
        """Raise the matching error unless the transition fully completed.

        Raises:
            CycleTransitionNotAuthorizedError: Caller is not a Coordinator.
            TraineeArchivedError: The trainee is archived.
            CycleTransitionIncompleteError: Some updates failed or are unconfirmed.
        """
        if self.status is CycleTransitionStatus.NOT_AUTHORIZED:
            raise CycleTransitionNotAuthorizedError(
                action=f"{self.direction.value} cycle",
                acting_role=self.acting_role.value if self.acting_role else "unknown",
            )
        if self.status is CycleTransitionStatus.TRAINEE_ARCHIVED:
            raise TraineeArchivedError(self.trainee_id)
        if self.status is CycleTransitionStatus.PARTIAL_FAILURE:
            raise CycleTransitionIncompleteError(self)
        return self

    def to_dict(self) -> dict:
        """Serialize for API responses."""
        return {
            "status": self.status.value,
            "direction": self.direction.value,
            "trainee_id": str(self.trainee_id),
            "training_year": self.training_year,
            "succeeded": [str(a) for a in self.succeeded],
            "changed": [str(a) for a in self.changed],
            "failed": [failure.to_dict() for failure in self.failed],
            "unconfirmed": [str(a) for a in self.unconfirmed],
            "acting_role": self.acting_role.value if self.acting_role else None,
        }
