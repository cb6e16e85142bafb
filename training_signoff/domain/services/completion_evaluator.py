"""Completion evaluator: the single completion rule.

Every read path (one unit, one assignment, a trainee dashboard, cohort
statistics across trainees) goes through the predicates in this module.
They are pure functions with no side effects.

Rules:
- A unit is complete iff OJT is done, each of Coordinator, Trainer and
  Trainee has signed it, and a required practical is done. Three
  signatures from the same role do not count as three roles.
- A duplicate signature for a role is tolerated: the role counts as
  satisfied once.
- Assignment percentage is round-half-up of 100 * completed / total, and
  0 when there are no units.
- An assignment is COMPLETED iff it has units and all are complete,
  NOT_STARTED when it has no units or none complete, else IN_PROGRESS.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from training_signoff.domain.models.assignment import Assignment
from training_signoff.domain.models.progress_unit import ProgressUnit
from training_signoff.domain.models.role import REQUIRED_SIGNATURE_ROLES, Role

# Display order for missing roles.
_ROLE_ORDER: tuple[Role, ...] = (Role.COORDINATOR, Role.TRAINER, Role.TRAINEE)


class CompletionStatus(str, Enum):
    """Derived completion classification of an assignment."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True, eq=True)
class UnitEvaluation:
    """Completion breakdown of a single progress unit.

    Attributes:
        unit_id: The evaluated unit.
        complete: Whether the unit is complete.
        ojt_done: On-the-job training flag.
        missing_roles: Roles still lacking a signature.
        practical_outstanding: A practical is required and not yet done.
        duplicate_roles: Roles with more than one stored signature.
    """

    unit_id: UUID
    complete: bool
    ojt_done: bool
    missing_roles: tuple[Role, ...]
    practical_outstanding: bool
    duplicate_roles: tuple[Role, ...] = ()


@dataclass(frozen=True, eq=True)
class AssignmentProgress:
    """Unit counts for one assignment."""

    total_units: int
    completed_units: int
    percentage: int


@dataclass(frozen=True, eq=True)
class AssignmentEvaluation:
    """Progress and classification of one assignment."""

    assignment_id: UUID
    total: int
    completed: int
    percentage: int
    classification: CompletionStatus

    def to_dict(self) -> dict:
        """Serialize for API responses."""
        return {
            "assignment_id": str(self.assignment_id),
            "total": self.total,
            "completed": self.completed,
            "percentage": self.percentage,
            "classification": self.classification.value,
        }


@dataclass(frozen=True, eq=True)
class ProgressStats:
    """Assignment-level statistics over a set of assignments.

    percentage is the share of completed assignments, not of units.
    """

    completed: int
    in_progress: int
    not_started: int
    total: int
    percentage: int


@dataclass(frozen=True, eq=True)
class ModuleCompletionRate:
    """Cohort-wide completion of one curriculum module."""

    module_id: UUID
    module_name: str
    assignments: int
    completed: int
    in_progress: int
    not_started: int
    completion_rate: int


def completion_percentage(completed: int, total: int) -> int:
    """Round-half-up percentage; 0 when total is 0."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def missing_roles(unit: ProgressUnit) -> tuple[Role, ...]:
    """Required roles with no signature on the unit."""
    signed = unit.signed_roles
    return tuple(role for role in _ROLE_ORDER if role not in signed)


def is_practical_satisfied(unit: ProgressUnit) -> bool:
    """True unless a practical is required and not done."""
    return (not unit.requires_practical) or unit.practical_done


def is_unit_complete(unit: ProgressUnit) -> bool:
    """Return True iff the unit is complete."""
    return (
        unit.ojt_done
        and REQUIRED_SIGNATURE_ROLES.issubset(unit.signed_roles)
        and is_practical_satisfied(unit)
    )


def evaluate_unit(unit: ProgressUnit) -> UnitEvaluation:
    """Evaluate a unit and explain what is still outstanding."""
    return UnitEvaluation(
        unit_id=unit.unit_id,
        complete=is_unit_complete(unit),
        ojt_done=unit.ojt_done,
        missing_roles=missing_roles(unit),
        practical_outstanding=not is_practical_satisfied(unit),
        duplicate_roles=tuple(
            role for role in _ROLE_ORDER if role in unit.duplicate_roles()
        ),
    )


def aggregate_assignment_progress(assignment: Assignment) -> AssignmentProgress:
    """Count complete units of an assignment."""
    total = len(assignment.progress_units)
    completed = sum(1 for unit in assignment.progress_units if is_unit_complete(unit))
    return AssignmentProgress(
        total_units=total,
        completed_units=completed,
        percentage=completion_percentage(completed, total),
    )


def _classify(progress: AssignmentProgress) -> CompletionStatus:
    if progress.total_units == 0 or progress.completed_units == 0:
        return CompletionStatus.NOT_STARTED
    if progress.completed_units == progress.total_units:
        return CompletionStatus.COMPLETED
    return CompletionStatus.IN_PROGRESS


def classify_assignment(assignment: Assignment) -> CompletionStatus:
    """Classify an assignment as not started, in progress or completed."""
    return _classify(aggregate_assignment_progress(assignment))


def evaluate_assignment(assignment: Assignment) -> AssignmentEvaluation:
    """Progress counts plus classification for one assignment."""
    progress = aggregate_assignment_progress(assignment)
    return AssignmentEvaluation(
        assignment_id=assignment.assignment_id,
        total=progress.total_units,
        completed=progress.completed_units,
        percentage=progress.percentage,
        classification=_classify(progress),
    )


def summarize_progress(assignments: Iterable[Assignment]) -> ProgressStats:
    """Count assignments per classification.

    Deleted assignments are skipped.
    """
    counts = {status: 0 for status in CompletionStatus}
    for assignment in assignments:
        if assignment.deleted:
            continue
        counts[classify_assignment(assignment)] += 1

    total = sum(counts.values())
    completed = counts[CompletionStatus.COMPLETED]
    return ProgressStats(
        completed=completed,
        in_progress=counts[CompletionStatus.IN_PROGRESS],
        not_started=counts[CompletionStatus.NOT_STARTED],
        total=total,
        percentage=completion_percentage(completed, total),
    )


def module_completion_rates(
    assignments: Iterable[Assignment],
) -> tuple[ModuleCompletionRate, ...]:
    """Completion rate per curriculum module across many trainees.

    Returns one entry per module, ordered by module name.
    """
    grouped: dict[UUID, list[Assignment]] = {}
    names: dict[UUID, str] = {}
    for assignment in assignments:
        if assignment.deleted:
            continue
        grouped.setdefault(assignment.module_id, []).append(assignment)
        names[assignment.module_id] = assignment.curriculum_module.name

    rates = []
    for module_id, members in grouped.items():
        stats = summarize_progress(members)
        rates.append(
            ModuleCompletionRate(
                module_id=module_id,
                module_name=names[module_id],
                assignments=stats.total,
                completed=stats.completed,
                in_progress=stats.in_progress,
                not_started=stats.not_started,
                completion_rate=stats.percentage,
            )
        )
    rates.sort(key=lambda rate: (rate.module_name, str(rate.module_id)))
    return tuple(rates)
