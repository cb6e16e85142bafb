"""Progress report service: dashboard statistics and cohort completion.

Every figure is derived from the same unit completion rule the sign-off
flow uses; nothing here stores or caches completion.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING
from uuid import UUID

from structlog import get_logger

from training_signoff.domain.models.assignment import YearScope, parse_year_scope
from training_signoff.domain.models.curriculum import CurriculumModuleRef
from training_signoff.domain.services.completion_evaluator import (
    AssignmentEvaluation,
    ModuleCompletionRate,
    ProgressStats,
    evaluate_assignment,
    module_completion_rates,
    summarize_progress,
)
from training_signoff.domain.services.cycle_classifier import filter_cycle

if TYPE_CHECKING:
    from training_signoff.application.ports.assignment_repository import (
        AssignmentRepositoryProtocol,
    )

logger = get_logger(__name__)


class ProgressReportService:
    """Read-only progress reporting over the assignment repository."""

    def __init__(self, repository: AssignmentRepositoryProtocol) -> None:
        self._repository = repository

    async def trainee_progress(
        self,
        trainee_id: UUID,
        selected_year: YearScope | str,
        show_active: bool = True,
    ) -> ProgressStats:
        """Dashboard statistics for a trainee's selected cycle view."""
        assignments = await self._repository.load_assignments_for_trainee(trainee_id)
        in_view = filter_cycle(assignments, parse_year_scope(selected_year), show_active)
        stats = summarize_progress(in_view)
        logger.debug(
            "trainee_progress_computed",
            trainee_id=str(trainee_id),
            total=stats.total,
            completed=stats.completed,
        )
        return stats

    async def trainee_assignment_evaluations(
        self,
        trainee_id: UUID,
        selected_year: YearScope | str,
        show_active: bool = True,
    ) -> list[AssignmentEvaluation]:
        """Per-assignment evaluation for the selected cycle view."""
        assignments = await self._repository.load_assignments_for_trainee(trainee_id)
        return [
            evaluate_assignment(a)
            for a in filter_cycle(assignments, parse_year_scope(selected_year), show_active)
        ]

    async def cohort_module_completion(
        self,
        module_ids: Iterable[UUID],
    ) -> tuple[ModuleCompletionRate, ...]:
        """Completion rate per module across every trainee assigned to it.

        Modules with no live assignment are omitted.
        """
        assignments = []
        for module_id in dict.fromkeys(module_ids):
            assignments.extend(await self._repository.load_assignments_for_module(module_id))
        rates = module_completion_rates(assignments)
        logger.info("cohort_module_completion_computed", modules=len(rates))
        return rates

    async def unassigned_modules(
        self,
        trainee_id: UUID,
        catalog: Sequence[CurriculumModuleRef],
        selected_year: YearScope | str,
        show_active: bool = True,
    ) -> list[CurriculumModuleRef]:
        """Catalog modules not assigned to the trainee in the selected cycle.

        Catalog order is preserved.
        """
        assignments = await self._repository.load_assignments_for_trainee(trainee_id)
        assigned = {
            a.module_id
            for a in filter_cycle(assignments, parse_year_scope(selected_year), show_active)
        }
        return [module for module in catalog if module.module_id not in assigned]
