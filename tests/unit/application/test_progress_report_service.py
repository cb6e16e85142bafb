"""Unit tests for ProgressReportService."""

from uuid import UUID, uuid4

import pytest

from training_signoff.application.services import ProgressReportService
from training_signoff.infrastructure.stubs import AssignmentRepositoryStub
from tests.helpers.builders import make_assignment, make_module


@pytest.fixture
def service(repository: AssignmentRepositoryStub) -> ProgressReportService:
    return ProgressReportService(repository)


class TestTraineeProgress:
    @pytest.mark.asyncio
    async def test_stats_for_selected_cycle(
        self, service: ProgressReportService, repository: AssignmentRepositoryStub,
        trainee_id: UUID,
    ) -> None:
        repository.seed_assignment(make_assignment(trainee_id, 2024, unit_count=1, completed_units=1))
        repository.seed_assignment(make_assignment(trainee_id, 2024, unit_count=2, completed_units=1))
        repository.seed_assignment(make_assignment(trainee_id, 2024, active_cycle=False, unit_count=1, completed_units=1))
        repository.seed_assignment(make_assignment(trainee_id, 2023, unit_count=1))

        stats = await service.trainee_progress(trainee_id, 2024, show_active=True)

        assert (stats.completed, stats.in_progress, stats.not_started, stats.total) == (1, 1, 0, 2)
        assert stats.percentage == 50

    @pytest.mark.asyncio
    async def test_evaluations(
        self, service: ProgressReportService, repository: AssignmentRepositoryStub,
        trainee_id: UUID,
    ) -> None:
        assignment = repository.seed_assignment(
            make_assignment(trainee_id, 2024, unit_count=4, completed_units=1)
        )

        (evaluation,) = await service.trainee_assignment_evaluations(trainee_id, "all")

        assert evaluation.assignment_id == assignment.assignment_id
        assert evaluation.percentage == 25


class TestCohort:
    @pytest.mark.asyncio
    async def test_rate_across_trainees(
        self, service: ProgressReportService, repository: AssignmentRepositoryStub,
    ) -> None:
        module = make_module(item_count=1, name="Engines")
        repository.seed_assignment(make_assignment(uuid4(), unit_count=1, completed_units=1, module=module))
        repository.seed_assignment(make_assignment(uuid4(), unit_count=1, module=module))
        repository.seed_assignment(make_assignment(uuid4(), unit_count=1, module=module, deleted=True))

        (rate,) = await service.cohort_module_completion([module.module_id, module.module_id])

        assert rate.assignments == 2
        assert rate.completion_rate == 50

    @pytest.mark.asyncio
    async def test_unknown_module_omitted(self, service: ProgressReportService) -> None:
        assert await service.cohort_module_completion([uuid4()]) == ()


class TestUnassignedModules:
    @pytest.mark.asyncio
    async def test_catalog_minus_assigned(
        self, service: ProgressReportService, repository: AssignmentRepositoryStub,
        trainee_id: UUID,
    ) -> None:
        assigned = make_module(name="A")
        archived_only = make_module(name="B")
        free = make_module(name="C")
        repository.seed_assignment(make_assignment(trainee_id, 2024, unit_count=2, module=assigned))
        repository.seed_assignment(
            make_assignment(trainee_id, 2024, active_cycle=False, unit_count=2, module=archived_only)
        )

        result = await service.unassigned_modules(
            trainee_id, [assigned, archived_only, free], 2024, show_active=True
        )

        assert result == [archived_only, free]
