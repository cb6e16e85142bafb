"""Unit tests for CycleLifecycleService."""

import asyncio
from unittest.mock import MagicMock
from uuid import UUID

import pytest

from training_signoff.application.ports import (
    CycleDirection,
    CycleTransitionIncompleteError,
    CycleTransitionStatus,
)
from training_signoff.application.services import CycleLifecycleService
from training_signoff.config import SignOffConfig
from training_signoff.domain.errors import (
    CycleTransitionNotAuthorizedError,
    TraineeArchivedError,
)
from training_signoff.domain.models import Role
from training_signoff.infrastructure.stubs import (
    AssignmentRepositoryStub,
    TraineeDirectoryStub,
)
from tests.helpers.builders import make_assignment


@pytest.fixture
def service(
    repository: AssignmentRepositoryStub, trainee_directory: TraineeDirectoryStub
) -> CycleLifecycleService:
    return CycleLifecycleService(
        repository,
        config=SignOffConfig(max_concurrency=2, deadline_seconds=1.0),
        trainee_directory=trainee_directory,
    )


def seed(repository: AssignmentRepositoryStub, trainee_id: UUID, year: int, active: bool = True, count: int = 1):
    return [
        repository.seed_assignment(make_assignment(trainee_id, training_year=year, active_cycle=active))
        for _ in range(count)
    ]


class TestAuthorization:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [Role.TRAINER, Role.TRAINEE])
    async def test_non_coordinator_refused(
        self, service: CycleLifecycleService, repository: AssignmentRepositoryStub,
        trainee_id: UUID, role: Role,
    ) -> None:
        (assignment,) = seed(repository, trainee_id, 2024)

        result = await service.archive_cycle(trainee_id, 2024, role)

        assert result.status is CycleTransitionStatus.NOT_AUTHORIZED
        assert repository.get(assignment.assignment_id).active_cycle is True
        assert result.acting_role is role
        with pytest.raises(CycleTransitionNotAuthorizedError) as exc_info:
            result.raise_for_status()
        assert exc_info.value.acting_role == role.value
        assert role.value in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_archived_trainee_refused(
        self, service: CycleLifecycleService, repository: AssignmentRepositoryStub,
        trainee_directory: TraineeDirectoryStub, trainee_id: UUID,
    ) -> None:
        seed(repository, trainee_id, 2024)
        trainee_directory.archive(trainee_id)

        result = await service.archive_cycle(trainee_id, 2024, Role.COORDINATOR)

        assert result.status is CycleTransitionStatus.TRAINEE_ARCHIVED
        assert repository.update_active_cycle_calls == []
        with pytest.raises(TraineeArchivedError):
            result.raise_for_status()


class TestArchive:
    @pytest.mark.asyncio
    async def test_archives_only_selected_year(
        self, service: CycleLifecycleService, repository: AssignmentRepositoryStub,
        trainee_id: UUID,
    ) -> None:
        current = seed(repository, trainee_id, 2024, count=3)
        previous = seed(repository, trainee_id, 2023, count=2)

        result = await service.archive_cycle(trainee_id, 2024, Role.COORDINATOR)

        assert result.status is CycleTransitionStatus.COMPLETED
        assert set(result.succeeded) == {a.assignment_id for a in current}
        assert set(result.changed) == {a.assignment_id for a in current}
        for a in current:
            assert repository.get(a.assignment_id).active_cycle is False
        for a in previous:
            assert repository.get(a.assignment_id).active_cycle is True

    @pytest.mark.asyncio
    async def test_all_years(
        self, service: CycleLifecycleService, repository: AssignmentRepositoryStub,
        trainee_id: UUID,
    ) -> None:
        assignments = seed(repository, trainee_id, 2024) + seed(repository, trainee_id, 2022)

        result = await service.archive_cycle(trainee_id, "all", Role.COORDINATOR)

        assert len(result.succeeded) == 2
        assert all(not repository.get(a.assignment_id).active_cycle for a in assignments)

    @pytest.mark.asyncio
    async def test_repeat_is_idempotent(
        self, service: CycleLifecycleService, repository: AssignmentRepositoryStub,
        trainee_id: UUID,
    ) -> None:
        seed(repository, trainee_id, 2024, count=2)
        first = await service.archive_cycle(trainee_id, 2024, Role.COORDINATOR)
        calls_after_first = len(repository.update_active_cycle_calls)

        second = await service.archive_cycle(trainee_id, 2024, Role.COORDINATOR)

        assert second.status is CycleTransitionStatus.COMPLETED
        assert second.succeeded == first.succeeded
        assert second.changed == ()
        assert len(repository.update_active_cycle_calls) == calls_after_first

    @pytest.mark.asyncio
    async def test_deleted_assignments_ignored(
        self, service: CycleLifecycleService, repository: AssignmentRepositoryStub,
        trainee_id: UUID,
    ) -> None:
        deleted = repository.seed_assignment(
            make_assignment(trainee_id, training_year=2024, deleted=True)
        )

        result = await service.archive_cycle(trainee_id, 2024, Role.COORDINATOR)

        assert result.succeeded == ()
        assert repository.get(deleted.assignment_id).active_cycle is True

    @pytest.mark.asyncio
    async def test_partial_failure_collects_every_failure(
        self, service: CycleLifecycleService, repository: AssignmentRepositoryStub,
        trainee_id: UUID,
    ) -> None:
        assignments = seed(repository, trainee_id, 2024, count=4)
        repository.fail_update_for(assignments[1].assignment_id, RuntimeError("lock timeout"))
        repository.fail_update_for(assignments[3].assignment_id, RuntimeError("lock timeout"))

        result = await service.archive_cycle(trainee_id, 2024, Role.COORDINATOR)

        assert result.status is CycleTransitionStatus.PARTIAL_FAILURE
        assert result.failed_ids == (assignments[1].assignment_id, assignments[3].assignment_id)
        assert "lock timeout" in result.failed[0].reason
        assert result.succeeded == (assignments[0].assignment_id, assignments[2].assignment_id)
        with pytest.raises(CycleTransitionIncompleteError):
            result.raise_for_status()

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(
        self, repository: AssignmentRepositoryStub, trainee_id: UUID,
    ) -> None:
        assignments = seed(repository, trainee_id, 2024, count=5)
        in_flight = 0
        peak = 0
        original = repository.update_active_cycle

        async def tracking_update(assignment_id, active_cycle):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            try:
                await original(assignment_id, active_cycle)
            finally:
                in_flight -= 1

        repository.update_active_cycle = tracking_update  # type: ignore[method-assign]
        service = CycleLifecycleService(
            repository, config=SignOffConfig(max_concurrency=2, deadline_seconds=None)
        )

        result = await service.archive_cycle(trainee_id, 2024, Role.COORDINATOR)

        assert len(result.changed) == len(assignments)
        assert peak == 2


class TestDeadline:
    @pytest.mark.asyncio
    async def test_stragglers_reported_unconfirmed_and_finish_later(
        self, service: CycleLifecycleService, repository: AssignmentRepositoryStub,
        trainee_id: UUID,
    ) -> None:
        fast, slow = seed(repository, trainee_id, 2024, count=2)
        repository.delay_update_for(slow.assignment_id, 0.2)

        result = await service.archive_cycle(
            trainee_id, 2024, Role.COORDINATOR, deadline_seconds=0.05
        )

        assert result.status is CycleTransitionStatus.PARTIAL_FAILURE
        assert result.succeeded == (fast.assignment_id,)
        assert result.unconfirmed == (slow.assignment_id,)
        assert service.pending_updates == 1

        await service.wait_for_pending_updates()

        assert service.pending_updates == 0
        assert repository.get(slow.assignment_id).active_cycle is False

    @pytest.mark.asyncio
    async def test_zero_deadline_waits_for_every_update(
        self, service: CycleLifecycleService, repository: AssignmentRepositoryStub,
        trainee_id: UUID,
    ) -> None:
        (slow,) = seed(repository, trainee_id, 2024)
        repository.delay_update_for(slow.assignment_id, 0.05)

        result = await service.archive_cycle(
            trainee_id, 2024, Role.COORDINATOR, deadline_seconds=0
        )

        assert result.status is CycleTransitionStatus.COMPLETED
        assert result.changed == (slow.assignment_id,)
        assert result.unconfirmed == ()
        assert service.pending_updates == 0

    @pytest.mark.asyncio
    async def test_caller_cancellation_keeps_updates_tracked(
        self, service: CycleLifecycleService, repository: AssignmentRepositoryStub,
        trainee_id: UUID,
    ) -> None:
        (slow,) = seed(repository, trainee_id, 2024)
        repository.delay_update_for(slow.assignment_id, 0.3)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(
                service.archive_cycle(trainee_id, 2024, Role.COORDINATOR), 0.05
            )

        assert service.pending_updates == 1

        await service.wait_for_pending_updates()

        assert service.pending_updates == 0
        assert repository.get(slow.assignment_id).active_cycle is False


class TestRestore:
    @pytest.mark.asyncio
    async def test_restore_reverses_archive(
        self, service: CycleLifecycleService, repository: AssignmentRepositoryStub,
        trainee_id: UUID,
    ) -> None:
        archived = seed(repository, trainee_id, 2023, active=False, count=2)

        result = await service.restore_cycle(trainee_id, "2023", Role.COORDINATOR)

        assert result.direction is CycleDirection.RESTORE
        assert result.status is CycleTransitionStatus.COMPLETED
        assert all(repository.get(a.assignment_id).active_cycle for a in archived)
        assert result.to_dict()["training_year"] == 2023


class TestQueries:
    @pytest.mark.asyncio
    async def test_available_years_and_summary(
        self, service: CycleLifecycleService, repository: AssignmentRepositoryStub,
        trainee_id: UUID,
    ) -> None:
        seed(repository, trainee_id, 2022, active=False)
        seed(repository, trainee_id, 2024, count=2)

        assert await service.available_training_years(trainee_id) == [2024, 2022]
        summary = await service.cycle_summary(trainee_id)
        assert (summary.active_count, summary.archived_count, summary.total_count) == (2, 1, 3)
        assert len(await service.list_cycle(trainee_id, "all", False)) == 1


class TestMetrics:
    @pytest.mark.asyncio
    async def test_records_outcome_and_failures(
        self, repository: AssignmentRepositoryStub, trainee_id: UUID,
    ) -> None:
        (assignment,) = seed(repository, trainee_id, 2024)
        repository.fail_update_for(assignment.assignment_id, RuntimeError("boom"))
        metrics = MagicMock()
        service = CycleLifecycleService(repository, metrics=metrics)

        await service.archive_cycle(trainee_id, 2024, Role.COORDINATOR)

        metrics.record_cycle_update_failure.assert_called_once_with("archive")
        metrics.record_cycle_transition.assert_called_once_with("archive", "partial_failure")
