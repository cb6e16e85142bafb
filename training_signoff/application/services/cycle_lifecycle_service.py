"""Cycle lifecycle service: bulk archive and restore of training cycles.

Archive moves every non-deleted assignment of a trainee in the selected
year (or all years) to active_cycle=False; restore moves them back.
Per-assignment updates run concurrently under a semaphore. Every
failure is collected and reported; nothing is silently dropped.

Deadline semantics:
- The transition waits at most deadline_seconds for its updates
- Updates still in flight at the deadline are NOT cancelled; they keep
  running in the background and are reported as unconfirmed
- Background updates are held by strong references until they finish,
  and their eventual outcome is logged
- If the caller cancels the transition, its updates are handed to the
  same background tracking instead of being dropped

Idempotence: assignments already in the target state are reported as
succeeded without being written, so repeating a transition yields the
same end state and the same succeeded list.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from functools import partial
from typing import TYPE_CHECKING
from uuid import UUID

from structlog import get_logger

from training_signoff.application.ports.cycle_transition import (
    BulkFailure,
    CycleDirection,
    CycleTransitionResult,
    CycleTransitionStatus,
)
from training_signoff.config.sign_off_config import DEFAULT_SIGN_OFF_CONFIG, SignOffConfig
from training_signoff.domain.models.assignment import (
    Assignment,
    YearScope,
    parse_year_scope,
)
from training_signoff.domain.models.role import Role
from training_signoff.domain.services.cycle_classifier import (
    CycleSummary,
    cycle_summary,
    filter_cycle,
    matches_year,
)
from training_signoff.domain.services.role_authority import RoleAuthority

if TYPE_CHECKING:
    from training_signoff.application.ports.assignment_repository import (
        AssignmentRepositoryProtocol,
    )
    from training_signoff.application.ports.sign_off_metrics import (
        SignOffMetricsProtocol,
    )
    from training_signoff.application.ports.trainee_directory import (
        TraineeDirectoryProtocol,
    )

logger = get_logger(__name__)


class CycleLifecycleService:
    """Archives and restores training cycles, and answers cycle queries.

    Attributes:
        _repository: Assignment repository.
        _config: Fan-out and deadline settings.
        _trainee_directory: Optional source of trainee archive status.
        _background: Updates that outlived their transition's deadline.
    """

    def __init__(
        self,
        repository: AssignmentRepositoryProtocol,
        config: SignOffConfig | None = None,
        trainee_directory: TraineeDirectoryProtocol | None = None,
        authority: RoleAuthority | None = None,
        metrics: SignOffMetricsProtocol | None = None,
    ) -> None:
        self._repository = repository
        self._config = config or DEFAULT_SIGN_OFF_CONFIG
        self._trainee_directory = trainee_directory
        self._authority = authority or RoleAuthority()
        self._metrics = metrics
        self._background: set[asyncio.Task[None]] = set()

    @property
    def pending_updates(self) -> int:
        """Number of background updates still running."""
        return len(self._background)

    async def archive_cycle(
        self,
        trainee_id: UUID,
        year_or_all: YearScope | str,
        acting_role: Role,
        deadline_seconds: float | None = None,
    ) -> CycleTransitionResult:
        """Archive a trainee's assignments for a year (or all years).

        Args:
            trainee_id: The trainee whose assignments move.
            year_or_all: A training year, or "all".
            acting_role: Role of the caller; only Coordinators may archive.
            deadline_seconds: Overrides the configured deadline for this call;
                0 or less waits for every update.

        Returns:
            CycleTransitionResult listing succeeded, changed, failed and
            unconfirmed assignments.
        """
        return await self._transition(
            CycleDirection.ARCHIVE, trainee_id, year_or_all, acting_role, deadline_seconds
        )

    async def restore_cycle(
        self,
        trainee_id: UUID,
        year_or_all: YearScope | str,
        acting_role: Role,
        deadline_seconds: float | None = None,
    ) -> CycleTransitionResult:
        """Restore a trainee's archived assignments for a year (or all years).

        Symmetric to archive_cycle.
        """
        return await self._transition(
            CycleDirection.RESTORE, trainee_id, year_or_all, acting_role, deadline_seconds
        )

    async def available_training_years(self, trainee_id: UUID) -> list[int]:
        """Distinct training years of a trainee, most recent first."""
        years = await self._repository.distinct_training_years(trainee_id)
        return sorted(years, reverse=True)

    async def cycle_summary(self, trainee_id: UUID) -> CycleSummary:
        """Active/archived assignment counts of a trainee."""
        assignments = await self._repository.load_assignments_for_trainee(trainee_id)
        return cycle_summary(assignments)

    async def list_cycle(
        self,
        trainee_id: UUID,
        selected_year: YearScope | str,
        show_active: bool,
    ) -> list[Assignment]:
        """A trainee's assignments in the selected cycle view."""
        assignments = await self._repository.load_assignments_for_trainee(trainee_id)
        return filter_cycle(assignments, parse_year_scope(selected_year), show_active)

    async def wait_for_pending_updates(self) -> None:
        """Wait for background updates to finish (graceful shutdown, tests)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _transition(
        self,
        direction: CycleDirection,
        trainee_id: UUID,
        year_or_all: YearScope | str,
        acting_role: Role,
        deadline_seconds: float | None,
    ) -> CycleTransitionResult:
        year = parse_year_scope(year_or_all)
        deadline = self._resolve_deadline(deadline_seconds)
        log = logger.bind(
            direction=direction.value,
            trainee_id=str(trainee_id),
            training_year=year,
            acting_role=acting_role.value,
        )

        if not self._authority.can_manage_cycles(acting_role):
            log.warning("cycle_transition_not_authorized")
            return self._finish(
                CycleTransitionResult(
                    status=CycleTransitionStatus.NOT_AUTHORIZED,
                    direction=direction,
                    trainee_id=trainee_id,
                    training_year=year,
                    acting_role=acting_role,
                )
            )

        if self._trainee_directory is not None and await self._trainee_directory.is_archived(
            trainee_id
        ):
            log.warning("cycle_transition_trainee_archived")
            return self._finish(
                CycleTransitionResult(
                    status=CycleTransitionStatus.TRAINEE_ARCHIVED,
                    direction=direction,
                    trainee_id=trainee_id,
                    training_year=year,
                    acting_role=acting_role,
                )
            )

        target_active = direction.target_active
        assignments = await self._repository.load_assignments_for_trainee(trainee_id)
        targets = [a for a in assignments if not a.deleted and matches_year(a, year)]
        unchanged = [a.assignment_id for a in targets if a.active_cycle == target_active]
        to_update = [a.assignment_id for a in targets if a.active_cycle != target_active]

        log.info(
            "cycle_transition_started",
            matched=len(targets),
            already_in_state=len(unchanged),
            to_update=len(to_update),
            max_concurrency=self._config.max_concurrency,
            deadline_seconds=deadline,
        )

        semaphore = asyncio.Semaphore(self._config.max_concurrency)

        async def update_one(assignment_id: UUID) -> None:
            async with semaphore:
                await self._repository.update_active_cycle(assignment_id, target_active)

        tasks: dict[asyncio.Task[None], UUID] = {
            asyncio.create_task(update_one(assignment_id)): assignment_id
            for assignment_id in to_update
        }

        done: set[asyncio.Task[None]] = set()
        pending: set[asyncio.Task[None]] = set()
        if tasks:
            try:
                done, pending = await asyncio.wait(tasks, timeout=deadline)
            except asyncio.CancelledError:
                # The caller gave up; updates keep running and stay tracked
                log.warning(
                    "cycle_transition_cancelled",
                    in_flight=sum(1 for task in tasks if not task.done()),
                )
                self._track_in_background(tasks, direction, tasks)
                raise

        changed_ids: set[UUID] = set()
        failures: dict[UUID, BulkFailure] = {}
        for task in done:
            assignment_id = tasks[task]
            if task.cancelled():
                failures[assignment_id] = BulkFailure(assignment_id, "update cancelled")
                continue
            error = task.exception()
            if error is not None:
                failures[assignment_id] = BulkFailure(
                    assignment_id, f"{type(error).__name__}: {error}"
                )
                log.warning(
                    "cycle_update_failed",
                    assignment_id=str(assignment_id),
                    error=str(error),
                    error_type=type(error).__name__,
                )
                if self._metrics is not None:
                    self._metrics.record_cycle_update_failure(direction.value)
            else:
                changed_ids.add(assignment_id)

        unconfirmed_ids = {tasks[task] for task in pending}
        self._track_in_background(pending, direction, tasks)

        # Keep the repository's ordering in every list
        changed = tuple(i for i in to_update if i in changed_ids)
        unconfirmed = tuple(i for i in to_update if i in unconfirmed_ids)
        failed = tuple(failures[i] for i in to_update if i in failures)
        succeeded = tuple(
            a.assignment_id
            for a in targets
            if a.assignment_id in changed_ids or a.active_cycle == target_active
        )

        status = (
            CycleTransitionStatus.PARTIAL_FAILURE
            if failed or unconfirmed
            else CycleTransitionStatus.COMPLETED
        )
        if unconfirmed:
            log.warning(
                "cycle_transition_deadline_expired",
                unconfirmed=[str(i) for i in unconfirmed],
                deadline_seconds=deadline,
            )
            if self._metrics is not None:
                self._metrics.record_cycle_update_unconfirmed(
                    direction.value, len(unconfirmed)
                )
        if failed:
            log.warning(
                "cycle_transition_partial_failure",
                failure_count=len(failed),
                failed=[str(f.assignment_id) for f in failed[:10]],
            )

        log.info(
            "cycle_transition_completed",
            status=status.value,
            succeeded=len(succeeded),
            changed=len(changed),
            failed=len(failed),
            unconfirmed=len(unconfirmed),
        )
        return self._finish(
            CycleTransitionResult(
                status=status,
                direction=direction,
                trainee_id=trainee_id,
                training_year=year,
                succeeded=succeeded,
                changed=changed,
                failed=failed,
                unconfirmed=unconfirmed,
                acting_role=acting_role,
            )
        )

    def _resolve_deadline(self, deadline_seconds: float | None) -> float | None:
        """Per-call deadline: None uses the config, <= 0 waits for every update."""
        if deadline_seconds is None:
            return self._config.deadline_seconds
        if deadline_seconds <= 0:
            return None
        return deadline_seconds

    def _track_in_background(
        self,
        to_track: Iterable[asyncio.Task[None]],
        direction: CycleDirection,
        tasks: dict[asyncio.Task[None], UUID],
    ) -> None:
        for task in to_track:
            self._background.add(task)
            task.add_done_callback(
                partial(self._on_background_done, tasks[task], direction)
            )

    def _on_background_done(
        self,
        assignment_id: UUID,
        direction: CycleDirection,
        task: asyncio.Task[None],
    ) -> None:
        self._background.discard(task)
        log = logger.bind(assignment_id=str(assignment_id), direction=direction.value)
        if task.cancelled():
            log.warning("cycle_update_background_cancelled")
            return
        error = task.exception()
        if error is not None:
            log.warning(
                "cycle_update_background_failed",
                error=str(error),
                error_type=type(error).__name__,
            )
            if self._metrics is not None:
                self._metrics.record_cycle_update_failure(direction.value)
            return
        log.info("cycle_update_background_completed")

    def _finish(self, result: CycleTransitionResult) -> CycleTransitionResult:
        if self._metrics is not None:
            self._metrics.record_cycle_transition(result.direction.value, result.status.value)
        return result
