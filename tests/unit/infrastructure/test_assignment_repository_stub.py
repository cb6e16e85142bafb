"""Unit tests for AssignmentRepositoryStub."""

import asyncio
from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest

from training_signoff.domain.errors import (
    AlreadySignedError,
    AssignmentNotFoundError,
    ProgressUnitNotFoundError,
    SignatureNotFoundError,
    SignerAlreadySignedError,
)
from training_signoff.domain.models import Role
from training_signoff.infrastructure.stubs import AssignmentRepositoryStub
from tests.helpers.builders import make_assignment


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TestLoads:
    @pytest.mark.asyncio
    async def test_missing_assignment(self, repository: AssignmentRepositoryStub) -> None:
        with pytest.raises(AssignmentNotFoundError):
            await repository.load_assignment(uuid4())

    @pytest.mark.asyncio
    async def test_missing_unit(self, repository: AssignmentRepositoryStub) -> None:
        with pytest.raises(ProgressUnitNotFoundError):
            await repository.load_progress_unit(uuid4())

    @pytest.mark.asyncio
    async def test_missing_signature(self, repository: AssignmentRepositoryStub) -> None:
        with pytest.raises(SignatureNotFoundError):
            await repository.load_signature(uuid4())

    @pytest.mark.asyncio
    async def test_deleted_assignment_hidden(
        self, repository: AssignmentRepositoryStub, trainee_id: UUID
    ) -> None:
        assignment = repository.seed_assignment(make_assignment(trainee_id, deleted=True))

        with pytest.raises(AssignmentNotFoundError):
            await repository.load_assignment(assignment.assignment_id)
        with pytest.raises(ProgressUnitNotFoundError):
            await repository.load_progress_unit(assignment.progress_units[0].unit_id)
        assert await repository.load_assignments_for_trainee(trainee_id) == []
        assert await repository.distinct_training_years(trainee_id) == set()

    @pytest.mark.asyncio
    async def test_distinct_years(
        self, repository: AssignmentRepositoryStub, trainee_id: UUID
    ) -> None:
        repository.seed_assignment(make_assignment(trainee_id, 2023))
        repository.seed_assignment(make_assignment(trainee_id, 2024))
        repository.seed_assignment(make_assignment(trainee_id, 2024))

        assert await repository.distinct_training_years(trainee_id) == {2023, 2024}


class TestInsertSignature:
    @pytest.mark.asyncio
    async def test_insert_then_load(
        self, repository: AssignmentRepositoryStub, trainer_id: UUID
    ) -> None:
        unit = repository.seed_assignment(make_assignment()).progress_units[0]

        signature = await repository.insert_signature_if_absent(
            unit.unit_id, Role.TRAINER, trainer_id, _now()
        )

        assert await repository.load_signature(signature.signature_id) == signature
        stored = await repository.load_progress_unit(unit.unit_id)
        assert stored.signatures == (signature,)

    @pytest.mark.asyncio
    async def test_role_conflict_names_existing(
        self, repository: AssignmentRepositoryStub, trainer_id: UUID
    ) -> None:
        unit = repository.seed_assignment(make_assignment()).progress_units[0]
        first = await repository.insert_signature_if_absent(
            unit.unit_id, Role.TRAINER, trainer_id, _now()
        )

        with pytest.raises(AlreadySignedError) as exc_info:
            await repository.insert_signature_if_absent(
                unit.unit_id, Role.TRAINER, uuid4(), _now()
            )

        assert exc_info.value.existing_signature_id == first.signature_id
        assert exc_info.value.signed_at == first.signed_at

    @pytest.mark.asyncio
    async def test_signer_conflict(
        self, repository: AssignmentRepositoryStub, coordinator_id: UUID
    ) -> None:
        unit = repository.seed_assignment(make_assignment()).progress_units[0]
        await repository.insert_signature_if_absent(
            unit.unit_id, Role.COORDINATOR, coordinator_id, _now()
        )

        with pytest.raises(SignerAlreadySignedError):
            await repository.insert_signature_if_absent(
                unit.unit_id, Role.TRAINER, coordinator_id, _now()
            )

    @pytest.mark.asyncio
    async def test_concurrent_inserts_keep_one(
        self, repository: AssignmentRepositoryStub
    ) -> None:
        unit = repository.seed_assignment(make_assignment()).progress_units[0]

        results = await asyncio.gather(
            *(
                repository.insert_signature_if_absent(
                    unit.unit_id, Role.TRAINER, uuid4(), _now()
                )
                for _ in range(5)
            ),
            return_exceptions=True,
        )

        assert sum(1 for r in results if isinstance(r, AlreadySignedError)) == 4
        stored = await repository.load_progress_unit(unit.unit_id)
        assert len(stored.signatures) == 1


class TestWrites:
    @pytest.mark.asyncio
    async def test_delete_signature_twice(
        self, repository: AssignmentRepositoryStub, trainer_id: UUID
    ) -> None:
        unit = repository.seed_assignment(make_assignment()).progress_units[0]
        signature = await repository.insert_signature_if_absent(
            unit.unit_id, Role.TRAINER, trainer_id, _now()
        )

        await repository.delete_signature(signature.signature_id)

        with pytest.raises(SignatureNotFoundError):
            await repository.delete_signature(signature.signature_id)

    @pytest.mark.asyncio
    async def test_update_active_cycle(self, repository: AssignmentRepositoryStub) -> None:
        assignment = repository.seed_assignment(make_assignment())

        await repository.update_active_cycle(assignment.assignment_id, False)

        assert repository.get(assignment.assignment_id).active_cycle is False
        assert repository.update_active_cycle_calls == [(assignment.assignment_id, False)]

    @pytest.mark.asyncio
    async def test_injected_failure(self, repository: AssignmentRepositoryStub) -> None:
        assignment = repository.seed_assignment(make_assignment())
        repository.fail_update_for(assignment.assignment_id, RuntimeError("db down"))

        with pytest.raises(RuntimeError, match="db down"):
            await repository.update_active_cycle(assignment.assignment_id, False)
        assert repository.get(assignment.assignment_id).active_cycle is True

    @pytest.mark.asyncio
    async def test_update_progress_leaves_other_flag(
        self, repository: AssignmentRepositoryStub
    ) -> None:
        unit = repository.seed_assignment(make_assignment()).progress_units[0]

        await repository.update_unit_progress(unit.unit_id, ojt_done=True)
        updated = await repository.update_unit_progress(unit.unit_id, practical_done=True)

        assert (updated.ojt_done, updated.practical_done) == (True, True)

    @pytest.mark.asyncio
    async def test_create_duplicate_rejected(self, repository: AssignmentRepositoryStub) -> None:
        assignment = repository.seed_assignment(make_assignment())

        with pytest.raises(ValueError):
            await repository.create_assignment(assignment)

    @pytest.mark.asyncio
    async def test_mark_deleted_twice(self, repository: AssignmentRepositoryStub) -> None:
        assignment = repository.seed_assignment(make_assignment())

        await repository.mark_deleted(assignment.assignment_id)

        with pytest.raises(AssignmentNotFoundError):
            await repository.mark_deleted(assignment.assignment_id)
