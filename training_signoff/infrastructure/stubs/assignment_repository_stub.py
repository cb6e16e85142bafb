"""In-memory stub for AssignmentRepositoryProtocol.

This stub provides an in-memory implementation for tests and local
development. It simulates the database behavior including:
- Unique constraints on (unit_id, role) and (unit_id, signer_id)
- Atomic check-and-insert for signatures
- Soft delete filtering on every load
- Injectable failures and delays for cycle transition updates

Load methods yield to the event loop once, the way a real round-trip
would, so concurrent callers interleave. The signature insert checks
and writes without yielding.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime
from uuid import UUID, uuid4

from training_signoff.domain.errors import (
    AlreadySignedError,
    AssignmentNotFoundError,
    ProgressUnitNotFoundError,
    SignatureNotFoundError,
    SignerAlreadySignedError,
)
from training_signoff.domain.models.assignment import Assignment
from training_signoff.domain.models.progress_unit import ProgressUnit
from training_signoff.domain.models.role import Role
from training_signoff.domain.models.signature import Signature


class AssignmentRepositoryStub:
    """In-memory stub implementation of AssignmentRepositoryProtocol.

    This stub maintains:
    - A dictionary of assignments keyed by assignment_id (deleted ones kept)
    - An index from unit_id to its assignment_id
    - An index from signature_id to its unit_id

    Thread-safety note: This stub is NOT thread-safe. It is safe for
    concurrent coroutines on one event loop.
    """

    def __init__(self) -> None:
        """Initialize empty stub."""
        self._assignments: dict[UUID, Assignment] = {}
        self._unit_index: dict[UUID, UUID] = {}
        self._signature_index: dict[UUID, UUID] = {}
        # Key: assignment_id, Value: error raised by update_active_cycle
        self._update_failures: dict[UUID, Exception] = {}
        # Key: assignment_id, Value: seconds update_active_cycle sleeps first
        self._update_delays: dict[UUID, float] = {}
        self.update_active_cycle_calls: list[tuple[UUID, bool]] = []

    # Test helpers

    def seed_assignment(self, assignment: Assignment) -> Assignment:
        """Store an assignment as-is, signatures included.

        Unlike create_assignment, this bypasses the signature constraints
        so tests can load corrupted data.
        """
        self._assignments[assignment.assignment_id] = assignment
        for unit in assignment.progress_units:
            self._unit_index[unit.unit_id] = assignment.assignment_id
            for sig in unit.signatures:
                self._signature_index[sig.signature_id] = unit.unit_id
        return assignment

    def force_signature(self, signature: Signature) -> None:
        """Attach a signature without checking constraints."""
        unit = self._get_unit(signature.unit_id)
        self._store_unit(unit.with_signatures(unit.signatures + (signature,)))
        self._signature_index[signature.signature_id] = signature.unit_id

    def fail_update_for(self, assignment_id: UUID, error: Exception) -> None:
        """Make update_active_cycle raise for one assignment."""
        self._update_failures[assignment_id] = error

    def delay_update_for(self, assignment_id: UUID, seconds: float) -> None:
        """Make update_active_cycle sleep before writing one assignment."""
        self._update_delays[assignment_id] = seconds

    def get(self, assignment_id: UUID) -> Assignment | None:
        """Return the stored assignment, deleted or not."""
        return self._assignments.get(assignment_id)

    def clear(self) -> None:
        """Clear all stored data."""
        self._assignments.clear()
        self._unit_index.clear()
        self._signature_index.clear()
        self._update_failures.clear()
        self._update_delays.clear()
        self.update_active_cycle_calls.clear()

    # Internal helpers

    def _get_live_assignment(self, assignment_id: UUID) -> Assignment:
        assignment = self._assignments.get(assignment_id)
        if assignment is None or assignment.deleted:
            raise AssignmentNotFoundError(assignment_id)
        return assignment

    def _get_unit(self, unit_id: UUID) -> ProgressUnit:
        assignment_id = self._unit_index.get(unit_id)
        assignment = self._assignments.get(assignment_id) if assignment_id else None
        if assignment is None or assignment.deleted:
            raise ProgressUnitNotFoundError(unit_id)
        unit = assignment.find_unit(unit_id)
        if unit is None:
            raise ProgressUnitNotFoundError(unit_id)
        return unit

    def _store_unit(self, unit: ProgressUnit) -> None:
        assignment = self._assignments[unit.assignment_id]
        self._assignments[assignment.assignment_id] = assignment.with_unit(unit)

    # AssignmentRepositoryProtocol

    async def load_assignment(self, assignment_id: UUID) -> Assignment:
        await asyncio.sleep(0)
        return self._get_live_assignment(assignment_id)

    async def load_assignments_for_trainee(self, trainee_id: UUID) -> list[Assignment]:
        await asyncio.sleep(0)
        return sorted(
            (
                a
                for a in self._assignments.values()
                if a.trainee_id == trainee_id and not a.deleted
            ),
            key=lambda a: a.created_at,
        )

    async def load_assignments_for_module(self, module_id: UUID) -> list[Assignment]:
        await asyncio.sleep(0)
        return [
            a
            for a in self._assignments.values()
            if a.module_id == module_id and not a.deleted
        ]

    async def load_progress_unit(self, unit_id: UUID) -> ProgressUnit:
        await asyncio.sleep(0)
        return self._get_unit(unit_id)

    async def load_signature(self, signature_id: UUID) -> Signature:
        await asyncio.sleep(0)
        unit_id = self._signature_index.get(signature_id)
        if unit_id is None:
            raise SignatureNotFoundError(signature_id)
        try:
            unit = self._get_unit(unit_id)
        except ProgressUnitNotFoundError:
            raise SignatureNotFoundError(signature_id) from None
        for sig in unit.signatures:
            if sig.signature_id == signature_id:
                return sig
        raise SignatureNotFoundError(signature_id)

    async def insert_signature_if_absent(
        self,
        unit_id: UUID,
        role: Role,
        signer_id: UUID,
        signed_at: datetime,
    ) -> Signature:
        # No await between the constraint checks and the write
        unit = self._get_unit(unit_id)
        for existing in unit.signatures:
            if existing.role is role:
                raise AlreadySignedError(
                    unit_id=unit_id,
                    role=role,
                    existing_signature_id=existing.signature_id,
                    signed_at=existing.signed_at,
                )
        for existing in unit.signatures:
            if existing.signer_id == signer_id:
                raise SignerAlreadySignedError(
                    unit_id=unit_id,
                    signer_id=signer_id,
                    existing_signature_id=existing.signature_id,
                )

        signature = Signature.create(
            signature_id=uuid4(),
            unit_id=unit_id,
            role=role,
            signer_id=signer_id,
            signed_at=signed_at,
        )
        self._store_unit(unit.with_signatures(unit.signatures + (signature,)))
        self._signature_index[signature.signature_id] = unit_id
        return signature

    async def delete_signature(self, signature_id: UUID) -> None:
        unit_id = self._signature_index.get(signature_id)
        if unit_id is None:
            raise SignatureNotFoundError(signature_id)
        unit = self._get_unit(unit_id)
        self._store_unit(
            unit.with_signatures(
                tuple(s for s in unit.signatures if s.signature_id != signature_id)
            )
        )
        del self._signature_index[signature_id]

    async def update_active_cycle(self, assignment_id: UUID, active_cycle: bool) -> None:
        self.update_active_cycle_calls.append((assignment_id, active_cycle))
        delay = self._update_delays.get(assignment_id)
        if delay:
            await asyncio.sleep(delay)
        failure = self._update_failures.get(assignment_id)
        if failure is not None:
            raise failure
        assignment = self._get_live_assignment(assignment_id)
        self._assignments[assignment_id] = assignment.with_active_cycle(active_cycle)

    async def distinct_training_years(self, trainee_id: UUID) -> set[int]:
        await asyncio.sleep(0)
        return {
            a.training_year
            for a in self._assignments.values()
            if a.trainee_id == trainee_id and not a.deleted
        }

    async def create_assignment(self, assignment: Assignment) -> Assignment:
        if assignment.assignment_id in self._assignments:
            raise ValueError(f"Assignment {assignment.assignment_id} already exists")
        return self.seed_assignment(assignment)

    async def update_unit_progress(
        self,
        unit_id: UUID,
        ojt_done: bool | None = None,
        practical_done: bool | None = None,
    ) -> ProgressUnit:
        unit = self._get_unit(unit_id).with_progress(
            ojt_done=ojt_done, practical_done=practical_done
        )
        self._store_unit(unit)
        return unit

    async def update_notes(self, assignment_id: UUID, notes: str) -> Assignment:
        assignment = replace(self._get_live_assignment(assignment_id), notes=notes)
        self._assignments[assignment_id] = assignment
        return assignment

    async def mark_deleted(self, assignment_id: UUID) -> None:
        assignment = self._get_live_assignment(assignment_id)
        self._assignments[assignment_id] = replace(assignment, deleted=True)
