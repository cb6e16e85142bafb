"""Assignment repository port.

Defines the persistence contract the sign-off engine needs: loading
assignments with their progress units and signatures, the atomic
signature insert, and the narrow writes for progress, notes, cycle flags
and soft delete.

Constraints:
- insert_signature_if_absent is atomic: of two concurrent inserts for the
  same (unit, role) exactly one succeeds
- at most one signature per (unit, signer)
- deleted assignments are never returned by load methods
- not-found conditions raise the domain not-found errors; any other
  failure propagates as raised by the backing store
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import Protocol
from uuid import UUID

from training_signoff.domain.models.assignment import Assignment
from training_signoff.domain.models.progress_unit import ProgressUnit
from training_signoff.domain.models.role import Role
from training_signoff.domain.models.signature import Signature


class AssignmentRepositoryProtocol(Protocol):
    """Repository protocol for assignments, progress units and signatures."""

    @abstractmethod
    async def load_assignment(self, assignment_id: UUID) -> Assignment:
        """Load one assignment with its units and signatures.

        Raises:
            AssignmentNotFoundError: No such assignment, or it is deleted.
        """
        ...

    @abstractmethod
    async def load_assignments_for_trainee(self, trainee_id: UUID) -> list[Assignment]:
        """Load all non-deleted assignments of a trainee, oldest first."""
        ...

    @abstractmethod
    async def load_assignments_for_module(self, module_id: UUID) -> list[Assignment]:
        """Load all non-deleted assignments of a curriculum module."""
        ...

    @abstractmethod
    async def load_progress_unit(self, unit_id: UUID) -> ProgressUnit:
        """Load one progress unit with its signatures.

        Raises:
            ProgressUnitNotFoundError: No such unit (or its assignment is deleted).
        """
        ...

    @abstractmethod
    async def load_signature(self, signature_id: UUID) -> Signature:
        """Load one signature.

        Raises:
            SignatureNotFoundError: No such signature.
        """
        ...

    @abstractmethod
    async def insert_signature_if_absent(
        self,
        unit_id: UUID,
        role: Role,
        signer_id: UUID,
        signed_at: datetime,
    ) -> Signature:
        """Atomically create a signature unless the role or signer is taken.

        Args:
            unit_id: The progress unit being signed.
            role: Role the signature is made under.
            signer_id: The signing user.
            signed_at: When the signature is recorded (UTC).

        Returns:
            The stored signature.

        Raises:
            AlreadySignedError: The role already has a signature on the unit.
            SignerAlreadySignedError: The signer already signed the unit.
            ProgressUnitNotFoundError: The unit does not exist.
        """
        ...

    @abstractmethod
    async def delete_signature(self, signature_id: UUID) -> None:
        """Delete a signature.

        Raises:
            SignatureNotFoundError: No such signature.
        """
        ...

    @abstractmethod
    async def update_active_cycle(self, assignment_id: UUID, active_cycle: bool) -> None:
        """Set the active_cycle flag of one assignment.

        Raises:
            AssignmentNotFoundError: No such assignment, or it is deleted.
        """
        ...

    @abstractmethod
    async def distinct_training_years(self, trainee_id: UUID) -> set[int]:
        """Training years present in a trainee's non-deleted assignments."""
        ...

    @abstractmethod
    async def create_assignment(self, assignment: Assignment) -> Assignment:
        """Persist a new assignment together with its progress units."""
        ...

    @abstractmethod
    async def update_unit_progress(
        self,
        unit_id: UUID,
        ojt_done: bool | None = None,
        practical_done: bool | None = None,
    ) -> ProgressUnit:
        """Update progress flags of one unit (None leaves a flag unchanged).

        Returns:
            The unit after the update, with its signatures.

        Raises:
            ProgressUnitNotFoundError: No such unit.
        """
        ...

    @abstractmethod
    async def update_notes(self, assignment_id: UUID, notes: str) -> Assignment:
        """Replace the notes of an assignment.

        Raises:
            AssignmentNotFoundError: No such assignment, or it is deleted.
        """
        ...

    @abstractmethod
    async def mark_deleted(self, assignment_id: UUID) -> None:
        """Soft-delete an assignment.

        Raises:
            AssignmentNotFoundError: No such assignment, or it is already deleted.
        """
        ...
