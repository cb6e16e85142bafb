"""In-memory stub for TraineeDirectoryProtocol."""

from __future__ import annotations

from uuid import UUID


class TraineeDirectoryStub:
    """Trainee directory backed by a set of archived trainee ids."""

    def __init__(self, archived: set[UUID] | None = None) -> None:
        self._archived: set[UUID] = set(archived or ())

    def archive(self, trainee_id: UUID) -> None:
        """Mark a trainee as archived."""
        self._archived.add(trainee_id)

    def unarchive(self, trainee_id: UUID) -> None:
        self._archived.discard(trainee_id)

    async def is_archived(self, trainee_id: UUID) -> bool:
        return trainee_id in self._archived
