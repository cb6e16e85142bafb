"""Trainee directory port.

User profiles live outside the engine. The only fact the engine needs
from them is whether a trainee has been archived, since archived
trainees are read-only.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol
from uuid import UUID


class TraineeDirectoryProtocol(Protocol):
    """Read access to trainee status."""

    @abstractmethod
    async def is_archived(self, trainee_id: UUID) -> bool:
        """Return True if the trainee has been archived.

        Unknown trainees are reported as not archived.
        """
        ...
