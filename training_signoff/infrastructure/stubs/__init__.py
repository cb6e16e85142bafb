"""In-memory stub implementations of the application ports.

Used by tests and for local development without a database.
"""

from training_signoff.infrastructure.stubs.assignment_repository_stub import (
    AssignmentRepositoryStub,
)
from training_signoff.infrastructure.stubs.trainee_directory_stub import (
    TraineeDirectoryStub,
)

__all__: list[str] = [
    "AssignmentRepositoryStub",
    "TraineeDirectoryStub",
]
