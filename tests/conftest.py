"""
Pytest configuration and shared fixtures for training sign-off tests.

Testing Standards:
- All async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async function mocking
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

from uuid import UUID, uuid4

import pytest

from training_signoff.infrastructure.stubs import (
    AssignmentRepositoryStub,
    TraineeDirectoryStub,
)


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from training_signoff import __version__

    return __version__


@pytest.fixture
def repository() -> AssignmentRepositoryStub:
    """Fresh in-memory assignment repository."""
    return AssignmentRepositoryStub()


@pytest.fixture
def trainee_directory() -> TraineeDirectoryStub:
    """Trainee directory with no archived trainees."""
    return TraineeDirectoryStub()


@pytest.fixture
def trainee_id() -> UUID:
    return uuid4()


@pytest.fixture
def trainer_id() -> UUID:
    return uuid4()


@pytest.fixture
def coordinator_id() -> UUID:
    return uuid4()
