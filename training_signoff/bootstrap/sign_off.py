"""Bootstrap wiring for sign-off engine dependencies.

Singletons are created lazily. With DATABASE_URL set the repository is
PostgreSQL-backed; otherwise the in-memory stub is used.

The trainee directory stub is wired only in stub mode. A PostgreSQL
deployment must call set_trainee_directory before the services are first
used, or archived-trainee checks are skipped.
"""

from __future__ import annotations

import os

from structlog import get_logger

from training_signoff.application.ports.assignment_repository import (
    AssignmentRepositoryProtocol,
)
from training_signoff.application.ports.trainee_directory import (
    TraineeDirectoryProtocol,
)
from training_signoff.application.services.cycle_lifecycle_service import (
    CycleLifecycleService,
)
from training_signoff.application.services.progress_report_service import (
    ProgressReportService,
)
from training_signoff.application.services.sign_off_service import SignOffService
from training_signoff.application.services.training_assignment_service import (
    TrainingAssignmentService,
)
from training_signoff.bootstrap.database import get_session_factory
from training_signoff.config.sign_off_config import SignOffConfig
from training_signoff.infrastructure.adapters.persistence import (
    PostgresAssignmentRepository,
)
from training_signoff.infrastructure.monitoring import get_sign_off_metrics_collector
from training_signoff.infrastructure.stubs import (
    AssignmentRepositoryStub,
    TraineeDirectoryStub,
)

logger = get_logger(__name__)

_config: SignOffConfig | None = None
_assignment_repository: AssignmentRepositoryProtocol | None = None
_trainee_directory: TraineeDirectoryProtocol | None = None
_sign_off_service: SignOffService | None = None
_cycle_lifecycle_service: CycleLifecycleService | None = None
_training_assignment_service: TrainingAssignmentService | None = None
_progress_report_service: ProgressReportService | None = None


def get_sign_off_config() -> SignOffConfig:
    """Get configuration, read from the environment on first use."""
    global _config
    if _config is None:
        _config = SignOffConfig.from_environment()
    return _config


def get_assignment_repository() -> AssignmentRepositoryProtocol:
    """Get assignment repository instance."""
    global _assignment_repository
    if _assignment_repository is None:
        if os.environ.get("DATABASE_URL"):
            _assignment_repository = PostgresAssignmentRepository(get_session_factory())
        else:
            _assignment_repository = AssignmentRepositoryStub()
    return _assignment_repository


def get_trainee_directory() -> TraineeDirectoryProtocol | None:
    """Get trainee directory instance.

    Returns the in-memory stub when DATABASE_URL is unset. With a database
    there is no default directory; None is returned until
    set_trainee_directory wires one in.
    """
    global _trainee_directory
    if _trainee_directory is None:
        if os.environ.get("DATABASE_URL"):
            logger.warning(
                "trainee_directory_not_configured",
                message="Archived-trainee checks are disabled until "
                "set_trainee_directory is called",
            )
            return None
        _trainee_directory = TraineeDirectoryStub()
    return _trainee_directory


def get_sign_off_service() -> SignOffService:
    global _sign_off_service
    if _sign_off_service is None:
        _sign_off_service = SignOffService(
            repository=get_assignment_repository(),
            metrics=get_sign_off_metrics_collector(),
        )
    return _sign_off_service


def get_cycle_lifecycle_service() -> CycleLifecycleService:
    global _cycle_lifecycle_service
    if _cycle_lifecycle_service is None:
        _cycle_lifecycle_service = CycleLifecycleService(
            repository=get_assignment_repository(),
            config=get_sign_off_config(),
            trainee_directory=get_trainee_directory(),
            metrics=get_sign_off_metrics_collector(),
        )
    return _cycle_lifecycle_service


def get_training_assignment_service() -> TrainingAssignmentService:
    global _training_assignment_service
    if _training_assignment_service is None:
        _training_assignment_service = TrainingAssignmentService(
            repository=get_assignment_repository(),
            trainee_directory=get_trainee_directory(),
        )
    return _training_assignment_service


def get_progress_report_service() -> ProgressReportService:
    global _progress_report_service
    if _progress_report_service is None:
        _progress_report_service = ProgressReportService(get_assignment_repository())
    return _progress_report_service


def set_sign_off_config(config: SignOffConfig) -> None:
    """Set custom configuration for testing."""
    global _config
    _config = config


def set_assignment_repository(repo: AssignmentRepositoryProtocol) -> None:
    """Set custom assignment repository for testing."""
    global _assignment_repository
    _assignment_repository = repo


def set_trainee_directory(directory: TraineeDirectoryProtocol) -> None:
    """Set the trainee directory (required for PostgreSQL deployments)."""
    global _trainee_directory
    _trainee_directory = directory


def reset_sign_off_dependencies() -> None:
    """Reset all singleton instances for testing."""
    global _config
    global _assignment_repository
    global _trainee_directory
    global _sign_off_service
    global _cycle_lifecycle_service
    global _training_assignment_service
    global _progress_report_service

    _config = None
    _assignment_repository = None
    _trainee_directory = None
    _sign_off_service = None
    _cycle_lifecycle_service = None
    _training_assignment_service = None
    _progress_report_service = None
