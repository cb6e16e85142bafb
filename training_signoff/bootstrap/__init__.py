"""Bootstrap: dependency wiring for the training sign-off engine."""

from training_signoff.bootstrap.logging import configure_logging
from training_signoff.bootstrap.sign_off import (
    get_assignment_repository,
    get_cycle_lifecycle_service,
    get_progress_report_service,
    get_sign_off_config,
    get_sign_off_service,
    get_trainee_directory,
    get_training_assignment_service,
    reset_sign_off_dependencies,
    set_assignment_repository,
    set_sign_off_config,
    set_trainee_directory,
)

__all__: list[str] = [
    "configure_logging",
    "get_assignment_repository",
    "get_cycle_lifecycle_service",
    "get_progress_report_service",
    "get_sign_off_config",
    "get_sign_off_service",
    "get_trainee_directory",
    "get_training_assignment_service",
    "reset_sign_off_dependencies",
    "set_assignment_repository",
    "set_sign_off_config",
    "set_trainee_directory",
]
