"""Application services for the training sign-off engine.

Services are async and orchestrate the pure domain services against the
repository port. They return typed results for expected outcomes.
"""

from training_signoff.application.services.cycle_lifecycle_service import (
    CycleLifecycleService,
)
from training_signoff.application.services.progress_report_service import (
    ProgressReportService,
)
from training_signoff.application.services.sign_off_service import SignOffService
from training_signoff.application.services.training_assignment_service import (
    TrainingAssignmentService,
    build_assignment,
)

__all__: list[str] = [
    "CycleLifecycleService",
    "ProgressReportService",
    "SignOffService",
    "TrainingAssignmentService",
    "build_assignment",
]
