"""Application ports for the training sign-off engine.

Ports define the contracts between the application services and the
infrastructure adapters (hexagonal architecture), plus the typed result
objects the services return.
"""

from training_signoff.application.ports.assignment_management import (
    AssignmentChangeResult,
    AssignmentChangeStatus,
    ModuleAssignmentResult,
    ModuleAssignmentStatus,
    UnitProgressResult,
    UnitProgressStatus,
)
from training_signoff.application.ports.assignment_repository import (
    AssignmentRepositoryProtocol,
)
from training_signoff.application.ports.cycle_transition import (
    BulkFailure,
    CycleDirection,
    CycleTransitionIncompleteError,
    CycleTransitionResult,
    CycleTransitionStatus,
)
from training_signoff.application.ports.sign_off_metrics import SignOffMetricsProtocol
from training_signoff.application.ports.trainee_directory import (
    TraineeDirectoryProtocol,
)

__all__: list[str] = [
    "AssignmentChangeResult",
    "AssignmentChangeStatus",
    "AssignmentRepositoryProtocol",
    "BulkFailure",
    "CycleDirection",
    "CycleTransitionIncompleteError",
    "CycleTransitionResult",
    "CycleTransitionStatus",
    "ModuleAssignmentResult",
    "ModuleAssignmentStatus",
    "SignOffMetricsProtocol",
    "TraineeDirectoryProtocol",
    "UnitProgressResult",
    "UnitProgressStatus",
]
