"""Domain errors for the training sign-off engine.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from TrainingSignOffError.
"""

from training_signoff.domain.errors.assignment import (
    AssignmentError,
    AssignmentNotFoundError,
    CycleTransitionError,
    CycleTransitionNotAuthorizedError,
    TraineeArchivedError,
)
from training_signoff.domain.errors.sign_off import (
    AlreadySignedError,
    InvariantViolationError,
    NotAuthorizedError,
    ProgressUnitNotFoundError,
    SignatureNotFoundError,
    SignerAlreadySignedError,
    SignOffError,
)
from training_signoff.domain.exceptions import TrainingSignOffError

__all__: list[str] = [
    "AlreadySignedError",
    "AssignmentError",
    "AssignmentNotFoundError",
    "CycleTransitionError",
    "CycleTransitionNotAuthorizedError",
    "InvariantViolationError",
    "NotAuthorizedError",
    "ProgressUnitNotFoundError",
    "SignOffError",
    "SignatureNotFoundError",
    "SignerAlreadySignedError",
    "TraineeArchivedError",
    "TrainingSignOffError",
]
