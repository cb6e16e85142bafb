"""Assignment and training-cycle domain errors."""

from __future__ import annotations

from uuid import UUID

from training_signoff.domain.exceptions import TrainingSignOffError


class AssignmentError(TrainingSignOffError):
    """Base error for assignment operations."""

    pass


class AssignmentNotFoundError(AssignmentError):
    """Raised when an assignment does not exist or has been deleted.

    HTTP Status: 404 Not Found
    """

    def __init__(self, assignment_id: UUID) -> None:
        self.assignment_id = assignment_id
        super().__init__(f"Assignment not found: {assignment_id}")


class TraineeArchivedError(AssignmentError):
    """Raised when a write targets an archived trainee.

    Archived trainees are read-only: no new assignments and no cycle
    transitions.

    HTTP Status: 409 Conflict
    """

    def __init__(self, trainee_id: UUID) -> None:
        self.trainee_id = trainee_id
        super().__init__(f"Trainee {trainee_id} is archived")


class CycleTransitionError(TrainingSignOffError):
    """Base error for cycle archive/restore operations."""

    pass


class CycleTransitionNotAuthorizedError(CycleTransitionError):
    """Raised when a non-Coordinator attempts a cycle transition.

    HTTP Status: 403 Forbidden
    """

    def __init__(self, action: str, acting_role: str) -> None:
        self.action = action
        self.acting_role = acting_role
        super().__init__(f"Role {acting_role} may not {action}; Coordinator required")

    def to_rfc7807_dict(self) -> dict:
        """Serialize to RFC 7807 problem details format."""
        return {
            "type": "urn:training-signoff:cycle:not-authorized",
            "title": "Not Authorized",
            "status": 403,
            "detail": str(self),
            "action": self.action,
            "acting_role": self.acting_role,
        }
