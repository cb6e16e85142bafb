"""Persistence adapters."""

from training_signoff.infrastructure.adapters.persistence.postgres_assignment_repository import (
    PostgresAssignmentRepository,
)

__all__: list[str] = ["PostgresAssignmentRepository"]
