"""Metrics port for the sign-off engine.

Application services record outcomes through this protocol so they do
not depend on the Prometheus client directly.
"""

from __future__ import annotations

from typing import Protocol


class SignOffMetricsProtocol(Protocol):
    """Outcome counters for sign-offs and cycle transitions."""

    def record_sign_off(self, operation: str, role: str, status: str) -> None:
        """Count one sign or unsign request by role and outcome."""
        ...

    def record_cycle_transition(self, direction: str, status: str) -> None:
        """Count one archive or restore request by outcome."""
        ...

    def record_cycle_update_failure(self, direction: str) -> None:
        """Count one per-assignment update that failed during a transition."""
        ...

    def record_cycle_update_unconfirmed(self, direction: str, count: int) -> None:
        """Count per-assignment updates still in flight at the deadline."""
        ...
