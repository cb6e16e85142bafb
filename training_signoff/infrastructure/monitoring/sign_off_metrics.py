"""Sign-off metrics for Prometheus exposition.

Counts sign/unsign outcomes by role and cycle transition outcomes by
direction, so refusal and partial-failure rates can be watched with
rate() and increase() queries.
"""

from __future__ import annotations

import os
import threading

from prometheus_client import CollectorRegistry, Counter

# Thread lock for singleton initialization
_metrics_lock = threading.Lock()


class SignOffMetricsCollector:
    """Collects sign-off engine metrics for Prometheus.

    Each instance owns its registry unless one is passed in, so tests
    never collide on metric names.

    Attributes:
        sign_off_requests_total: Sign/unsign requests by role and status.
        cycle_transitions_total: Archive/restore requests by status.
        cycle_update_failures_total: Per-assignment updates that raised.
        cycle_update_unconfirmed_total: Per-assignment updates still in
            flight when a transition deadline expired.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize the collector.

        Args:
            registry: Optional custom registry for testing isolation.
        """
        self._registry = registry or CollectorRegistry()
        self._environment = os.environ.get("ENVIRONMENT", "development")

        self.sign_off_requests_total = Counter(
            name="sign_off_requests_total",
            documentation="Sign and unsign requests by role and outcome",
            labelnames=["operation", "role", "status", "environment"],
            registry=self._registry,
        )
        self.cycle_transitions_total = Counter(
            name="cycle_transitions_total",
            documentation="Cycle archive/restore requests by outcome",
            labelnames=["direction", "status", "environment"],
            registry=self._registry,
        )
        self.cycle_update_failures_total = Counter(
            name="cycle_update_failures_total",
            documentation="Per-assignment cycle updates that failed",
            labelnames=["direction", "environment"],
            registry=self._registry,
        )
        self.cycle_update_unconfirmed_total = Counter(
            name="cycle_update_unconfirmed_total",
            documentation="Per-assignment cycle updates unconfirmed at the deadline",
            labelnames=["direction", "environment"],
            registry=self._registry,
        )

    def record_sign_off(self, operation: str, role: str, status: str) -> None:
        """Record one sign or unsign request.

        Args:
            operation: "sign" or "unsign".
            role: Role signed under, or "unknown" when the target was missing.
            status: SignOffStatus value.

        Raises:
            ValueError: If operation is not sign or unsign.
        """
        if operation not in ("sign", "unsign"):
            raise ValueError(f"Invalid operation '{operation}'. Must be sign or unsign.")
        self.sign_off_requests_total.labels(
            operation=operation,
            role=role,
            status=status,
            environment=self._environment,
        ).inc()

    def record_cycle_transition(self, direction: str, status: str) -> None:
        self.cycle_transitions_total.labels(
            direction=direction,
            status=status,
            environment=self._environment,
        ).inc()

    def record_cycle_update_failure(self, direction: str) -> None:
        self.cycle_update_failures_total.labels(
            direction=direction,
            environment=self._environment,
        ).inc()

    def record_cycle_update_unconfirmed(self, direction: str, count: int) -> None:
        if count <= 0:
            return
        self.cycle_update_unconfirmed_total.labels(
            direction=direction,
            environment=self._environment,
        ).inc(count)

    def get_registry(self) -> CollectorRegistry:
        """Get the collector registry."""
        return self._registry


# Singleton instance
_sign_off_metrics_collector: SignOffMetricsCollector | None = None


def get_sign_off_metrics_collector() -> SignOffMetricsCollector:
    """Get the singleton SignOffMetricsCollector (thread-safe).

    Uses double-checked locking for lazy initialization.
    """
    global _sign_off_metrics_collector
    if _sign_off_metrics_collector is None:
        with _metrics_lock:
            if _sign_off_metrics_collector is None:
                _sign_off_metrics_collector = SignOffMetricsCollector()
    return _sign_off_metrics_collector


def reset_sign_off_metrics_collector() -> None:
    """Reset the singleton (for testing)."""
    global _sign_off_metrics_collector
    with _metrics_lock:
        _sign_off_metrics_collector = None
