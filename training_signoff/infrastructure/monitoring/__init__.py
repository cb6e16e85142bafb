"""Prometheus monitoring for the sign-off engine."""

from training_signoff.infrastructure.monitoring.sign_off_metrics import (
    SignOffMetricsCollector,
    get_sign_off_metrics_collector,
    reset_sign_off_metrics_collector,
)

__all__: list[str] = [
    "SignOffMetricsCollector",
    "get_sign_off_metrics_collector",
    "reset_sign_off_metrics_collector",
]
