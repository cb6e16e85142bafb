"""Bootstrap wiring for logging configuration."""

from __future__ import annotations

from training_signoff.config.sign_off_config import SignOffConfig
from training_signoff.infrastructure.observability import (
    configure_structlog as _configure_structlog,
)


def configure_logging(config: SignOffConfig | None = None) -> None:
    """Configure structlog from config (or from the environment)."""
    config = config or SignOffConfig.from_environment()
    _configure_structlog(environment=config.environment, log_level=config.log_level)


__all__ = ["configure_logging"]
