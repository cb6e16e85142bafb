"""Sign-off engine configuration.

Defines the bulk cycle transition fan-out and deadline plus the logging
settings, with environment variable overrides for production tuning.

Environment Variables:
- CYCLE_TRANSITION_MAX_CONCURRENCY: Max per-assignment updates in flight (default: 10)
- CYCLE_TRANSITION_DEADLINE_SECONDS: Seconds to wait for updates before
  reporting stragglers as unconfirmed; 0 waits indefinitely (default: 30.0)
- LOG_LEVEL: structlog filtering level (default: INFO)
- ENVIRONMENT: "production" for JSON logs, anything else for console (default: production)

Database settings (DATABASE_URL, SQLALCHEMY_ECHO) are read by
training_signoff.bootstrap.database.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float environment variable with default."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class SignOffConfig:
    """Configuration for the sign-off engine.

    Attributes:
        max_concurrency: Maximum repository updates a cycle transition
            dispatches at once.
        deadline_seconds: How long a cycle transition waits for its
            updates. Updates still running when it expires keep running
            but are reported as unconfirmed. None waits for every update.
        log_level: Name of the minimum log level.
        environment: Deployment environment, selects the log renderer.
    """

    max_concurrency: int = 10
    deadline_seconds: float | None = 30.0
    log_level: str = "INFO"
    environment: str = "production"

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_concurrency < 1:
            raise ValueError(
                f"max_concurrency must be at least 1, got {self.max_concurrency}"
            )
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ValueError(
                f"deadline_seconds must be positive or None, got {self.deadline_seconds}"
            )
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log_level: {self.log_level}")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_environment(cls) -> "SignOffConfig":
        """Create config from environment variables with defaults.

        A deadline of 0 (or less) in the environment disables the deadline.
        """
        deadline = _get_float_env("CYCLE_TRANSITION_DEADLINE_SECONDS", 30.0)
        return cls(
            max_concurrency=_get_int_env("CYCLE_TRANSITION_MAX_CONCURRENCY", 10),
            deadline_seconds=deadline if deadline > 0 else None,
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            environment=os.environ.get("ENVIRONMENT", "production").lower(),
        )


# Default configuration
DEFAULT_SIGN_OFF_CONFIG = SignOffConfig()

# Test configuration: small fan-out, short deadline, console logs
TEST_SIGN_OFF_CONFIG = SignOffConfig(
    max_concurrency=2,
    deadline_seconds=1.0,
    log_level="DEBUG",
    environment="test",
)
