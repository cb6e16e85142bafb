"""Configuration module for the training sign-off engine.

Available Configurations:
- SignOffConfig: Cycle transition fan-out and deadline, logging settings
"""

from training_signoff.config.sign_off_config import (
    DEFAULT_SIGN_OFF_CONFIG,
    TEST_SIGN_OFF_CONFIG,
    SignOffConfig,
)

__all__ = [
    "DEFAULT_SIGN_OFF_CONFIG",
    "SignOffConfig",
    "TEST_SIGN_OFF_CONFIG",
]
