"""Role enumeration for sign-off participants.

Exactly three roles exist. Every progress unit needs one signature from
each of them before it can be considered complete.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """System role of a user, and the role a signature is made under.

    The value matches the role name stored by the surrounding system.
    """

    COORDINATOR = "Coordinator"
    TRAINER = "Trainer"
    TRAINEE = "Trainee"

    @classmethod
    def parse(cls, value: str | Role) -> Role:
        """Parse a role name, case-insensitively.

        Args:
            value: Role name ("Coordinator", "trainer", ...) or a Role.

        Returns:
            The matching Role.

        Raises:
            ValueError: If the name is not one of the three roles.
        """
        if isinstance(value, Role):
            return value
        normalized = value.strip().lower()
        for role in cls:
            if role.value.lower() == normalized:
                return role
        raise ValueError(f"Unknown role: {value!r}")


# Every unit must carry a signature for each of these roles.
REQUIRED_SIGNATURE_ROLES: frozenset[Role] = frozenset(Role)
