"""Assignment domain model and training-cycle scope.

An Assignment is one trainee's assignment of one curriculum module for
a training cycle. Its completion is always derived from its progress
units and is never stored.

Constraints:
- training_year is fixed at creation
- active_cycle changes only through cycle archive/restore transitions
- deleted assignments are ignored by every query and transition
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Literal, Union
from uuid import UUID

from training_signoff.domain.models.curriculum import CurriculumModuleRef
from training_signoff.domain.models.progress_unit import ProgressUnit

ALL_YEARS: Literal["all"] = "all"

# A single training year, or every year.
YearScope = Union[int, Literal["all"]]


def parse_year_scope(value: int | str) -> YearScope:
    """Parse a year filter as sent by a caller ("all", "2024" or 2024).

    Raises:
        ValueError: If the value is neither "all" nor an integer year.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid training year: {value!r}")
    if isinstance(value, int):
        return value
    text = value.strip().lower()
    if text == ALL_YEARS:
        return ALL_YEARS
    try:
        return int(text)
    except ValueError:
        raise ValueError(f"Invalid training year: {value!r}") from None


@dataclass(frozen=True, eq=True)
class Assignment:
    """A trainee's assignment of a curriculum module.

    Attributes:
        assignment_id: Unique identifier.
        trainee_id: Trainee the module is assigned to.
        curriculum_module: Static reference to the curriculum module.
        training_year: Training year the assignment belongs to.
        active_cycle: True while the cycle is current, False once archived.
        notes: Free-text notes kept by trainers and coordinators.
        progress_units: Ordered per-submodule progress.
        deleted: Soft-delete flag.
        created_at: When the assignment was created (UTC).
    """

    assignment_id: UUID
    trainee_id: UUID
    curriculum_module: CurriculumModuleRef
    training_year: int
    active_cycle: bool = True
    notes: str = ""
    progress_units: tuple[ProgressUnit, ...] = field(default_factory=tuple)
    deleted: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def module_id(self) -> UUID:
        """Catalog identifier of the assigned module."""
        return self.curriculum_module.module_id

    def find_unit(self, unit_id: UUID) -> ProgressUnit | None:
        """Return the progress unit with the given id, if it belongs here."""
        for unit in self.progress_units:
            if unit.unit_id == unit_id:
                return unit
        return None

    def with_active_cycle(self, active_cycle: bool) -> Assignment:
        """Return a copy moved to the given cycle state."""
        return replace(self, active_cycle=active_cycle)

    def with_unit(self, unit: ProgressUnit) -> Assignment:
        """Return a copy with one progress unit replaced by id."""
        return replace(
            self,
            progress_units=tuple(
                unit if existing.unit_id == unit.unit_id else existing
                for existing in self.progress_units
            ),
        )
