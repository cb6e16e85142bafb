"""Curriculum reference data.

The curriculum catalog (modules and their submodules) is maintained
outside this engine. These value objects are the read-only view the
engine needs: identity, labels, and whether a practical is required.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True, eq=True)
class CurriculumItemRef:
    """A curriculum submodule.

    Attributes:
        item_id: Catalog identifier of the submodule.
        code: Short code shown to users (e.g. "1.2").
        title: Human-readable title.
        requires_practical: Whether a practical must be passed before the
            unit can be complete.
    """

    item_id: UUID
    code: str
    title: str
    requires_practical: bool = False


@dataclass(frozen=True, eq=True)
class CurriculumModuleRef:
    """A curriculum module and its ordered submodules."""

    module_id: UUID
    name: str
    items: tuple[CurriculumItemRef, ...] = field(default_factory=tuple)
