"""Domain models for the training sign-off engine.

Contains immutable value objects for roles, signatures, progress units
and assignments. These models contain no infrastructure dependencies.
"""

from training_signoff.domain.models.assignment import (
    ALL_YEARS,
    Assignment,
    YearScope,
    parse_year_scope,
)
from training_signoff.domain.models.curriculum import (
    CurriculumItemRef,
    CurriculumModuleRef,
)
from training_signoff.domain.models.progress_unit import ProgressUnit
from training_signoff.domain.models.role import REQUIRED_SIGNATURE_ROLES, Role
from training_signoff.domain.models.signature import Signature

__all__: list[str] = [
    "ALL_YEARS",
    "Assignment",
    "CurriculumItemRef",
    "CurriculumModuleRef",
    "ProgressUnit",
    "REQUIRED_SIGNATURE_ROLES",
    "Role",
    "Signature",
    "YearScope",
    "parse_year_scope",
]
