"""Progress unit domain model.

A ProgressUnit is one trainee's progress on one curriculum submodule:
the on-the-job-training flag, the practical flag, and the sign-offs.

Constraints:
- signatures hold at most one entry per role and per signer when
  written through the repository
- mutated only by progress toggles and by the signature ledger
- never deleted on its own, only together with its assignment
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from uuid import UUID

from training_signoff.domain.models.curriculum import CurriculumItemRef
from training_signoff.domain.models.role import Role
from training_signoff.domain.models.signature import Signature


@dataclass(frozen=True, eq=True)
class ProgressUnit:
    """Trainee-specific progress on a curriculum item.

    Attributes:
        unit_id: Unique identifier for this unit.
        assignment_id: Owning assignment.
        trainee_id: Trainee who owns the parent assignment.
        curriculum_item: Reference to the static curriculum submodule.
        ojt_done: On-the-job training completed.
        practical_done: Practical completed; only meaningful when the
            curriculum item requires a practical.
        signatures: Sign-offs attached to this unit, in signing order.
    """

    unit_id: UUID
    assignment_id: UUID
    trainee_id: UUID
    curriculum_item: CurriculumItemRef
    ojt_done: bool = False
    practical_done: bool = False
    signatures: tuple[Signature, ...] = field(default_factory=tuple)

    @property
    def requires_practical(self) -> bool:
        """Whether the curriculum item requires a practical."""
        return self.curriculum_item.requires_practical

    @property
    def signed_roles(self) -> frozenset[Role]:
        """Distinct roles that hold at least one signature."""
        return frozenset(sig.role for sig in self.signatures)

    def duplicate_roles(self) -> frozenset[Role]:
        """Roles carrying more than one signature.

        Should always be empty; non-empty means the storage layer let a
        duplicate through.
        """
        counts = Counter(sig.role for sig in self.signatures)
        return frozenset(role for role, count in counts.items() if count > 1)

    def with_signatures(self, signatures: tuple[Signature, ...]) -> ProgressUnit:
        """Return a copy with the given signature set."""
        return replace(self, signatures=signatures)

    def with_progress(
        self,
        ojt_done: bool | None = None,
        practical_done: bool | None = None,
    ) -> ProgressUnit:
        """Return a copy with updated progress flags (None leaves a flag as is)."""
        return replace(
            self,
            ojt_done=self.ojt_done if ojt_done is None else ojt_done,
            practical_done=(
                self.practical_done if practical_done is None else practical_done
            ),
        )
