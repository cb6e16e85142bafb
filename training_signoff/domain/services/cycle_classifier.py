"""Training-cycle classification (read side of the cycle lifecycle).

A training cycle is the pair (training_year, active_cycle). Screens filter
a trainee's assignments by a selected year (or all years) and by whether
the active or the archived cycle is shown; bulk transitions select their
targets with the same predicate.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from training_signoff.domain.models.assignment import ALL_YEARS, Assignment, YearScope


@dataclass(frozen=True, eq=True)
class CycleSummary:
    """Counts of active and archived assignments."""

    active_count: int
    archived_count: int
    total_count: int


def matches_year(assignment: Assignment, selected_year: YearScope) -> bool:
    """True if the assignment falls in the selected year (or all years)."""
    return selected_year == ALL_YEARS or assignment.training_year == selected_year


def is_in_cycle(
    assignment: Assignment,
    selected_year: YearScope,
    show_active: bool,
) -> bool:
    """True if the assignment belongs in the selected cycle view."""
    return matches_year(assignment, selected_year) and (
        assignment.active_cycle == show_active
    )


def filter_cycle(
    assignments: Iterable[Assignment],
    selected_year: YearScope,
    show_active: bool,
) -> list[Assignment]:
    """Non-deleted assignments in the selected cycle view, order preserved."""
    return [
        a
        for a in assignments
        if not a.deleted and is_in_cycle(a, selected_year, show_active)
    ]


def available_training_years(assignments: Iterable[Assignment]) -> list[int]:
    """Distinct training years, most recent first."""
    years = {a.training_year for a in assignments if not a.deleted}
    return sorted(years, reverse=True)


def cycle_summary(assignments: Iterable[Assignment]) -> CycleSummary:
    """Active/archived counts across all of a trainee's assignments."""
    active = archived = 0
    for assignment in assignments:
        if assignment.deleted:
            continue
        if assignment.active_cycle:
            active += 1
        else:
            archived += 1
    return CycleSummary(
        active_count=active,
        archived_count=archived,
        total_count=active + archived,
    )
