"""Unit tests for training-cycle classification."""

from uuid import uuid4

from training_signoff.domain.models import ALL_YEARS
from training_signoff.domain.services import (
    available_training_years,
    cycle_summary,
    filter_cycle,
    is_in_cycle,
)
from tests.helpers.builders import make_assignment


class TestIsInCycle:
    def test_year_and_flag_must_match(self) -> None:
        assignment = make_assignment(training_year=2024, active_cycle=True)

        assert is_in_cycle(assignment, 2024, True) is True
        assert is_in_cycle(assignment, 2023, True) is False
        assert is_in_cycle(assignment, 2024, False) is False

    def test_all_years(self) -> None:
        assignment = make_assignment(training_year=2019, active_cycle=False)

        assert is_in_cycle(assignment, ALL_YEARS, False) is True


class TestFilterCycle:
    def test_skips_deleted_and_keeps_order(self) -> None:
        trainee = uuid4()
        first = make_assignment(trainee, training_year=2024)
        deleted = make_assignment(trainee, training_year=2024, deleted=True)
        other_year = make_assignment(trainee, training_year=2023)
        second = make_assignment(trainee, training_year=2024)

        assert filter_cycle([first, deleted, other_year, second], 2024, True) == [first, second]


class TestAvailableYears:
    def test_distinct_descending(self) -> None:
        assignments = [
            make_assignment(training_year=2022),
            make_assignment(training_year=2024),
            make_assignment(training_year=2022, active_cycle=False),
            make_assignment(training_year=2025, deleted=True),
        ]

        assert available_training_years(assignments) == [2024, 2022]


class TestCycleSummary:
    def test_counts(self) -> None:
        assignments = [
            make_assignment(active_cycle=True),
            make_assignment(active_cycle=False),
            make_assignment(active_cycle=False),
            make_assignment(active_cycle=True, deleted=True),
        ]

        summary = cycle_summary(assignments)

        assert summary.active_count == 1
        assert summary.archived_count == 2
        assert summary.total_count == 3
