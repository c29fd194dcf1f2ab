"""Tests for the time-in-status aggregator."""

from datetime import timedelta

import pytest
from conftest import NOW, hours_before

from models.analysis_models import StatusChange
from scripts.analysis.time_in_status import (
    average_time_in_status,
    build_item_breakdowns,
    calculate_time_in_status,
)
from scripts.analysis.transitions import extract_status_changes


def _change(item_id, previous, new, hours_ago, name=None):
    return StatusChange(
        item_id=item_id,
        item_name=name or f"Item {item_id}",
        previous_status=previous,
        new_status=new,
        timestamp=hours_before(hours_ago),
    )


class TestItemBreakdowns:
    def test_intervals_close_at_next_change_and_now(self):
        changes = [
            _change("1", None, "To Do", 10),
            _change("1", "To Do", "In Progress", 6),
        ]
        (breakdown,) = build_item_breakdowns(changes, NOW)
        assert breakdown.status_durations == {"To Do": 4.0, "In Progress": 6.0}
        assert breakdown.current_status == "In Progress"

    def test_naive_now_counts_as_utc(self):
        changes = [
            _change("1", None, "To Do", 10),
            _change("1", "To Do", "In Progress", 6),
        ]
        (breakdown,) = build_item_breakdowns(changes, NOW.replace(tzinfo=None))
        assert breakdown.status_durations == {"To Do": 4.0, "In Progress": 6.0}

    def test_unsorted_input_is_sorted_per_item(self):
        changes = [
            _change("1", "To Do", "Done", 2),
            _change("1", None, "To Do", 5),
        ]
        (breakdown,) = build_item_breakdowns(changes, NOW)
        assert breakdown.status_durations == {"To Do": 3.0, "Done": 2.0}

    def test_items_in_first_seen_order(self):
        changes = [
            _change("b", None, "To Do", 3),
            _change("a", None, "To Do", 2),
            _change("b", "To Do", "Done", 1),
        ]
        assert [b.item_id for b in build_item_breakdowns(changes, NOW)] == ["b", "a"]

    def test_changes_without_item_are_skipped(self):
        changes = [_change(None, None, "To Do", 3)]
        assert build_item_breakdowns(changes, NOW) == []

    def test_now_before_last_change_clamps_to_zero(self):
        changes = [_change("1", None, "To Do", 3)]
        (breakdown,) = build_item_breakdowns(changes, NOW - timedelta(hours=5))
        assert breakdown.status_durations == {}

    def test_repeated_status_accumulates(self):
        changes = [
            _change("1", None, "Stuck", 10),
            _change("1", "Stuck", "Working", 8),
            _change("1", "Working", "Stuck", 5),
        ]
        (breakdown,) = build_item_breakdowns(changes, NOW)
        assert breakdown.status_durations == {"Stuck": 7.0, "Working": 3.0}

    def test_completeness_invariant(self, busy_snapshot):
        changes = extract_status_changes(busy_snapshot.activity_logs)
        for breakdown in build_item_breakdowns(changes, NOW):
            elapsed = (NOW - breakdown.first_transition_at).total_seconds() / 3600
            assert breakdown.total_hours == pytest.approx(elapsed)


class TestAverages:
    def test_average_over_contributing_items(self):
        changes = [
            _change("1", None, "Review", 10),
            _change("1", "Review", "Done", 4),
            _change("2", None, "Review", 3),
            _change("2", "Review", "Done", 1),
        ]
        averages = calculate_time_in_status(changes, NOW)
        assert averages["Review"].average_time_hours == pytest.approx(4.0)
        assert averages["Review"].total_items == 2
        assert averages["Done"].average_time_hours == pytest.approx(2.5)

    def test_zero_intervals_do_not_count(self):
        changes = [
            _change("1", None, "To Do", 4),
            _change("1", "To Do", "Doing", 4),
        ]
        averages = average_time_in_status(build_item_breakdowns(changes, NOW))
        assert "To Do" not in averages
        assert averages["Doing"].total_items == 1

    def test_empty(self):
        assert calculate_time_in_status([], NOW) == {}

    def test_results_depend_on_now(self):
        changes = [_change("1", None, "To Do", 2)]
        earlier = calculate_time_in_status(changes, NOW)
        later = calculate_time_in_status(changes, NOW + timedelta(hours=2))
        assert earlier["To Do"].average_time_hours == pytest.approx(2.0)
        assert later["To Do"].average_time_hours == pytest.approx(4.0)
