"""Tests for the bottleneck ranker."""

import pytest

from models.analysis_models import StatusDuration
from scripts.analysis.bottlenecks import identify_bottlenecks, is_terminal_status


def _durations(**hours):
    return {
        status.replace("_", " "): StatusDuration(average_time_hours=h, total_items=1)
        for status, h in hours.items()
    }


class TestIdentifyBottlenecks:
    def test_falls_back_to_top_three_non_terminal(self):
        # mean 68, threshold 102: nothing clears it
        time_in_status = _durations(ToDo=10, InProgress=50, Review=12, Done=200)
        result = identify_bottlenecks(time_in_status)
        assert [(b.status, b.average_time_hours) for b in result] == [
            ("InProgress", 50), ("Review", 12), ("ToDo", 10),
        ]

    def test_significant_outliers_only(self):
        time_in_status = _durations(To_Do=2, Review=100, QA=4, Stuck=3)
        result = identify_bottlenecks(time_in_status)
        assert [b.status for b in result] == ["Review"]

    def test_terminal_statuses_excluded_but_counted_in_mean(self):
        time_in_status = _durations(Done=1000, Completed=900, Review=10)
        result = identify_bottlenecks(time_in_status)
        assert [b.status for b in result] == ["Review"]

    @pytest.mark.parametrize("hours", [
        {"Done": 5.0},
        {"Almost Done": 50.0, "To Do": 1.0},
        {"Complete": 2.0, "incomplete review": 9.0, "Stuck": 1.0},
    ])
    def test_no_terminal_status_is_ever_reported(self, hours):
        time_in_status = {
            s: StatusDuration(average_time_hours=h, total_items=1) for s, h in hours.items()
        }
        for bottleneck in identify_bottlenecks(time_in_status):
            assert "done" not in bottleneck.status.lower()
            assert "complete" not in bottleneck.status.lower()

    def test_empty(self):
        assert identify_bottlenecks({}) == []

    def test_item_count_carried(self):
        time_in_status = {"Review": StatusDuration(average_time_hours=3, total_items=7)}
        (bottleneck,) = identify_bottlenecks(time_in_status)
        assert bottleneck.item_count == 7


class TestTerminalStatus:
    @pytest.mark.parametrize("status, terminal", [
        ("Done", True),
        ("DONE!", True),
        ("Completed", True),
        ("Incomplete", True),
        ("In Progress", False),
    ])
    def test_substring_match(self, status, terminal):
        assert is_terminal_status(status) is terminal
