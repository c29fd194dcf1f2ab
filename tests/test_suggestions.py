"""Tests for suggestion generation order and content."""

from models.analysis_models import (
    Bottleneck,
    ColumnAnalysis,
    GroupAnalysis,
    GroupDistribution,
    Impact,
    IncompleteItem,
    SuggestionCategory,
    WorkflowAnalysis,
)
from models.board_models import ColumnType
from scripts.analysis.suggestions import generate_optimization_suggestions

TEMPLATE = ["Backlog", "To Do", "In Progress", "Done"]


def _workflow(total, incomplete):
    return WorkflowAnalysis(
        total_items=total,
        incomplete_items=[IncompleteItem(id=str(i), name=f"Item {i}", missing_fields=["owner"])
                          for i in range(incomplete)],
    )


def _groups(matched=True, overloaded=()):
    imbalanced = [GroupDistribution(group_id=n, group_name=n, item_count=25) for n in overloaded]
    return GroupAnalysis(
        matches_known_workflow=matched,
        best_match_workflow=TEMPLATE,
        group_distribution=imbalanced,
        imbalanced_groups=imbalanced,
    )


class TestGenerateSuggestions:
    def test_everything_fires_in_order(self):
        columns = ColumnAnalysis(missing_essential_columns=[ColumnType.STATUS, ColumnType.NUMBERS])
        bottlenecks = [
            Bottleneck(status="Review", average_time_hours=72.5, item_count=4),
            Bottleneck(status="QA", average_time_hours=40.2, item_count=2),
            Bottleneck(status="Stuck", average_time_hours=30.0, item_count=1),
        ]
        suggestions = generate_optimization_suggestions(
            columns, _groups(matched=False, overloaded=["Inbox"]), bottlenecks, _workflow(10, 3),
        )
        assert [s.title for s in suggestions] == [
            "Add Status Column",
            "Add Time Estimate Column",
            "Reorganize Status Groups",
            "Balance Overloaded Groups",
            'Optimize "Review" Stage',
            'Optimize "QA" Stage',
            "Improve Data Completeness",
            "Implement Status Change Notifications",
            "Implement Due Date Reminders",
        ]
        assert [s.impact for s in suggestions[:2]] == [Impact.HIGH, Impact.MEDIUM]

    def test_minimal_board_gets_only_automation(self):
        suggestions = generate_optimization_suggestions(
            ColumnAnalysis(), _groups(), [], _workflow(10, 0),
        )
        assert [s.category for s in suggestions] == [SuggestionCategory.AUTOMATION] * 2

    def test_due_date_reminder_needs_date_column(self):
        columns = ColumnAnalysis(missing_essential_columns=[ColumnType.DATE])
        titles = [s.title for s in generate_optimization_suggestions(
            columns, _groups(), [], _workflow(0, 0),
        )]
        assert "Add Due Date Column" in titles
        assert "Implement Due Date Reminders" not in titles

    def test_template_stages_named_in_order(self):
        suggestions = generate_optimization_suggestions(
            ColumnAnalysis(), _groups(matched=False), [], _workflow(1, 0),
        )
        assert suggestions[0].description.endswith("Backlog → To Do → In Progress → Done")

    def test_bottleneck_hours_are_rounded(self):
        suggestions = generate_optimization_suggestions(
            ColumnAnalysis(), _groups(),
            [Bottleneck(status="Review", average_time_hours=72.5, item_count=4)],
            _workflow(1, 0),
        )
        assert "72.5" not in suggestions[0].description
        assert "average of 73 hours" in suggestions[0].description

    def test_data_quality_threshold_is_strict(self):
        exactly_20 = generate_optimization_suggestions(
            ColumnAnalysis(), _groups(), [], _workflow(10, 2),
        )
        assert all(s.category != SuggestionCategory.DATA_QUALITY for s in exactly_20)

        over_20 = generate_optimization_suggestions(
            ColumnAnalysis(), _groups(), [], _workflow(100, 21),
        )
        (quality,) = [s for s in over_20 if s.category == SuggestionCategory.DATA_QUALITY]
        assert quality.description.startswith("21% of items")

    def test_no_items_skips_data_quality(self):
        suggestions = generate_optimization_suggestions(
            ColumnAnalysis(), _groups(), [], _workflow(0, 0),
        )
        assert all(s.category != SuggestionCategory.DATA_QUALITY for s in suggestions)
