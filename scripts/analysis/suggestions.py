"""
Board Insights Hub — Suggestion Generator
===========================================

Rule table mapping analysis findings to recommendations. Suggestions are
emitted in rule order, and that order is what the dashboard shows:

  1. Structure     - one per missing essential column type
  2. Workflow      - groups don't follow a known template
  3. Workflow      - groups holding more than 20 items
  4. Bottleneck    - top two bottlenecks
  5. Data Quality  - more than 20% of items incomplete
  6. Automation    - status change notifications (always)
  7. Automation    - due date reminders (board has a date column)
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from models.analysis_models import (
    Bottleneck,
    ColumnAnalysis,
    GroupAnalysis,
    Impact,
    Suggestion,
    SuggestionCategory,
    WorkflowAnalysis,
)
from models.board_models import ColumnType
from scripts.analysis.structure import OVERLOADED_GROUP_SIZE
from scripts.lib.logger import setup_logger
from scripts.lib.utils import round_half_up

logger = setup_logger(__name__)

INCOMPLETE_PERCENT_THRESHOLD = 20
BOTTLENECK_SUGGESTION_LIMIT = 2

MISSING_COLUMN_SUGGESTIONS = {
    ColumnType.STATUS: (
        "Add Status Column",
        "Add a Status column to track the progress of items through your workflow",
        ["Track item progress", "Visualize workflow", "Enable automations"],
    ),
    ColumnType.PEOPLE: (
        "Add Owner Column",
        "Add a People column to assign ownership to items",
        ["Clear accountability", "Balance workload", "Enable filtering by owner"],
    ),
    ColumnType.DATE: (
        "Add Due Date Column",
        "Add a Date column to track deadlines",
        ["Meet deadlines", "Prioritize effectively", "Plan capacity"],
    ),
    ColumnType.NUMBERS: (
        "Add Time Estimate Column",
        "Add a Numbers column to track estimated effort/time",
        ["Improve planning", "Compare estimates vs. actuals", "Balance workload"],
    ),
}

HIGH_IMPACT_COLUMNS = (ColumnType.STATUS, ColumnType.PEOPLE)


def _column_suggestions(columns: ColumnAnalysis) -> List[Suggestion]:
    suggestions = []
    for column_type in columns.missing_essential_columns:
        template = MISSING_COLUMN_SUGGESTIONS.get(column_type)
        if template is None:
            continue
        title, description, benefits = template
        suggestions.append(Suggestion(
            category=SuggestionCategory.STRUCTURE,
            title=title,
            description=description,
            impact=Impact.HIGH if column_type in HIGH_IMPACT_COLUMNS else Impact.MEDIUM,
            benefits=list(benefits),
        ))
    return suggestions


def _group_suggestions(groups: GroupAnalysis) -> List[Suggestion]:
    suggestions = []
    if not groups.matches_known_workflow and groups.best_match_workflow:
        suggestions.append(Suggestion(
            category=SuggestionCategory.WORKFLOW,
            title="Reorganize Status Groups",
            description=(
                "Reorganize your groups to follow a more standard workflow: "
                + " → ".join(groups.best_match_workflow)
            ),
            impact=Impact.MEDIUM,
            benefits=[
                "Clearer workflow visualization",
                "Improved process understanding",
                "Better workflow analytics",
            ],
        ))

    overloaded = [
        g.group_name for g in groups.imbalanced_groups
        if g.item_count > OVERLOADED_GROUP_SIZE
    ]
    if overloaded:
        suggestions.append(Suggestion(
            category=SuggestionCategory.WORKFLOW,
            title="Balance Overloaded Groups",
            description=(
                f"The following groups have too many items (>{OVERLOADED_GROUP_SIZE}): "
                f"{', '.join(overloaded)}. Consider breaking them down further."
            ),
            impact=Impact.MEDIUM,
            benefits=[
                "Improved visibility",
                "Better manageability",
                "Reduced cognitive load",
            ],
        ))
    return suggestions


def _bottleneck_suggestions(bottlenecks: Sequence[Bottleneck]) -> List[Suggestion]:
    return [
        Suggestion(
            category=SuggestionCategory.BOTTLENECK,
            title=f'Optimize "{b.status}" Stage',
            description=(
                f"Items spend an average of {round_half_up(b.average_time_hours)} hours "
                f'in "{b.status}" status. Consider breaking down work or adding '
                "resources to this stage."
            ),
            impact=Impact.HIGH,
            benefits=[
                "Reduced cycle time",
                "Improved throughput",
                "Better workflow balance",
            ],
        )
        for b in list(bottlenecks)[:BOTTLENECK_SUGGESTION_LIMIT]
    ]


def _data_quality_suggestion(incomplete_count: int, total_items: int) -> Optional[Suggestion]:
    if not incomplete_count or not total_items:
        return None
    percentage = round_half_up(incomplete_count / total_items * 100)
    if percentage <= INCOMPLETE_PERCENT_THRESHOLD:
        return None
    return Suggestion(
        category=SuggestionCategory.DATA_QUALITY,
        title="Improve Data Completeness",
        description=(
            f"{percentage}% of items are missing critical information. Consider "
            "implementing required fields or automations to improve data quality."
        ),
        impact=Impact.MEDIUM,
        benefits=[
            "Better data for decision-making",
            "Improved reporting accuracy",
            "Enhanced workflow automation",
        ],
    )


STATUS_NOTIFICATION_SUGGESTION = Suggestion(
    category=SuggestionCategory.AUTOMATION,
    title="Implement Status Change Notifications",
    description="Create an automation to notify item owners when their items change status",
    impact=Impact.MEDIUM,
    benefits=[
        "Improved awareness",
        "Faster responses to status changes",
        "Reduced need for manual updates",
    ],
)

DUE_DATE_REMINDER_SUGGESTION = Suggestion(
    category=SuggestionCategory.AUTOMATION,
    title="Implement Due Date Reminders",
    description="Create an automation to notify item owners when due dates are approaching",
    impact=Impact.HIGH,
    benefits=[
        "Reduce missed deadlines",
        "Improve accountability",
        "Enhance priority management",
    ],
)


def generate_optimization_suggestions(
    columns: ColumnAnalysis,
    groups: GroupAnalysis,
    bottlenecks: Sequence[Bottleneck],
    workflow: WorkflowAnalysis,
    total_items: Optional[int] = None,
) -> List[Suggestion]:
    """Build the ordered suggestion list for one analysis run.

    ``total_items`` defaults to the item count recorded in ``workflow``.
    """
    if total_items is None:
        total_items = workflow.total_items

    suggestions: List[Suggestion] = []
    suggestions.extend(_column_suggestions(columns))
    suggestions.extend(_group_suggestions(groups))
    suggestions.extend(_bottleneck_suggestions(bottlenecks))

    data_quality = _data_quality_suggestion(len(workflow.incomplete_items), total_items)
    if data_quality:
        suggestions.append(data_quality)

    suggestions.append(STATUS_NOTIFICATION_SUGGESTION)
    if ColumnType.DATE not in columns.missing_essential_columns:
        suggestions.append(DUE_DATE_REMINDER_SUGGESTION)

    logger.debug("Generated %d suggestions", len(suggestions))
    return suggestions
