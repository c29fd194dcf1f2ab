"""
Board Insights Hub — Structural Analyzer
==========================================

Scores a board's shape:
  Columns  (0-100): 70% essential column types present, 30% column count
  Groups   (0-100): 60% alignment with a known workflow template, 40% balance
  Workflow (0-100): share of items with status, owner and due date filled in

Functions:
  analyze_columns()             - Missing essentials, duplicates, recommendations
  calculate_column_efficiency() - Column score
  analyze_groups()              - Template match, item distribution, group score
  analyze_workflow_efficiency() - Data completeness per item
"""
from __future__ import annotations

from collections import Counter
from typing import List, Optional, Sequence

from models.analysis_models import (
    ColumnAnalysis,
    GroupAnalysis,
    GroupDistribution,
    IncompleteItem,
    RecommendedColumn,
    WorkflowAnalysis,
)
from models.board_models import Column, ColumnType, ColumnValue, Group, Item
from scripts.lib.logger import setup_logger
from scripts.lib.utils import round_half_up

logger = setup_logger(__name__)

ESSENTIAL_COLUMN_TYPES = [
    ColumnType.STATUS,
    ColumnType.PEOPLE,
    ColumnType.DATE,
    ColumnType.NUMBERS,
]

RECOMMENDED_COLUMN_TITLES = {
    ColumnType.STATUS: "Status",
    ColumnType.PEOPLE: "Owner",
    ColumnType.DATE: "Due Date",
    ColumnType.NUMBERS: "Time Estimate",
}

OPTIMAL_COLUMN_COUNT = 10

WORKFLOW_TEMPLATES = [
    ["Backlog", "To Do", "In Progress", "Done"],
    ["Planning", "Development", "Testing", "Deployment"],
    ["Not Started", "Working on it", "Stuck", "Done"],
]

WORKFLOW_MATCH_THRESHOLD = 0.5
UNMATCHED_ALIGNMENT_SCORE = 0.3
OVERLOADED_GROUP_SIZE = 20


def _clamp_score(raw: float) -> int:
    return min(100, max(0, round_half_up(raw)))


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------

def calculate_column_efficiency(column_count: int, missing_count: int) -> int:
    has_essentials = len(ESSENTIAL_COLUMN_TYPES) - missing_count
    if column_count <= OPTIMAL_COLUMN_COUNT:
        count_score = 1.0
    else:
        count_score = 1 - (column_count - OPTIMAL_COLUMN_COUNT) / 10
    count_score = min(1.0, max(0.0, count_score))

    efficiency = (
        has_essentials / len(ESSENTIAL_COLUMN_TYPES) * 0.7 + count_score * 0.3
    ) * 100
    return _clamp_score(efficiency)


def analyze_columns(columns: Sequence[Column]) -> ColumnAnalysis:
    existing = {c.type for c in columns}
    missing = [t for t in ESSENTIAL_COLUMN_TYPES if t not in existing]

    # Each duplicated title is reported once, in first-seen order
    title_counts = Counter(c.title.lower() for c in columns)
    duplicates: List[str] = []
    for column in columns:
        title = column.title.lower()
        if title_counts[title] > 1 and title not in duplicates:
            duplicates.append(title)

    return ColumnAnalysis(
        missing_essential_columns=missing,
        duplicate_columns=duplicates,
        recommended_additions=[
            RecommendedColumn(type=t, title=RECOMMENDED_COLUMN_TITLES[t]) for t in missing
        ],
        efficiency=calculate_column_efficiency(len(columns), len(missing)),
    )


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------

def match_workflow_template(group_titles: Sequence[str]) -> tuple[Optional[List[str]], float]:
    """Return (best template, score). First template wins ties; None if nothing matches."""
    lowered = [t.lower() for t in group_titles]
    best: Optional[List[str]] = None
    best_score = 0.0

    for template in WORKFLOW_TEMPLATES:
        matched = sum(
            1 for stage in template
            if any(stage.lower() in title for title in lowered)
        )
        score = matched / len(template)
        if score > best_score:
            best_score = score
            best = template

    return best, best_score


def analyze_groups(groups: Sequence[Group], items: Sequence[Item]) -> GroupAnalysis:
    best, match_score = match_workflow_template([g.title for g in groups])
    matches_known = match_score > WORKFLOW_MATCH_THRESHOLD

    counts = Counter(item.group_id for item in items if item.group_id)
    distribution = [
        GroupDistribution(group_id=g.id, group_name=g.title, item_count=counts.get(g.id, 0))
        for g in groups
    ]
    imbalanced = [
        g for g in distribution
        if g.item_count > OVERLOADED_GROUP_SIZE
        or (g.item_count == 0 and g.group_name.lower() != "done")
    ]

    alignment = match_score if matches_known else UNMATCHED_ALIGNMENT_SCORE
    if groups:
        distribution_score = 1 - len(imbalanced) / len(groups)
    else:
        distribution_score = 1.0

    efficiency = (alignment * 0.6 + distribution_score * 0.4) * 100

    return GroupAnalysis(
        matches_known_workflow=matches_known,
        best_match_workflow=list(best) if best else None,
        group_distribution=distribution,
        imbalanced_groups=imbalanced,
        efficiency=_clamp_score(efficiency),
    )


# ---------------------------------------------------------------------------
# Workflow completeness
# ---------------------------------------------------------------------------

def _is_status_value(cv: ColumnValue) -> bool:
    return (
        cv.type == ColumnType.STATUS
        or cv.column_id == "status"
        or cv.title.lower() == "status"
    )


def _is_owner_value(cv: ColumnValue) -> bool:
    title = cv.title.lower()
    return (
        cv.type == ColumnType.PEOPLE
        or cv.column_id == "person"
        or "owner" in title
        or "assignee" in title
    )


def _is_due_date_value(cv: ColumnValue) -> bool:
    return (
        cv.type == ColumnType.DATE
        or cv.column_id == "date"
        or "due" in cv.title.lower()
    )


def _first_text(item: Item, predicate) -> Optional[str]:
    for cv in item.column_values:
        if predicate(cv) and cv.has_text:
            return cv.text.strip()
    return None


def find_missing_fields(item: Item) -> List[str]:
    missing = []
    if _first_text(item, _is_status_value) is None:
        missing.append("status")
    if _first_text(item, _is_owner_value) is None:
        missing.append("owner")
    if _first_text(item, _is_due_date_value) is None:
        missing.append("due date")
    return missing


def analyze_workflow_efficiency(items: Sequence[Item]) -> WorkflowAnalysis:
    incomplete: List[IncompleteItem] = []
    status_counts: Counter = Counter()
    workload: Counter = Counter()

    for item in items:
        missing = find_missing_fields(item)
        if missing:
            incomplete.append(IncompleteItem(id=item.id, name=item.name, missing_fields=missing))
        status_counts[_first_text(item, _is_status_value) or "No Status"] += 1
        owners = _first_text(item, _is_owner_value)
        if owners:
            # Multi-person columns render as "Ana Diaz, Ben Ode"
            for owner in (o.strip() for o in owners.split(",")):
                if owner:
                    workload[owner] += 1
        else:
            workload["Unassigned"] += 1

    total = len(items)
    completion_rate = (total - len(incomplete)) / total if total else 0.0

    logger.debug("Completeness: %d/%d items incomplete", len(incomplete), total)
    return WorkflowAnalysis(
        total_items=total,
        incomplete_items=incomplete,
        efficiency=round_half_up(completion_rate * 100),
        status_distribution=dict(status_counts),
        workload=dict(workload),
    )
