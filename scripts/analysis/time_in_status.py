"""
Board Insights Hub — Time-in-Status Aggregator
================================================

Turns status changes into dwell times. For each item, every change opens an
interval in its new status that closes at the item's next change; the last
status stays open until the evaluation instant ``now``.

Because the open interval runs to ``now``, results differ between calls made
at different instants even on the same snapshot. Pass ``now`` explicitly to
get repeatable numbers.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from models.analysis_models import ItemStatusBreakdown, StatusChange, StatusDuration
from scripts.lib.logger import setup_logger
from scripts.lib.utils import now_utc, parse_datetime

logger = setup_logger(__name__)


def _hours_between(start: datetime, end: datetime) -> float:
    return max(0.0, (end - start).total_seconds() / 3600)


def build_item_breakdowns(
    changes: Iterable[StatusChange],
    now: Optional[datetime] = None,
) -> List[ItemStatusBreakdown]:
    """Per-item hours in each status, items in first-seen order."""
    now = parse_datetime(now) if now else now_utc()

    by_item: Dict[str, List[StatusChange]] = {}
    for change in changes:
        if not change.item_id:
            continue
        by_item.setdefault(change.item_id, []).append(change)

    breakdowns: List[ItemStatusBreakdown] = []
    for item_id, item_changes in by_item.items():
        ordered = sorted(item_changes, key=lambda c: c.timestamp)
        durations: Dict[str, float] = defaultdict(float)

        for current, following in zip(ordered, ordered[1:]):
            if not current.new_status:
                continue
            hours = _hours_between(current.timestamp, following.timestamp)
            if hours > 0:
                durations[current.new_status] += hours

        last = ordered[-1]
        if last.new_status:
            hours = _hours_between(last.timestamp, now)
            if hours > 0:
                durations[last.new_status] += hours

        breakdowns.append(ItemStatusBreakdown(
            item_id=item_id,
            item_name=ordered[0].item_name,
            status_durations=dict(durations),
            first_transition_at=ordered[0].timestamp,
            current_status=last.new_status,
        ))

    return breakdowns


def average_time_in_status(breakdowns: Iterable[ItemStatusBreakdown]) -> Dict[str, StatusDuration]:
    """Average hours per status over the items that spent time in it."""
    totals: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)

    for breakdown in breakdowns:
        for status, hours in breakdown.status_durations.items():
            totals[status] += hours
            counts[status] += 1

    return {
        status: StatusDuration(
            average_time_hours=totals[status] / counts[status],
            total_items=counts[status],
        )
        for status in totals
    }


def calculate_time_in_status(
    changes: Iterable[StatusChange],
    now: Optional[datetime] = None,
) -> Dict[str, StatusDuration]:
    breakdowns = build_item_breakdowns(changes, now)
    averages = average_time_in_status(breakdowns)
    logger.debug(
        "Time in status: %d statuses across %d items", len(averages), len(breakdowns),
    )
    return averages
