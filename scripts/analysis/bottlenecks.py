"""
Board Insights Hub — Bottleneck Ranker
========================================

A status is a bottleneck when its average dwell time exceeds 1.5x the mean
over all statuses. Terminal statuses (names containing "done" or "complete")
are never reported, but they still count towards the mean. When nothing
clears the bar, the three slowest non-terminal statuses are returned instead.
"""
from __future__ import annotations

from typing import Dict, List

from models.analysis_models import Bottleneck, StatusDuration

TERMINAL_STATUS_MARKERS = ("done", "complete")
OUTLIER_FACTOR = 1.5
FALLBACK_COUNT = 3


def is_terminal_status(status: str) -> bool:
    lowered = status.lower()
    return any(marker in lowered for marker in TERMINAL_STATUS_MARKERS)


def identify_bottlenecks(time_in_status: Dict[str, StatusDuration]) -> List[Bottleneck]:
    if not time_in_status:
        return []

    ranked = sorted(
        (
            Bottleneck(
                status=status,
                average_time_hours=duration.average_time_hours,
                item_count=duration.total_items,
            )
            for status, duration in time_in_status.items()
        ),
        key=lambda b: b.average_time_hours,
        reverse=True,
    )

    mean_hours = sum(b.average_time_hours for b in ranked) / len(ranked)
    candidates = [b for b in ranked if not is_terminal_status(b.status)]

    significant = [b for b in candidates if b.average_time_hours > mean_hours * OUTLIER_FACTOR]
    if significant:
        return significant
    return candidates[:FALLBACK_COUNT]
