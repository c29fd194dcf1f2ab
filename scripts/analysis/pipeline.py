"""
Board Insights Hub — Analysis Pipeline
========================================

Runs every analyzer over one BoardSnapshot and keeps the current result per
board.

    snapshot -> structure, transitions, time in status, bottlenecks
             -> suggestions -> AnalysisResult

run_analysis() / analyze_snapshot() are pure: same snapshot + same ``now``
gives an identical result. AnalysisStore holds the "current" analysis per
board behind generation tokens, so when two refreshes of one board overlap
only the most recently started one can become current.

Usage:
    from scripts.analysis.pipeline import AnalysisStore, refresh_analysis, run_analysis

    result = run_analysis(snapshot)

    store = AnalysisStore()
    run = await refresh_analysis(store, integration.get_board_snapshot, board_id)
"""
from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Dict, NamedTuple, Optional

from models.analysis_models import AnalysisResult, BoardAnalysis
from models.board_models import BoardSnapshot
from scripts.analysis.bottlenecks import identify_bottlenecks
from scripts.analysis.structure import (
    analyze_columns,
    analyze_groups,
    analyze_workflow_efficiency,
)
from scripts.analysis.suggestions import generate_optimization_suggestions
from scripts.analysis.time_in_status import average_time_in_status, build_item_breakdowns
from scripts.analysis.transitions import analyze_status_transitions, extract_status_changes
from scripts.lib.errors import AnalysisFailedError, BoardNotFoundError
from scripts.lib.logger import setup_logger
from scripts.lib.utils import now_utc, parse_datetime

logger = setup_logger("analysis_pipeline")


# ---------------------------------------------------------------------------
# Pure pipeline
# ---------------------------------------------------------------------------

def analyze_snapshot(snapshot: Optional[BoardSnapshot], now: Optional[datetime] = None) -> BoardAnalysis:
    """Analyze a snapshot, keeping the per-item status breakdown.

    Raises:
        BoardNotFoundError: If the snapshot is missing or has no columns,
            groups or items.
    """
    if snapshot is None:
        raise BoardNotFoundError("unknown", reason="returned no snapshot")
    if snapshot.is_empty:
        raise BoardNotFoundError(snapshot.id, reason="returned an empty snapshot")

    now = parse_datetime(now) if now else now_utc()

    columns = analyze_columns(snapshot.columns)
    groups = analyze_groups(snapshot.groups, snapshot.items)
    workflow = analyze_workflow_efficiency(snapshot.items)

    changes = extract_status_changes(snapshot.activity_logs)
    transitions = analyze_status_transitions(changes)
    breakdowns = build_item_breakdowns(changes, now)
    time_in_status = average_time_in_status(breakdowns)
    bottlenecks = identify_bottlenecks(time_in_status)

    suggestions = generate_optimization_suggestions(columns, groups, bottlenecks, workflow)

    result = AnalysisResult(
        board_id=snapshot.id,
        board_name=snapshot.name,
        evaluated_at=now,
        columns=columns,
        groups=groups,
        workflow=workflow,
        status_transitions=transitions,
        time_in_status=time_in_status,
        bottlenecks=bottlenecks,
        suggestions=suggestions,
    )
    logger.info(
        "Analyzed board %s (%s): %d items, %d status changes, "
        "%d bottlenecks, %d suggestions",
        snapshot.id, snapshot.name, len(snapshot.items), len(changes),
        len(bottlenecks), len(suggestions),
    )
    return BoardAnalysis(result=result, item_breakdowns=breakdowns)


def run_analysis(snapshot: Optional[BoardSnapshot], now: Optional[datetime] = None) -> AnalysisResult:
    return analyze_snapshot(snapshot, now).result


# ---------------------------------------------------------------------------
# Current-analysis store
# ---------------------------------------------------------------------------

@dataclass
class _BoardSlot:
    issued: int = 0
    accepted: int = 0
    analysis: Optional[BoardAnalysis] = None


class AnalysisStore:
    """Latest accepted analysis per board, last-started-run wins.

    begin() hands out a per-board token that only ever increases. complete()
    accepts a result only if its token is still the highest issued for that
    board; anything older is stale and discarded.
    """

    def __init__(self):
        self._slots: Dict[str, _BoardSlot] = {}
        self._lock = threading.Lock()

    def begin(self, board_id: str) -> int:
        with self._lock:
            slot = self._slots.setdefault(str(board_id), _BoardSlot())
            slot.issued += 1
            return slot.issued

    def complete(self, board_id: str, generation: int, analysis: BoardAnalysis) -> bool:
        with self._lock:
            slot = self._slots.setdefault(str(board_id), _BoardSlot())
            if generation != slot.issued:
                logger.warning(
                    "Discarding stale analysis for board %s (generation %d, latest %d)",
                    board_id, generation, slot.issued,
                )
                return False
            slot.accepted = generation
            slot.analysis = analysis
            return True

    def get(self, board_id: str) -> Optional[BoardAnalysis]:
        with self._lock:
            slot = self._slots.get(str(board_id))
            return slot.analysis if slot else None

    def current(self, board_id: str) -> Optional[AnalysisResult]:
        analysis = self.get(board_id)
        return analysis.result if analysis else None

    def generation(self, board_id: str) -> int:
        """Generation of the accepted analysis (0 if none)."""
        with self._lock:
            slot = self._slots.get(str(board_id))
            return slot.accepted if slot else 0


class AnalysisRun(NamedTuple):
    analysis: BoardAnalysis
    generation: int
    accepted: bool


SnapshotFetcher = Callable[[str], Awaitable[Optional[BoardSnapshot]]]


async def refresh_analysis(
    store: AnalysisStore,
    fetch_snapshot: SnapshotFetcher,
    board_id: str,
    now: Optional[datetime] = None,
) -> AnalysisRun:
    """Fetch a fresh snapshot, analyze it and offer the result to ``store``.

    Raises:
        BoardNotFoundError: The board doesn't exist or came back empty.
        AnalysisFailedError: Anything else went wrong; ``cause`` holds the
            original exception.
    """
    board_id = str(board_id)
    generation = store.begin(board_id)
    logger.info("Analysis run %d started for board %s", generation, board_id)

    try:
        snapshot = await fetch_snapshot(board_id)
        if snapshot is None:
            raise BoardNotFoundError(board_id)
        analysis = await asyncio.to_thread(analyze_snapshot, snapshot, now)
    except (BoardNotFoundError, AnalysisFailedError):
        raise
    except Exception as e:
        logger.error("Analysis run %d for board %s failed: %s", generation, board_id, e, exc_info=True)
        raise AnalysisFailedError(board_id, cause=e) from e

    accepted = store.complete(board_id, generation, analysis)
    return AnalysisRun(analysis=analysis, generation=generation, accepted=accepted)
