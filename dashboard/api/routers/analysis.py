"""
Board Insights Hub — Analysis Router
======================================
Runs the workflow analysis pipeline on live board data and serves the
current analysis of each board.

Endpoints:
  POST /api/analysis/{board_id}/run                - Fetch + analyze now
  GET  /api/analysis/{board_id}                    - Current AnalysisResult
  GET  /api/analysis/{board_id}/bottlenecks        - Ranked bottlenecks
  GET  /api/analysis/{board_id}/suggestions        - Ordered suggestions
  GET  /api/analysis/{board_id}/items/{item_id}    - One item's time in status

Only the most recently started run of a board can become its current
analysis; an older run that finishes later is reported as stale.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from dashboard.api.state import get_integration, get_store, http_error
from dashboard.api.websocket import ws_manager
from models.analysis_models import AnalysisResult, SuggestionCategory
from scripts.analysis.pipeline import AnalysisStore, refresh_analysis
from scripts.lib.errors import HubError
from scripts.lib.logger import setup_logger

logger = setup_logger("analysis_router")

router = APIRouter(prefix="/api/analysis", tags=["analysis"])


def _current(store: AnalysisStore, board_id: str) -> AnalysisResult:
    result = store.current(board_id)
    if result is None:
        raise HTTPException(
            status_code=404,
            detail=f"No analysis for board {board_id}. POST /api/analysis/{board_id}/run first.",
        )
    return result


@router.post("/{board_id}/run")
async def run_board_analysis(board_id: str, request: Request):
    """Fetch a fresh snapshot and analyze it."""
    integration = get_integration(request)
    store = get_store(request)
    try:
        run = await refresh_analysis(store, integration.get_board_snapshot, board_id)
    except HubError as e:
        logger.error("Analysis run for board %s failed: %s", board_id, e)
        raise http_error(e)

    await ws_manager.announce_run(run)
    return {
        "board_id": board_id,
        "generation": run.generation,
        "accepted": run.accepted,
        "result": run.analysis.result.model_dump(mode="json"),
    }


@router.get("/{board_id}")
async def get_analysis(board_id: str, request: Request):
    store = get_store(request)
    result = _current(store, board_id)
    return {
        **result.model_dump(mode="json"),
        "overall_efficiency": result.overall_efficiency,
        "generation": store.generation(board_id),
    }


@router.get("/{board_id}/bottlenecks")
async def get_bottlenecks(board_id: str, request: Request):
    result = _current(get_store(request), board_id)
    return {
        "results": [b.model_dump() for b in result.bottlenecks],
        "count": len(result.bottlenecks),
    }


@router.get("/{board_id}/suggestions")
async def get_suggestions(
    board_id: str,
    request: Request,
    category: Optional[SuggestionCategory] = Query(None, description="Filter by category"),
):
    """Suggestions in priority order, optionally for one category."""
    result = _current(get_store(request), board_id)
    suggestions = [
        s for s in result.suggestions if category is None or s.category == category
    ]
    return {
        "results": [s.model_dump(mode="json") for s in suggestions],
        "count": len(suggestions),
    }


@router.get("/{board_id}/items/{item_id}")
async def get_item_breakdown(board_id: str, item_id: str, request: Request):
    """Hours one item spent in each status, as of the current analysis."""
    store = get_store(request)
    _current(store, board_id)
    breakdown = store.get(board_id).item(item_id)
    if breakdown is None:
        raise HTTPException(status_code=404, detail=f"No status history for item {item_id}")
    return {
        **breakdown.model_dump(mode="json"),
        "total_hours": breakdown.total_hours,
    }
