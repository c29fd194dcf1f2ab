"""
Board Insights Hub — Assistant Router
=======================================
Free-text questions about boards, answered from the current analysis.

Endpoints:
  POST /api/assistant/classify  - Intent + entities for a query
  POST /api/assistant/query     - Classified query plus templated answer

With ``auto_analyze`` set, a query that needs an analysis the board doesn't
have yet runs the chain fetch snapshot -> analyze -> answer in one request.
"""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Request

from dashboard.api.state import get_store, http_error
from dashboard.api.websocket import ws_manager
from models.analysis_models import AnalysisResult
from models.assistant_models import ClassifyRequest, QueryRequest
from models.board_models import BoardSummary
from scripts.analysis.pipeline import refresh_analysis
from scripts.assistant.intents import classify_query
from scripts.assistant.responses import generate_response, resolve_board_id
from scripts.lib.errors import HubError
from scripts.lib.logger import setup_logger

logger = setup_logger("assistant_router")

router = APIRouter(prefix="/api/assistant", tags=["assistant"])


async def _board_list(request: Request) -> List[BoardSummary]:
    integration = getattr(request.app.state, "monday", None)
    if integration is None or not integration.is_configured:
        return []
    try:
        return await integration.get_boards()
    except HubError as e:
        logger.warning("Board list unavailable, answering without it: %s", e)
        return []


@router.post("/classify")
async def classify(req: ClassifyRequest):
    return classify_query(req.query).model_dump(mode="json")


@router.post("/query")
async def query(req: QueryRequest, request: Request):
    classification = classify_query(req.query)
    boards = await _board_list(request)
    store = get_store(request)

    board_id = resolve_board_id(classification.entities, req.board_id, boards)
    analysis: Optional[AnalysisResult] = store.current(board_id) if board_id else None

    integration = getattr(request.app.state, "monday", None)
    if (
        req.auto_analyze
        and classification.requires_analysis
        and board_id
        and analysis is None
        and integration is not None
        and integration.is_configured
    ):
        try:
            run = await refresh_analysis(store, integration.get_board_snapshot, board_id)
        except HubError as e:
            logger.error("Auto-analysis of board %s failed: %s", board_id, e)
            raise http_error(e)
        await ws_manager.announce_run(run)
        analysis = store.current(board_id)

    response = generate_response(classification, analysis, req.board_id, boards)
    logger.info(
        "Query %r -> %s (board %s, analysis %s)",
        req.query, classification.intent.value, board_id or "-",
        "yes" if analysis else "no",
    )
    return {
        "classification": classification.model_dump(mode="json"),
        "response": response.model_dump(mode="json"),
    }
