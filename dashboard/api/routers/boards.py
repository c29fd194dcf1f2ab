"""
Board Insights Hub — Boards Router
====================================
Live Monday.com board listing for the board picker.

Endpoints:
  GET /api/boards             - Boards visible to the API token
  GET /api/boards/{board_id}  - Structure summary of one board's snapshot
"""
from __future__ import annotations

from fastapi import APIRouter, Request

from dashboard.api.state import get_integration, http_error
from scripts.lib.errors import ConfigError, HubError
from scripts.lib.logger import setup_logger

logger = setup_logger("boards_router")

router = APIRouter(prefix="/api/boards", tags=["boards"])


@router.get("")
async def list_boards(request: Request):
    """List boards. Empty when Monday.com isn't configured."""
    integration = getattr(request.app.state, "monday", None)
    if integration is None:
        raise http_error(ConfigError("Monday.com integration not loaded"))
    try:
        boards = await integration.get_boards()
    except HubError as e:
        logger.error("List boards failed: %s", e)
        raise http_error(e)
    return {
        "results": [b.model_dump() for b in boards],
        "count": len(boards),
        "configured": integration.is_configured,
    }


@router.get("/{board_id}")
async def get_board(board_id: str, request: Request):
    """Columns, groups and counts from a fresh snapshot of the board."""
    integration = get_integration(request)
    try:
        snapshot = await integration.get_board_snapshot(board_id)
    except HubError as e:
        logger.error("Get board %s failed: %s", board_id, e)
        raise http_error(e)

    return {
        "id": snapshot.id,
        "name": snapshot.name,
        "columns": [
            {"id": c.id, "title": c.title, "type": c.type.value} for c in snapshot.columns
        ],
        "groups": [
            {"id": g.id, "title": g.title, "color": g.color} for g in snapshot.groups
        ],
        "item_count": len(snapshot.items),
        "activity_log_count": len(snapshot.activity_logs),
    }
