"""
Board Insights Hub — WebSocket Manager
========================================
Pushes analysis run outcomes to connected dashboards.

Events:
    connected          - sent once on connect
    analysis_complete  - a run finished and became the board's current analysis
    analysis_stale     - a run finished but a newer run of the same board
                         had already started, so its result was discarded
    pong               - reply to {"type": "ping"}

Usage:
    from dashboard.api.websocket import ws_manager, websocket_endpoint

    await ws_manager.broadcast({"event": "analysis_complete", "data": {...}})

    app.add_api_websocket_route("/ws/dashboard", websocket_endpoint)
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Set

from fastapi import WebSocket, WebSocketDisconnect

from scripts.analysis.pipeline import AnalysisRun
from scripts.lib.logger import get_logger

logger = get_logger("websocket")


def _encode(message: Dict[str, Any]) -> str:
    return json.dumps(
        {
            **message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        default=str,
    )


class WebSocketManager:
    """Manages active WebSocket connections and broadcasts events."""

    def __init__(self):
        self._connections: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self._connections.add(websocket)
        logger.info(
            "WebSocket connected. Active connections: %d", len(self._connections)
        )

    def disconnect(self, websocket: WebSocket):
        self._connections.discard(websocket)
        logger.info(
            "WebSocket disconnected. Active connections: %d", len(self._connections)
        )

    async def broadcast(self, message: Dict[str, Any]):
        """Send a message to all connected clients, dropping dead ones."""
        if not self._connections:
            return

        payload = _encode(message)
        disconnected = set()
        for ws in list(self._connections):
            try:
                await ws.send_text(payload)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug("Dropping WebSocket after failed send: %s", e)
                disconnected.add(ws)

        for ws in disconnected:
            self._connections.discard(ws)

    async def send_to(self, websocket: WebSocket, message: Dict[str, Any]):
        try:
            await websocket.send_text(_encode(message))
        except (WebSocketDisconnect, RuntimeError):
            self._connections.discard(websocket)

    async def announce_run(self, run: AnalysisRun):
        """Broadcast the outcome of one analysis run."""
        result = run.analysis.result
        await self.broadcast({
            "event": "analysis_complete" if run.accepted else "analysis_stale",
            "data": {
                "board_id": result.board_id,
                "board_name": result.board_name,
                "generation": run.generation,
                "overall_efficiency": result.overall_efficiency,
                "bottlenecks": len(result.bottlenecks),
                "suggestions": len(result.suggestions),
            },
        })

    @property
    def connection_count(self) -> int:
        return len(self._connections)


# Singleton manager
ws_manager = WebSocketManager()


async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for dashboard live updates.

    Clients connect to ws://host/ws/dashboard and receive analysis_complete /
    analysis_stale events for every finished run.
    """
    await ws_manager.connect(websocket)

    await ws_manager.send_to(websocket, {
        "event": "connected",
        "data": {"message": "Connected to Board Insights Hub live feed"},
    })

    try:
        while True:
            data = await websocket.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if isinstance(msg, dict) and msg.get("type") == "ping":
                await ws_manager.send_to(websocket, {"event": "pong", "data": {}})
    except WebSocketDisconnect:
        ws_manager.disconnect(websocket)
