"""
Board Insights Hub — API Server
=================================

Live API layer over Monday.com boards: runs the workflow analysis pipeline,
keeps the current analysis per board in memory, and answers free-text
questions about it.

Route groups:
  /api/health        - Health check
  /api/boards/*      - Live Monday.com board listing
  /api/analysis/*    - Analysis runs, bottlenecks, suggestions, item detail
  /api/assistant/*   - Query classification and answers
  /ws/dashboard      - WebSocket live feed
"""
from __future__ import annotations

import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scripts.lib.logger import setup_logger

load_dotenv()

logger = setup_logger("api")

VERSION = "1.0.0"


# ─── Lifespan ─────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app):
    """Application startup and shutdown."""
    logger.info("Starting Board Insights Hub...")

    from integrations.monday import MondayIntegration
    from scripts.analysis.pipeline import AnalysisStore

    if getattr(app.state, "monday", None) is None:
        app.state.monday = MondayIntegration()
    status = "configured" if app.state.monday.is_configured else "not configured"
    logger.info("Monday.com live integration: %s", status)

    if getattr(app.state, "analysis_store", None) is None:
        app.state.analysis_store = AnalysisStore()

    logger.info("Board Insights Hub ready")
    yield
    logger.info("Shutting down Board Insights Hub...")


# ─── App Setup ────────────────────────────────────────────────

cors_origins = os.getenv(
    "CORS_ORIGINS", "http://localhost:3000,http://localhost:8001"
).split(",")

app = FastAPI(
    title="Board Insights Hub",
    version=VERSION,
    description="Monday.com workflow analytics, bottleneck detection and board assistant",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Include Routers ──────────────────────────────────────────

from dashboard.api.routers.analysis import router as analysis_router  # noqa: E402
from dashboard.api.routers.assistant import router as assistant_router  # noqa: E402
from dashboard.api.routers.boards import router as boards_router  # noqa: E402

app.include_router(boards_router)
app.include_router(analysis_router)
app.include_router(assistant_router)


# ─── WebSocket ────────────────────────────────────────────────

from dashboard.api.websocket import websocket_endpoint, ws_manager  # noqa: E402

app.add_api_websocket_route("/ws/dashboard", websocket_endpoint)


# ─── Health ───────────────────────────────────────────────────

@app.get("/api/health", tags=["system"])
async def health():
    """Health check with integration status."""
    monday = getattr(app.state, "monday", None)
    return {
        "status": "healthy",
        "service": "Board Insights Hub",
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "integrations": {
            "monday": monday.get_status() if monday is not None else None,
        },
        "websocket_connections": ws_manager.connection_count,
    }
