"""
Board Insights Hub — Router Helpers
=====================================
Access to the objects the lifespan hook puts on ``app.state``, and the
translation of HubError into HTTPException (status from the error class,
body from ``HubError.to_dict()``).
"""
from __future__ import annotations

from fastapi import HTTPException, Request

from integrations.monday import MondayIntegration
from scripts.analysis.pipeline import AnalysisStore
from scripts.lib.errors import ConfigError, HubError


def http_error(error: HubError) -> HTTPException:
    return HTTPException(status_code=error.http_status, detail=error.to_dict())


def get_integration(request: Request) -> MondayIntegration:
    """The live Monday.com integration, or 503 if it isn't usable."""
    integration = getattr(request.app.state, "monday", None)
    if integration is None:
        raise http_error(ConfigError("Monday.com integration not loaded"))
    if not integration.is_configured:
        raise http_error(ConfigError("Monday.com not configured", setting="MONDAY_API_KEY"))
    return integration


def get_store(request: Request) -> AnalysisStore:
    store = getattr(request.app.state, "analysis_store", None)
    if store is None:
        store = request.app.state.analysis_store = AnalysisStore()
    return store
