"""
Board Insights Hub — Assistant Models
======================================

Query classification, response, action and visualization schemas for the
workflow assistant, plus the request bodies of the assistant endpoints.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.analysis_models import SuggestionCategory


class Intent(str, Enum):
    ANALYZE_WORKFLOW = "analyze_workflow"
    SHOW_BOTTLENECKS = "show_bottlenecks"
    SHOW_EFFICIENCY = "show_efficiency"
    GET_RECOMMENDATIONS = "get_recommendations"
    CREATE_WORKSPACE = "create_workspace"
    TEAM_ANALYSIS = "team_analysis"
    VISUALIZE_WORKFLOW = "visualize_workflow"
    STATUS_REPORT = "status_report"
    GENERAL_QUERY = "general_query"


class VisualizationType(str, Enum):
    BOTTLENECK_CHART = "bottleneck_chart"
    WORKLOAD_DISTRIBUTION = "workload_distribution"
    STATUS_FLOW = "status_flow"
    STATUS_DISTRIBUTION = "status_distribution"


class ActionType(str, Enum):
    SELECT_BOARD = "select_board"
    RUN_ANALYSIS = "run_analysis"
    VIEW_VISUALIZATION = "view_visualization"
    CREATE_WORKSPACE = "create_workspace"


# ─── Classification ─────────────────────────────────────────

class Timeframe(BaseModel):
    """Either a named period (``label``) or ``value`` x ``unit`` back from now."""
    label: Optional[str] = None
    unit: Optional[str] = None
    value: Optional[int] = None


class QueryEntities(BaseModel):
    board: Optional[str] = None
    timeframe: Optional[Timeframe] = None
    category: Optional[SuggestionCategory] = None
    person: Optional[str] = None
    visualization: Optional[VisualizationType] = None
    workspace_type: Optional[str] = None
    query: Optional[str] = None


class QueryClassification(BaseModel):
    intent: Intent
    entities: QueryEntities = Field(default_factory=QueryEntities)
    requires_analysis: bool = False
    score: float = 0.0


# ─── Response ───────────────────────────────────────────────

class Action(BaseModel):
    type: ActionType
    board_id: Optional[str] = None
    visualization_type: Optional[VisualizationType] = None
    workspace_details: Optional[Dict[str, Any]] = None


class Visualization(BaseModel):
    """A typed summary of what to chart, not a rendered chart."""
    type: VisualizationType
    title: str
    data: List[Dict[str, Any]] = Field(default_factory=list)


class AssistantResponse(BaseModel):
    text: str
    actions: List[Action] = Field(default_factory=list)
    visualizations: List[Visualization] = Field(default_factory=list)
    follow_up_queries: List[str] = Field(default_factory=list)


# ─── Requests ───────────────────────────────────────────────

class ClassifyRequest(BaseModel):
    query: str = Field(..., min_length=1)


class QueryRequest(BaseModel):
    query: str = Field(..., min_length=1)
    board_id: Optional[str] = Field(None, description="Currently selected board")
    auto_analyze: bool = Field(
        False, description="Fetch and analyze the board first when no analysis exists",
    )
