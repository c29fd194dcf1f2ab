"""
Board Insights Hub — Analysis Models
=====================================

Derived records produced by one analysis run: status changes, dwell-time
statistics, bottlenecks, suggestions, and the AnalysisResult that bundles
them for the dashboard and the assistant.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.board_models import ColumnType
from scripts.lib.utils import round_half_up


class SuggestionCategory(str, Enum):
    STRUCTURE = "Structure"
    WORKFLOW = "Workflow"
    BOTTLENECK = "Bottleneck"
    DATA_QUALITY = "Data Quality"
    AUTOMATION = "Automation"


class Impact(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# ─── Status History ─────────────────────────────────────────

class StatusChange(BaseModel):
    """One status transition of one item. previous_status != new_status."""
    model_config = ConfigDict(frozen=True)

    item_id: Optional[str] = None
    item_name: Optional[str] = None
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    timestamp: datetime
    user_id: Optional[str] = None
    user_name: Optional[str] = None


class ItemStatusBreakdown(BaseModel):
    """Hours one item spent in each status, up to the evaluation instant."""
    model_config = ConfigDict(frozen=True)

    item_id: str
    item_name: Optional[str] = None
    status_durations: Dict[str, float] = Field(default_factory=dict)
    first_transition_at: datetime
    current_status: Optional[str] = None

    @property
    def total_hours(self) -> float:
        return sum(self.status_durations.values())


class StatusDuration(BaseModel):
    model_config = ConfigDict(frozen=True)

    average_time_hours: float
    total_items: int


class Bottleneck(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str
    average_time_hours: float
    item_count: int


class Suggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: SuggestionCategory
    title: str
    description: str
    impact: Impact
    benefits: List[str] = Field(default_factory=list)


# ─── Structure ──────────────────────────────────────────────

class RecommendedColumn(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ColumnType
    title: str


class ColumnAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    missing_essential_columns: List[ColumnType] = Field(default_factory=list)
    duplicate_columns: List[str] = Field(default_factory=list)
    recommended_additions: List[RecommendedColumn] = Field(default_factory=list)
    efficiency: int = 0


class GroupDistribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    group_id: str
    group_name: str
    item_count: int


class GroupAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    matches_known_workflow: bool = False
    best_match_workflow: Optional[List[str]] = None
    group_distribution: List[GroupDistribution] = Field(default_factory=list)
    imbalanced_groups: List[GroupDistribution] = Field(default_factory=list)
    efficiency: int = 0


class IncompleteItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    missing_fields: List[str] = Field(default_factory=list)


class WorkflowAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_items: int = 0
    incomplete_items: List[IncompleteItem] = Field(default_factory=list)
    efficiency: int = 0
    status_distribution: Dict[str, int] = Field(default_factory=dict)
    workload: Dict[str, int] = Field(default_factory=dict)

    @property
    def incomplete_percentage(self) -> int:
        if not self.total_items:
            return 0
        return round_half_up(len(self.incomplete_items) / self.total_items * 100)


# ─── Result ─────────────────────────────────────────────────

class AnalysisResult(BaseModel):
    """The immutable artifact of one analysis run."""
    model_config = ConfigDict(frozen=True)

    board_id: str
    board_name: str
    evaluated_at: datetime
    columns: ColumnAnalysis
    groups: GroupAnalysis
    workflow: WorkflowAnalysis
    status_transitions: Dict[str, Dict[str, int]] = Field(default_factory=dict)
    time_in_status: Dict[str, StatusDuration] = Field(default_factory=dict)
    bottlenecks: List[Bottleneck] = Field(default_factory=list)
    suggestions: List[Suggestion] = Field(default_factory=list)

    @property
    def overall_efficiency(self) -> int:
        scores = (self.columns.efficiency, self.groups.efficiency, self.workflow.efficiency)
        return round_half_up(sum(scores) / len(scores))


class BoardAnalysis(BaseModel):
    """AnalysisResult plus the per-item breakdown kept for item detail views."""
    model_config = ConfigDict(frozen=True)

    result: AnalysisResult
    item_breakdowns: List[ItemStatusBreakdown] = Field(default_factory=list)

    def item(self, item_id: str) -> Optional[ItemStatusBreakdown]:
        for breakdown in self.item_breakdowns:
            if breakdown.item_id == str(item_id):
                return breakdown
        return None
