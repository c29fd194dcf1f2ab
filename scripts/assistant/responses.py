"""
Board Insights Hub — Assistant Response Synthesizer
=====================================================

Turns a QueryClassification plus the current analysis state into a templated
answer. Pure dispatch on intent, no I/O:

  - general_query      greeting / capability / missing-context heuristics
  - create_workspace   template-or-custom prompt, no analysis needed
  - everything else    needs a board and an analysis of that board;
                       otherwise asks for one (select_board / run_analysis)

Usage:
    from scripts.assistant.intents import classify_query
    from scripts.assistant.responses import generate_response

    response = generate_response(classify_query(text), result, board_id, boards)
"""
from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional, Sequence

from models.analysis_models import AnalysisResult, Suggestion
from models.assistant_models import (
    Action,
    ActionType,
    AssistantResponse,
    Intent,
    QueryClassification,
    QueryEntities,
    Visualization,
    VisualizationType,
)
from models.board_models import BoardSummary
from scripts.lib.logger import setup_logger
from scripts.lib.utils import round_half_up

logger = setup_logger("assistant_responses")

EFFICIENCY_LABELS = (
    (80, "highly efficient"),
    (60, "good"),
    (40, "moderate"),
)
RECOMMENDATION_LIMIT = 3

DEFAULT_FOLLOW_UPS = [
    "Analyze my current board",
    "Show me the bottlenecks",
    "How can I improve my workflow?",
]


def efficiency_label(score: int) -> str:
    for threshold, label in EFFICIENCY_LABELS:
        if score >= threshold:
            return label
    return "low"


def _hours(value: float) -> int:
    return round_half_up(value)


# ---------------------------------------------------------------------------
# Board resolution
# ---------------------------------------------------------------------------

def resolve_board_id(
    entities: QueryEntities,
    selected_board: Optional[str],
    boards: Sequence[BoardSummary] = (),
) -> Optional[str]:
    """Board the question is about.

    A board entity naming a listed board (by id, or name case-insensitively)
    wins over the selected board. "current" and unknown references fall back
    to the selection.
    """
    reference = (entities.board or "").strip()
    if reference and reference != "current":
        for board in boards:
            if board.id == reference or board.name.lower() == reference.lower():
                return board.id
    return str(selected_board) if selected_board else None


def _board_name(board_id: str, boards: Sequence[BoardSummary]) -> str:
    for board in boards:
        if board.id == board_id:
            return board.name
    return f"board {board_id}"


# ---------------------------------------------------------------------------
# Visualization descriptors
# ---------------------------------------------------------------------------

def bottleneck_chart(result: AnalysisResult) -> Visualization:
    return Visualization(
        type=VisualizationType.BOTTLENECK_CHART,
        title=f"Bottlenecks on {result.board_name}",
        data=[{"status": b.status, "value": _hours(b.average_time_hours)} for b in result.bottlenecks],
    )


def workload_distribution(result: AnalysisResult) -> Visualization:
    workload = sorted(result.workflow.workload.items(), key=lambda kv: kv[1], reverse=True)
    return Visualization(
        type=VisualizationType.WORKLOAD_DISTRIBUTION,
        title=f"Workload on {result.board_name}",
        data=[{"name": name, "value": count} for name, count in workload],
    )


def status_flow(result: AnalysisResult) -> Visualization:
    return Visualization(
        type=VisualizationType.STATUS_FLOW,
        title=f"Status flow on {result.board_name}",
    )


def status_distribution(result: AnalysisResult) -> Visualization:
    return Visualization(
        type=VisualizationType.STATUS_DISTRIBUTION,
        title=f"Items by status on {result.board_name}",
        data=[
            {"status": status, "count": count}
            for status, count in result.workflow.status_distribution.items()
        ],
    )


VISUALIZATION_BUILDERS: Dict[VisualizationType, Callable[[AnalysisResult], Visualization]] = {
    VisualizationType.BOTTLENECK_CHART: bottleneck_chart,
    VisualizationType.WORKLOAD_DISTRIBUTION: workload_distribution,
    VisualizationType.STATUS_FLOW: status_flow,
    VisualizationType.STATUS_DISTRIBUTION: status_distribution,
}


def _view_action(kind: VisualizationType, board_id: str) -> Action:
    return Action(type=ActionType.VIEW_VISUALIZATION, visualization_type=kind, board_id=board_id)


# ---------------------------------------------------------------------------
# Intent templates (analysis present)
# ---------------------------------------------------------------------------

def _analyze_workflow(result: AnalysisResult, entities: QueryEntities) -> AssistantResponse:
    overall = result.overall_efficiency
    lines = [
        f'Your "{result.board_name}" board has an overall efficiency of {overall}% '
        f"({efficiency_label(overall)}).",
        f"- Column structure: {result.columns.efficiency}%",
        f"- Group organization: {result.groups.efficiency}%",
        f"- Data completeness: {result.workflow.efficiency}%",
    ]
    if result.bottlenecks:
        lines.append(
            f"I found {len(result.bottlenecks)} bottleneck(s); the slowest stage is "
            f'"{result.bottlenecks[0].status}".'
        )
    if result.suggestions:
        lines.append(f"I have {len(result.suggestions)} suggestion(s) to improve this board.")

    return AssistantResponse(
        text="\n".join(lines),
        visualizations=[status_distribution(result)],
        follow_up_queries=[
            "Show me the bottlenecks",
            "What do you recommend?",
            "How is the workload distributed across the team?",
        ],
    )


def _show_bottlenecks(result: AnalysisResult, entities: QueryEntities) -> AssistantResponse:
    if not result.bottlenecks:
        return AssistantResponse(
            text=(
                f'I didn\'t find any significant bottlenecks on "{result.board_name}". '
                "Items move through its statuses at a consistent pace."
            ),
            follow_up_queries=["Show me the efficiency score", "What do you recommend?"],
        )

    lines = [f'Bottlenecks on "{result.board_name}":']
    for b in result.bottlenecks:
        lines.append(
            f'- "{b.status}": items spend {_hours(b.average_time_hours)} hours on average '
            f"({b.item_count} item(s))"
        )
    worst = result.bottlenecks[0]
    lines.append(f'Start with "{worst.status}": it holds work the longest.')

    return AssistantResponse(
        text="\n".join(lines),
        actions=[_view_action(VisualizationType.BOTTLENECK_CHART, result.board_id)],
        visualizations=[bottleneck_chart(result)],
        follow_up_queries=[
            f'How can I speed up "{worst.status}"?',
            "Show me the status flow chart",
            "What do you recommend?",
        ],
    )


def _show_efficiency(result: AnalysisResult, entities: QueryEntities) -> AssistantResponse:
    overall = result.overall_efficiency
    scores = [
        ("Column structure", result.columns.efficiency),
        ("Group organization", result.groups.efficiency),
        ("Data completeness", result.workflow.efficiency),
    ]
    lines = [
        f'"{result.board_name}" is {efficiency_label(overall)} overall, '
        f"with an efficiency score of {overall}%."
    ]
    for name, score in scores:
        lines.append(f"- {name}: {score}% ({efficiency_label(score)})")

    weakest_name, weakest_score = min(scores, key=lambda s: s[1])
    if weakest_score < 60:
        lines.append(f"{weakest_name} is the area with the most room to improve.")

    return AssistantResponse(
        text="\n".join(lines),
        follow_up_queries=[
            "What do you recommend?",
            "Which items are missing information?",
            "Show me the bottlenecks",
        ],
    )


def _format_suggestion(suggestion: Suggestion) -> str:
    return f"- {suggestion.title} ({suggestion.impact.value} impact): {suggestion.description}"


def _get_recommendations(result: AnalysisResult, entities: QueryEntities) -> AssistantResponse:
    suggestions = list(result.suggestions)
    header = f'Here are my top recommendations for "{result.board_name}":'

    if entities.category:
        matching = [s for s in suggestions if s.category == entities.category]
        if matching:
            suggestions = matching
            header = f'Here are my {entities.category.value.lower()} recommendations for "{result.board_name}":'
        else:
            header = (
                f"I don't have any {entities.category.value.lower()} recommendations for "
                f'"{result.board_name}", but here is what I\'d look at first:'
            )

    if not suggestions:
        return AssistantResponse(
            text=f'"{result.board_name}" is in good shape; I have no recommendations right now.',
            follow_up_queries=["Show me the efficiency score"],
        )

    top = suggestions[:RECOMMENDATION_LIMIT]
    lines = [header] + [_format_suggestion(s) for s in top]
    if len(suggestions) > len(top):
        lines.append(f"...and {len(suggestions) - len(top)} more.")

    return AssistantResponse(
        text="\n".join(lines),
        follow_up_queries=[
            "Suggest automations for this board",
            "How can I improve data quality?",
            "Show me the bottlenecks",
        ],
    )


def _find_workload_entry(workload: Dict[str, int], person: str) -> Optional[str]:
    lowered = person.lower()
    for owner in workload:
        if lowered in owner.lower():
            return owner
    return None


def _team_analysis(result: AnalysisResult, entities: QueryEntities) -> AssistantResponse:
    workload = result.workflow.workload
    visualization = workload_distribution(result)
    actions = [_view_action(VisualizationType.WORKLOAD_DISTRIBUTION, result.board_id)]

    if entities.person:
        owner = _find_workload_entry(workload, entities.person)
        if owner is None:
            text = f'{entities.person} has no items assigned on "{result.board_name}".'
        else:
            text = f'{owner} is assigned {workload[owner]} item(s) on "{result.board_name}".'
        return AssistantResponse(
            text=text,
            actions=actions,
            visualizations=[visualization],
            follow_up_queries=["How is the workload distributed across the team?"],
        )

    assigned = {name: count for name, count in workload.items() if name != "Unassigned"}
    if not assigned:
        return AssistantResponse(
            text=(
                f'No items on "{result.board_name}" are assigned to anyone yet. '
                "Adding an Owner column would make team analysis possible."
            ),
            follow_up_queries=["What do you recommend?"],
        )

    busiest = max(assigned, key=assigned.get)
    lines = [
        f'{len(assigned)} team member(s) have work on "{result.board_name}".',
        f"{busiest} carries the most, with {assigned[busiest]} item(s).",
    ]
    unassigned = workload.get("Unassigned", 0)
    if unassigned:
        lines.append(f"{unassigned} item(s) have no owner.")

    return AssistantResponse(
        text="\n".join(lines),
        actions=actions,
        visualizations=[visualization],
        follow_up_queries=[
            f"What is {busiest} working on?",
            "Show me the bottlenecks",
        ],
    )


VISUALIZATION_TITLES = {
    VisualizationType.BOTTLENECK_CHART: "bottleneck chart",
    VisualizationType.WORKLOAD_DISTRIBUTION: "workload distribution",
    VisualizationType.STATUS_FLOW: "status flow diagram",
    VisualizationType.STATUS_DISTRIBUTION: "status distribution",
}


def _visualize_workflow(result: AnalysisResult, entities: QueryEntities) -> AssistantResponse:
    kind = entities.visualization or VisualizationType.STATUS_FLOW
    visualization = VISUALIZATION_BUILDERS[kind](result)
    others = [k for k in VISUALIZATION_TITLES if k != kind]

    return AssistantResponse(
        text=f'Here is the {VISUALIZATION_TITLES[kind]} for "{result.board_name}".',
        actions=[_view_action(kind, result.board_id)],
        visualizations=[visualization],
        follow_up_queries=[f"Show me the {VISUALIZATION_TITLES[k]}" for k in others],
    )


def _timeframe_phrase(entities: QueryEntities) -> str:
    timeframe = entities.timeframe
    if timeframe is None:
        return ""
    if timeframe.label:
        return f" ({timeframe.label.replace('_', ' ')})"
    return f" (last {timeframe.value} {timeframe.unit}s)"


def _status_report(result: AnalysisResult, entities: QueryEntities) -> AssistantResponse:
    workflow = result.workflow
    lines = [f'Status report for "{result.board_name}"{_timeframe_phrase(entities)}:']
    lines.append(f"- {workflow.total_items} item(s) in total")
    for status, count in sorted(workflow.status_distribution.items(), key=lambda kv: kv[1], reverse=True):
        lines.append(f"- {status}: {count}")
    if workflow.incomplete_items:
        lines.append(f"{workflow.incomplete_percentage}% of items are missing status, owner or due date.")
    if result.bottlenecks:
        lines.append(f'Slowest stage: "{result.bottlenecks[0].status}".')

    return AssistantResponse(
        text="\n".join(lines),
        visualizations=[status_distribution(result)],
        follow_up_queries=[
            "Show me the bottlenecks",
            "How is the workload distributed across the team?",
        ],
    )


INTENT_HANDLERS: Dict[Intent, Callable[[AnalysisResult, QueryEntities], AssistantResponse]] = {
    Intent.ANALYZE_WORKFLOW: _analyze_workflow,
    Intent.SHOW_BOTTLENECKS: _show_bottlenecks,
    Intent.SHOW_EFFICIENCY: _show_efficiency,
    Intent.GET_RECOMMENDATIONS: _get_recommendations,
    Intent.TEAM_ANALYSIS: _team_analysis,
    Intent.VISUALIZE_WORKFLOW: _visualize_workflow,
    Intent.STATUS_REPORT: _status_report,
}


# ---------------------------------------------------------------------------
# Intents that don't need an analysis
# ---------------------------------------------------------------------------

GREETING_PATTERN = re.compile(r"^\s*(hi|hello|hey|good (morning|afternoon|evening))\b", re.IGNORECASE)
CAPABILITY_PATTERN = re.compile(r"\b(what can you|help|capabilit|how do i use|what do you do)", re.IGNORECASE)
CONTEXT_PATTERN = re.compile(r"\b(board|workflow|items?|this|it)\b", re.IGNORECASE)

CAPABILITIES = [
    "analyze a board's structure and workflow efficiency",
    "find bottlenecks where work gets stuck",
    "recommend improvements and automations",
    "break down team workload",
    "chart your workflow",
    "help set up a new workspace",
]


def _select_board_response(text: str) -> AssistantResponse:
    return AssistantResponse(
        text=text,
        actions=[Action(type=ActionType.SELECT_BOARD)],
        follow_up_queries=["What can you do?"],
    )


def _general_response(query: str, selected_board: Optional[str]) -> AssistantResponse:
    if GREETING_PATTERN.search(query):
        return AssistantResponse(
            text="Hello! I can help you understand and improve your Monday.com boards. What would you like to know?",
            follow_up_queries=list(DEFAULT_FOLLOW_UPS),
        )
    if CAPABILITY_PATTERN.search(query):
        return AssistantResponse(
            text="I can " + ", ".join(CAPABILITIES[:-1]) + f" and {CAPABILITIES[-1]}.",
            follow_up_queries=list(DEFAULT_FOLLOW_UPS),
        )
    if not selected_board and CONTEXT_PATTERN.search(query):
        return _select_board_response(
            "I need to know which board you mean. Please select a board first."
        )
    return AssistantResponse(
        text=(
            "I'm not sure what you're asking. Could you clarify? You can ask about "
            "bottlenecks, efficiency, recommendations, team workload or status reports."
        ),
        follow_up_queries=list(DEFAULT_FOLLOW_UPS),
    )


WORKSPACE_TYPES = [
    "marketing", "software development", "sales", "project management",
    "hr", "design", "operations",
]


def _workspace_response(entities: QueryEntities) -> AssistantResponse:
    if entities.workspace_type:
        label = entities.workspace_type
        return AssistantResponse(
            text=(
                f"Let's set up a {label} workspace. Would you like to start from the "
                f"{label} template or build a custom structure?"
            ),
            actions=[Action(
                type=ActionType.CREATE_WORKSPACE,
                workspace_details={"type": label, "use_template": True},
            )],
            follow_up_queries=[
                f"Use the {label} template",
                "Create a custom workspace",
            ],
        )

    return AssistantResponse(
        text=(
            "I can help you create a new workspace. Start from a template "
            f"({', '.join(WORKSPACE_TYPES)}) or build a custom one?"
        ),
        actions=[Action(type=ActionType.CREATE_WORKSPACE, workspace_details={})],
        follow_up_queries=[f"Create a {t} workspace" for t in WORKSPACE_TYPES[:3]],
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def generate_response(
    classification: QueryClassification,
    analysis: Optional[AnalysisResult],
    selected_board: Optional[str] = None,
    boards: Sequence[BoardSummary] = (),
) -> AssistantResponse:
    """Answer a classified query from the current analysis state."""
    intent = classification.intent
    entities = classification.entities

    if intent == Intent.GENERAL_QUERY:
        return _general_response(entities.query or "", selected_board)
    if intent == Intent.CREATE_WORKSPACE:
        return _workspace_response(entities)

    board_id = resolve_board_id(entities, selected_board, boards)
    if board_id is None:
        return _select_board_response("Please select a board first so I can answer that.")

    if analysis is None or analysis.board_id != board_id:
        return AssistantResponse(
            text=f'I haven\'t analyzed "{_board_name(board_id, boards)}" yet. Shall I run an analysis now?',
            actions=[Action(type=ActionType.RUN_ANALYSIS, board_id=board_id)],
        )

    handler = INTENT_HANDLERS.get(intent)
    if handler is None:
        logger.warning("No response template for intent %s", intent.value)
        return _general_response(entities.query or "", selected_board)
    return handler(analysis, entities)
