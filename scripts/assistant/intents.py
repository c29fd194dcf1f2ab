"""
Board Insights Hub — Query Intent Classifier
==============================================

Deterministic keyword scoring, no model calls:

  score(intent) = patterns found in the lower-cased query / patterns declared

INTENT_RULES is scanned in order and the best score only changes on a
strictly greater score, so the earlier rule wins a tie. A best score under
0.3 becomes ``general_query`` carrying just the raw query.

Entity extractors are plain regex / keyword lookups. Each returns None when
nothing matches and never raises.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from models.analysis_models import SuggestionCategory
from models.assistant_models import (
    Intent,
    QueryClassification,
    QueryEntities,
    Timeframe,
    VisualizationType,
)
from scripts.lib.logger import setup_logger

logger = setup_logger("intent_classifier")

MIN_INTENT_SCORE = 0.3


# ---------------------------------------------------------------------------
# Entity extractors
# ---------------------------------------------------------------------------

CURRENT_BOARD_PATTERN = re.compile(r"\b(?:current|this|my|the selected)\s+board\b", re.IGNORECASE)
BOARD_ID_PATTERN = re.compile(r"\bboard\s+(?:id\s*)?#?\s*(\d{3,})\b", re.IGNORECASE)
BOARD_NAME_PATTERNS = [
    re.compile(r"\bboard\s+(?:called|named)\s+[\"']?([\w][\w &\-]*?)[\"']?(?:[?.!,]|$)", re.IGNORECASE),
    re.compile(r"[\"']([^\"']+)[\"']\s+board\b", re.IGNORECASE),
]


def extract_board(query: str) -> Optional[str]:
    """"current", a numeric board id, or a board name."""
    if CURRENT_BOARD_PATTERN.search(query):
        return "current"
    match = BOARD_ID_PATTERN.search(query)
    if match:
        return match.group(1)
    for pattern in BOARD_NAME_PATTERNS:
        match = pattern.search(query)
        if match:
            return match.group(1).strip()
    return None


TIMEFRAME_PHRASES = [
    "today", "yesterday", "this week", "last week",
    "this month", "last month", "this quarter", "this year",
]
RELATIVE_TIMEFRAME_PATTERN = re.compile(
    r"\b(?:last|past|previous)\s+(\d+)\s+(hour|day|week|month|year)s?\b", re.IGNORECASE,
)


def extract_timeframe(query: str) -> Optional[Timeframe]:
    match = RELATIVE_TIMEFRAME_PATTERN.search(query)
    if match:
        return Timeframe(unit=match.group(2).lower(), value=int(match.group(1)))
    lowered = query.lower()
    for phrase in TIMEFRAME_PHRASES:
        if phrase in lowered:
            return Timeframe(label=phrase.replace(" ", "_"))
    return None


CATEGORY_KEYWORDS: List[Tuple[str, SuggestionCategory]] = [
    ("automat", SuggestionCategory.AUTOMATION),
    ("notif", SuggestionCategory.AUTOMATION),
    ("bottleneck", SuggestionCategory.BOTTLENECK),
    ("faster", SuggestionCategory.BOTTLENECK),
    ("cycle time", SuggestionCategory.BOTTLENECK),
    ("data quality", SuggestionCategory.DATA_QUALITY),
    ("missing", SuggestionCategory.DATA_QUALITY),
    ("complete", SuggestionCategory.DATA_QUALITY),
    ("column", SuggestionCategory.STRUCTURE),
    ("structure", SuggestionCategory.STRUCTURE),
    ("group", SuggestionCategory.WORKFLOW),
    ("process", SuggestionCategory.WORKFLOW),
]


def extract_category(query: str) -> Optional[SuggestionCategory]:
    lowered = query.lower()
    for keyword, category in CATEGORY_KEYWORDS:
        if keyword in lowered:
            return category
    return None


WORKSPACE_TYPE_KEYWORDS: List[Tuple[Tuple[str, ...], str]] = [
    (("marketing", "campaign"), "marketing"),
    (("software", "development", "engineering", "sprint", "dev team"), "software development"),
    (("sales", "crm", "pipeline", "lead"), "sales"),
    (("project management", "project"), "project management"),
    (("hr", "hiring", "recruit", "onboarding"), "hr"),
    (("design", "creative"), "design"),
    (("operations", "ops"), "operations"),
]


def extract_workspace_type(query: str) -> Optional[str]:
    words = set(re.findall(r"[a-z]+", query.lower()))
    lowered = query.lower()
    for keywords, workspace_type in WORKSPACE_TYPE_KEYWORDS:
        for keyword in keywords:
            # Short keywords must be whole words ("hr" in "three" is not HR)
            if (" " in keyword or len(keyword) > 3) and keyword in lowered:
                return workspace_type
            if keyword in words:
                return workspace_type
    return None


QUOTED_NAME_PATTERN = re.compile(r"[\"']([A-Z][\w\-]*(?:\s+[A-Z][\w\-]*)*)[\"']")
NAMED_PERSON_PATTERN = re.compile(
    r"\b(?:for|by|of|assigned to|member)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)\b",
)


def extract_person(query: str) -> Optional[str]:
    """A quoted capitalized name, or ``for/by/assigned to Firstname [Lastname]``."""
    match = QUOTED_NAME_PATTERN.search(query)
    if match:
        return match.group(1)
    match = NAMED_PERSON_PATTERN.search(query)
    if match:
        return match.group(1)
    return None


VISUALIZATION_KEYWORDS: List[Tuple[Tuple[str, ...], VisualizationType]] = [
    (("bottleneck", "slow", "stuck"), VisualizationType.BOTTLENECK_CHART),
    (("workload", "team", "assignee", "owner"), VisualizationType.WORKLOAD_DISTRIBUTION),
    (("flow", "transition", "process"), VisualizationType.STATUS_FLOW),
    (("distribution", "breakdown", "status"), VisualizationType.STATUS_DISTRIBUTION),
]


def extract_visualization(query: str) -> Optional[VisualizationType]:
    lowered = query.lower()
    for keywords, kind in VISUALIZATION_KEYWORDS:
        if any(k in lowered for k in keywords):
            return kind
    return None


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

Extractor = Tuple[str, Callable[[str], object]]


@dataclass(frozen=True)
class IntentRule:
    intent: Intent
    patterns: Tuple[str, ...]
    extractors: Tuple[Extractor, ...] = field(default_factory=tuple)
    requires_analysis: bool = True

    def score(self, lowered_query: str) -> float:
        if not self.patterns:
            return 0.0
        matched = sum(1 for p in self.patterns if p in lowered_query)
        return matched / len(self.patterns)

    def extract(self, query: str) -> QueryEntities:
        values: Dict[str, object] = {}
        for entity_name, extractor in self.extractors:
            value = extractor(query)
            if value is not None:
                values[entity_name] = value
        return QueryEntities(**values)


INTENT_RULES: Tuple[IntentRule, ...] = (
    IntentRule(
        Intent.ANALYZE_WORKFLOW,
        ("analyze", "workflow", "board"),
        (("board", extract_board),),
    ),
    IntentRule(
        Intent.SHOW_BOTTLENECKS,
        ("bottleneck", "stuck", "slow", "delay", "wait time"),
        (("board", extract_board), ("timeframe", extract_timeframe)),
    ),
    IntentRule(
        Intent.SHOW_EFFICIENCY,
        ("efficiency", "efficient", "performance", "score"),
        (("board", extract_board), ("timeframe", extract_timeframe)),
    ),
    IntentRule(
        Intent.GET_RECOMMENDATIONS,
        ("recommend", "suggest", "improve", "optimiz", "advice"),
        (("board", extract_board), ("category", extract_category)),
    ),
    IntentRule(
        Intent.CREATE_WORKSPACE,
        ("create", "new workspace", "set up", "template"),
        (("workspace_type", extract_workspace_type),),
        requires_analysis=False,
    ),
    IntentRule(
        Intent.TEAM_ANALYSIS,
        ("team", "member", "workload", "assigned", "who is"),
        (("person", extract_person), ("board", extract_board)),
    ),
    IntentRule(
        Intent.VISUALIZE_WORKFLOW,
        ("visualiz", "chart", "graph", "diagram", "show me"),
        (("visualization", extract_visualization), ("board", extract_board)),
    ),
    IntentRule(
        Intent.STATUS_REPORT,
        ("status", "report", "progress", "summary"),
        (("board", extract_board), ("timeframe", extract_timeframe)),
    ),
)


def score_intents(query: str, rules: Tuple[IntentRule, ...] = INTENT_RULES) -> List[Tuple[Intent, float]]:
    """Score of every rule, in table order."""
    lowered = (query or "").lower()
    return [(rule.intent, rule.score(lowered)) for rule in rules]


def classify_query(query: str, rules: Tuple[IntentRule, ...] = INTENT_RULES) -> QueryClassification:
    query = query or ""
    lowered = query.lower()

    best_rule: Optional[IntentRule] = None
    best_score = 0.0
    for rule in rules:
        score = rule.score(lowered)
        if score > best_score:
            best_rule, best_score = rule, score

    if best_rule is None or best_score < MIN_INTENT_SCORE:
        logger.debug("Query %r -> general_query (best score %.2f)", query, best_score)
        return QueryClassification(
            intent=Intent.GENERAL_QUERY,
            entities=QueryEntities(query=query),
            requires_analysis=False,
            score=best_score,
        )

    entities = best_rule.extract(query)
    logger.debug("Query %r -> %s (score %.2f)", query, best_rule.intent.value, best_score)
    return QueryClassification(
        intent=best_rule.intent,
        entities=entities,
        requires_analysis=best_rule.requires_analysis,
        score=best_score,
    )
