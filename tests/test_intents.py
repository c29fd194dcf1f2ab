"""Tests for the query intent classifier and entity extractors."""

import pytest

from models.analysis_models import SuggestionCategory
from models.assistant_models import Intent, Timeframe, VisualizationType
from scripts.assistant.intents import (
    INTENT_RULES,
    IntentRule,
    classify_query,
    extract_board,
    extract_category,
    extract_person,
    extract_timeframe,
    extract_visualization,
    extract_workspace_type,
    score_intents,
)


class TestClassifyQuery:
    def test_board_mention_outscores_single_bottleneck_keyword(self):
        result = classify_query("show me bottlenecks in my current board")
        scores = dict(score_intents("show me bottlenecks in my current board"))
        assert scores[Intent.SHOW_BOTTLENECKS] == pytest.approx(0.2)
        assert scores[Intent.ANALYZE_WORKFLOW] == pytest.approx(1 / 3)
        assert result.intent == Intent.ANALYZE_WORKFLOW
        assert result.entities.board == "current"
        assert result.requires_analysis is True

    def test_greeting_is_general_query(self):
        result = classify_query("hello")
        assert result.intent == Intent.GENERAL_QUERY
        assert result.entities.model_dump(exclude_none=True) == {"query": "hello"}
        assert result.requires_analysis is False

    def test_bottlenecks(self):
        result = classify_query("Which items are stuck or slow over the last 2 weeks?")
        assert result.intent == Intent.SHOW_BOTTLENECKS
        assert result.entities.timeframe == Timeframe(unit="week", value=2)

    def test_recommendations_with_category(self):
        result = classify_query("Can you suggest how to improve automation?")
        assert result.intent == Intent.GET_RECOMMENDATIONS
        assert result.entities.category == SuggestionCategory.AUTOMATION

    def test_create_workspace_needs_no_analysis(self):
        result = classify_query("create a new workspace from a marketing template")
        assert result.intent == Intent.CREATE_WORKSPACE
        assert result.requires_analysis is False
        assert result.entities.workspace_type == "marketing"

    def test_team_analysis_with_person(self):
        result = classify_query("What is the workload of team member Sarah Lee?")
        assert result.intent == Intent.TEAM_ANALYSIS
        assert result.entities.person == "Sarah Lee"

    def test_visualization(self):
        result = classify_query("draw a chart graph of the workload")
        assert result.intent == Intent.VISUALIZE_WORKFLOW
        assert result.entities.visualization == VisualizationType.WORKLOAD_DISTRIBUTION

    def test_status_report(self):
        result = classify_query("give me a progress report for this week")
        assert result.intent == Intent.STATUS_REPORT
        assert result.entities.timeframe == Timeframe(label="this_week")

    def test_empty_query(self):
        assert classify_query("").intent == Intent.GENERAL_QUERY

    def test_score_is_reported(self):
        result = classify_query("analyze workflow board")
        assert result.score == 1.0


class TestTieBreak:
    def test_earlier_rule_wins_equal_scores(self):
        first = IntentRule(Intent.SHOW_EFFICIENCY, ("alpha", "beta"))
        second = IntentRule(Intent.STATUS_REPORT, ("alpha", "gamma"))
        assert classify_query("alpha", (first, second)).intent == Intent.SHOW_EFFICIENCY
        assert classify_query("alpha", (second, first)).intent == Intent.STATUS_REPORT

    def test_table_order(self):
        assert [r.intent for r in INTENT_RULES] == [
            Intent.ANALYZE_WORKFLOW,
            Intent.SHOW_BOTTLENECKS,
            Intent.SHOW_EFFICIENCY,
            Intent.GET_RECOMMENDATIONS,
            Intent.CREATE_WORKSPACE,
            Intent.TEAM_ANALYSIS,
            Intent.VISUALIZE_WORKFLOW,
            Intent.STATUS_REPORT,
        ]

    def test_below_threshold_is_general(self):
        # 1 of 4 efficiency patterns = 0.25
        assert classify_query("what's my score").intent == Intent.GENERAL_QUERY


class TestExtractors:
    @pytest.mark.parametrize("query, expected", [
        ("analyze this board", "current"),
        ("analyze board #12345", "12345"),
        ("analyze board id 98765", "98765"),
        ("analyze the board named Launch Plan", "Launch Plan"),
        ('how is the "Q3 Roadmap" board doing', "Q3 Roadmap"),
        ("analyze everything", None),
    ])
    def test_board(self, query, expected):
        assert extract_board(query) == expected

    @pytest.mark.parametrize("query, expected", [
        ("status today", Timeframe(label="today")),
        ("progress last month", Timeframe(label="last_month")),
        ("past 3 days", Timeframe(unit="day", value=3)),
        ("last 1 hour", Timeframe(unit="hour", value=1)),
        ("whenever", None),
    ])
    def test_timeframe(self, query, expected):
        assert extract_timeframe(query) == expected

    def test_category(self):
        assert extract_category("improve our data quality") == SuggestionCategory.DATA_QUALITY
        assert extract_category("better column structure") == SuggestionCategory.STRUCTURE
        assert extract_category("anything") is None

    @pytest.mark.parametrize("query, expected", [
        ("set up a software project", "software development"),
        ("a board for our sales pipeline", "sales"),
        ("hr onboarding", "hr"),
        ("three new things", None),
    ])
    def test_workspace_type(self, query, expected):
        assert extract_workspace_type(query) == expected

    def test_person_is_case_sensitive(self):
        assert extract_person("items assigned to Maria") == "Maria"
        assert extract_person("items assigned to maria") is None
        assert extract_person('what is "Jo Park" working on') == "Jo Park"

    def test_visualization(self):
        assert extract_visualization("chart the bottlenecks") == VisualizationType.BOTTLENECK_CHART
        assert extract_visualization("diagram of status flow") == VisualizationType.STATUS_FLOW
        assert extract_visualization("a graph") is None

    @pytest.mark.parametrize("extractor", [
        extract_board, extract_timeframe, extract_category,
        extract_workspace_type, extract_person, extract_visualization,
    ])
    @pytest.mark.parametrize("query", ["", "   ", "🙂 ??? ''", '"unterminated'])
    def test_extractors_never_raise(self, extractor, query):
        extractor(query)
