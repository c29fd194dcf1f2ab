"""Tests for the FastAPI routes, with a fake Monday.com integration."""

import pytest
from fastapi.testclient import TestClient

from dashboard.api.main import app
from models.board_models import BoardSummary
from scripts.analysis.pipeline import AnalysisStore
from scripts.lib.errors import APIError, BoardNotFoundError


class FakeMonday:
    def __init__(self, snapshot=None, configured=True, error=None):
        self.snapshot = snapshot
        self.is_configured = configured
        self.error = error
        self.fetches = 0

    async def get_boards(self):
        if not self.is_configured:
            return []
        return [BoardSummary(id="1001", name="Product Roadmap")]

    async def get_board_snapshot(self, board_id):
        self.fetches += 1
        if self.error:
            raise self.error
        if board_id != "1001":
            raise BoardNotFoundError(board_id)
        return self.snapshot

    def get_status(self):
        return {"name": "Monday.com", "configured": self.is_configured}


@pytest.fixture
def make_client():
    clients = []

    def _make(integration):
        app.state.monday = integration
        app.state.analysis_store = AnalysisStore()
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
    app.state.monday = None
    app.state.analysis_store = None


@pytest.fixture
def client(make_client, busy_snapshot):
    return make_client(FakeMonday(busy_snapshot))


class TestHealthAndBoards:
    def test_health(self, client):
        body = client.get("/api/health").json()
        assert body["status"] == "healthy"
        assert body["integrations"]["monday"]["configured"] is True

    def test_list_boards(self, client):
        body = client.get("/api/boards").json()
        assert body["count"] == 1
        assert body["results"][0]["name"] == "Product Roadmap"

    def test_list_boards_unconfigured_is_empty(self, make_client):
        client = make_client(FakeMonday(configured=False))
        body = client.get("/api/boards").json()
        assert body == {"results": [], "count": 0, "configured": False}

    def test_board_summary(self, client):
        body = client.get("/api/boards/1001").json()
        assert body["item_count"] == 4
        assert [c["type"] for c in body["columns"]] == ["status", "people", "date", "numbers"]

    def test_unknown_board(self, client):
        response = client.get("/api/boards/9")
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "BOARD_NOT_FOUND"


class TestAnalysisRoutes:
    def test_run_then_read(self, client):
        run = client.post("/api/analysis/1001/run")
        assert run.status_code == 200
        assert run.json()["accepted"] is True
        assert run.json()["generation"] == 1

        body = client.get("/api/analysis/1001").json()
        assert body["board_name"] == "Product Roadmap"
        assert body["generation"] == 1
        assert 0 <= body["overall_efficiency"] <= 100

        bottlenecks = client.get("/api/analysis/1001/bottlenecks").json()
        assert bottlenecks["results"][0]["status"] == "In Progress"

        suggestions = client.get("/api/analysis/1001/suggestions", params={"category": "Automation"}).json()
        assert suggestions["count"] == 2

        item = client.get("/api/analysis/1001/items/3").json()
        assert item["status_durations"]["To Do"] == pytest.approx(2.0)
        assert item["current_status"] == "Done"
        assert item["total_hours"] > 26

    def test_no_analysis_yet(self, client):
        assert client.get("/api/analysis/1001").status_code == 404
        assert client.get("/api/analysis/1001/items/1").status_code == 404

    def test_unknown_item(self, client):
        client.post("/api/analysis/1001/run")
        assert client.get("/api/analysis/1001/items/999").status_code == 404

    def test_run_unknown_board(self, client):
        assert client.post("/api/analysis/9/run").status_code == 404

    def test_empty_board_is_not_found(self, make_client):
        from models.board_models import BoardSnapshot
        client = make_client(FakeMonday(BoardSnapshot(id="1001", name="Empty")))
        assert client.post("/api/analysis/1001/run").status_code == 404

    def test_upstream_failure_is_502(self, make_client):
        client = make_client(FakeMonday(error=APIError("down", status_code=500)))
        response = client.post("/api/analysis/1001/run")
        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "ANALYSIS_FAILED"

    def test_unconfigured_is_503(self, make_client):
        client = make_client(FakeMonday(configured=False))
        assert client.post("/api/analysis/1001/run").status_code == 503

    def test_websocket_announces_runs(self, client):
        with client.websocket_connect("/ws/dashboard") as ws:
            assert ws.receive_json()["event"] == "connected"
            client.post("/api/analysis/1001/run")
            message = ws.receive_json()
            assert message["event"] == "analysis_complete"
            assert message["data"]["board_id"] == "1001"


class TestAssistantRoutes:
    def test_classify(self, client):
        body = client.post("/api/assistant/classify", json={"query": "hello"}).json()
        assert body["intent"] == "general_query"
        assert body["entities"]["query"] == "hello"

    def test_query_without_analysis_offers_run(self, client):
        body = client.post(
            "/api/assistant/query",
            json={"query": "which items are stuck or slow?", "board_id": "1001"},
        ).json()
        assert body["classification"]["intent"] == "show_bottlenecks"
        assert body["response"]["actions"][0]["type"] == "run_analysis"

    def test_auto_analyze_answers_in_one_call(self, make_client, busy_snapshot):
        fake = FakeMonday(busy_snapshot)
        client = make_client(fake)
        body = client.post(
            "/api/assistant/query",
            json={"query": "which items are stuck or slow?", "board_id": "1001", "auto_analyze": True},
        ).json()
        assert '"In Progress"' in body["response"]["text"]
        assert body["response"]["visualizations"][0]["type"] == "bottleneck_chart"
        assert fake.fetches == 1

    def test_query_names_board(self, client):
        client.post("/api/analysis/1001/run")
        body = client.post(
            "/api/assistant/query",
            json={"query": 'what is the efficiency score of the "Product Roadmap" board?'},
        ).json()
        assert body["classification"]["intent"] == "show_efficiency"
        assert "efficiency score of" in body["response"]["text"]

    def test_empty_query_rejected(self, client):
        assert client.post("/api/assistant/query", json={"query": ""}).status_code == 422

    def test_unlisted_board_falls_back_to_selection(self, client):
        client.post("/api/analysis/1001/run")
        body = client.post(
            "/api/assistant/query",
            json={"query": "status report for board 5555", "board_id": "1001"},
        ).json()
        assert body["response"]["text"].startswith('Status report for "Product Roadmap"')
