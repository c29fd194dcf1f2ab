"""Tests for the snapshot fetcher and the offline workflow analyzer scripts."""

import json
from unittest.mock import MagicMock, patch

import pytest
from conftest import hours_before, make_board, make_item, status_event

from scripts import fetch_monday, workflow_analyzer
from scripts.lib.errors import (
    APIAuthError,
    APIError,
    BoardNotFoundError,
    DataFetchError,
    SchemaValidationError,
)


def _response(status_code=200, payload=None, headers=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.headers = headers or {}
    resp.json.return_value = payload if payload is not None else {"data": {}}
    return resp


@pytest.fixture
def client():
    client = fetch_monday.MondayClient("test-key", api_url="https://monday.test/v2")
    client.session.request = MagicMock()
    return client


class TestMondayClient:
    def test_headers(self, client):
        assert client.session.headers["Authorization"] == "test-key"
        assert client.session.headers["API-Version"]

    def test_query_returns_data(self, client):
        client.session.request.return_value = _response(payload={"data": {"boards": []}})
        assert client._query("query { boards { id } }") == {"boards": []}

    def test_auth_failure_is_not_retried(self, client):
        client.session.request.return_value = _response(status_code=401)
        with pytest.raises(APIAuthError):
            client._query("query { me { id } }")
        assert client.session.request.call_count == 1

    def test_graphql_errors_raise(self, client):
        client.session.request.return_value = _response(payload={"errors": [{"message": "bad field"}]})
        with pytest.raises(APIError) as excinfo:
            client._query("query { nope }")
        assert excinfo.value.code == "GRAPHQL_ERROR"

    def test_snapshot_flattens_items_and_follows_cursor(self, client):
        board = make_board(items=[])
        board.pop("items")
        board["items_page"] = {"cursor": "abc", "items": [make_item(1)]}
        client._query = MagicMock(side_effect=[
            {"boards": [board]},
            {"next_items_page": {"cursor": None, "items": [make_item(2), make_item(3)]}},
        ])

        raw = client.fetch_board_snapshot("1001", log_limit=10)
        assert [i["id"] for i in raw["items"]] == ["1", "2", "3"]
        assert "items_page" not in raw
        assert raw["activity_logs"] == []

    def test_snapshot_of_missing_board(self, client):
        client._query = MagicMock(return_value={"boards": []})
        with pytest.raises(BoardNotFoundError):
            client.fetch_board_snapshot("404")


class TestFetchCli:
    def test_requires_a_mode(self):
        with pytest.raises(SystemExit):
            fetch_monday._parse_args([])

    def test_missing_key_fails_cleanly(self):
        with patch.dict("os.environ", {"MONDAY_API_KEY": ""}, clear=False):
            assert fetch_monday.main(["--board-id", "1001"]) == 1


class TestRawSnapshotRoundTrip:
    def _board(self):
        logs = [
            status_event(1, None, "To Do", hours_before(10)),
            status_event(1, "To Do", "In Progress", hours_before(8)),
        ]
        return make_board(activity_logs=logs)

    def test_write_then_pick_latest(self, tmp_path):
        fetch_monday.write_raw_snapshot(self._board(), "2024-04-30", tmp_path)
        newest = fetch_monday.write_raw_snapshot(self._board(), "2024-05-01", tmp_path)

        assert newest.name == "monday_board_1001_2024-05-01.json"
        assert workflow_analyzer.latest_snapshot_file("1001", tmp_path) == newest

        payload = json.loads(newest.read_text(encoding="utf-8"))
        assert payload["record_count"] == 4
        assert payload["object_type"] == "board_snapshot"

    def test_no_snapshot(self, tmp_path):
        assert workflow_analyzer.latest_snapshot_file("1001", tmp_path) is None

    def test_analyze_board_file(self, tmp_path):
        path = fetch_monday.write_raw_snapshot(self._board(), "2024-05-01", tmp_path)
        processed = tmp_path / "processed"

        result = workflow_analyzer.analyze_board_file(path, processed)
        assert result.board_name == "Product Roadmap"
        assert result.status_transitions["To Do"] == {"In Progress": 1}

        saved = json.loads((processed / "workflow_analysis_1001.json").read_text(encoding="utf-8"))
        assert saved["board_id"] == "1001"

    def test_unreadable_snapshot(self, tmp_path):
        broken = tmp_path / "monday_board_1001_2024-05-01.json"
        broken.write_text("{not json", encoding="utf-8")
        with pytest.raises(DataFetchError):
            workflow_analyzer.load_snapshot(broken)

    def test_snapshot_without_board(self, tmp_path):
        odd = tmp_path / "odd.json"
        odd.write_text(json.dumps({"results": []}), encoding="utf-8")
        with pytest.raises(SchemaValidationError):
            workflow_analyzer.load_snapshot(odd)

    def test_answer_uses_fresh_analysis(self, tmp_path):
        path = fetch_monday.write_raw_snapshot(self._board(), "2024-05-01", tmp_path)
        result = workflow_analyzer.analyze_board_file(path, tmp_path / "processed")
        assert "has an overall efficiency of" in workflow_analyzer.answer(result, "analyze this board workflow")
