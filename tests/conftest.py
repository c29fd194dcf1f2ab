"""Shared fixtures and raw-payload builders for the test suite."""

import json
import os
from datetime import datetime, timedelta, timezone

import pytest

os.environ["LOG_TO_FILE"] = "false"

from models.board_models import BoardSnapshot  # noqa: E402
from scripts.lib.circuit_breaker import CircuitBreaker  # noqa: E402

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

STANDARD_COLUMNS = [
    {"id": "status", "title": "Status", "type": "status"},
    {"id": "person", "title": "Owner", "type": "people"},
    {"id": "date4", "title": "Due Date", "type": "date"},
    {"id": "numbers", "title": "Estimate", "type": "numbers"},
]

STANDARD_GROUPS = [
    {"id": "backlog", "title": "Backlog"},
    {"id": "todo", "title": "To Do"},
    {"id": "doing", "title": "In Progress"},
    {"id": "done", "title": "Done"},
]


def hours_before(hours, now=NOW):
    return now - timedelta(hours=hours)


def make_item(item_id, name=None, group="todo", status="Working on it",
              owner="Ana Diaz", due="2024-05-10"):
    """Raw API item with the standard columns; pass None to leave one empty."""
    return {
        "id": str(item_id),
        "name": name or f"Item {item_id}",
        "group": {"id": group},
        "column_values": [
            {"id": "status", "type": "status", "text": status or "", "value": None},
            {"id": "person", "type": "people", "text": owner or "", "value": None},
            {"id": "date4", "type": "date", "text": due or "", "value": None},
        ],
    }


def status_event(item_id, previous, new, at, item_name=None, column_id="status",
                 encode=True, user_id="u1"):
    """Raw ``change_column_value`` activity entry for a status column."""
    def label(value):
        if value is None:
            return None
        payload = {"label": value}
        return json.dumps(payload) if encode else payload

    return {
        "id": f"log-{item_id}-{at.isoformat()}",
        "event": "change_column_value",
        "created_at": at.isoformat(),
        "entity": {"id": str(item_id), "name": item_name or f"Item {item_id}"},
        "user": {"id": user_id, "name": "Ana Diaz"},
        "data": json.dumps({
            "column_id": column_id,
            "previous_value": label(previous),
            "value": label(new),
        }),
    }


def make_board(board_id="1001", name="Product Roadmap", columns=None, groups=None,
               items=None, activity_logs=None):
    return {
        "id": board_id,
        "name": name,
        "columns": STANDARD_COLUMNS if columns is None else columns,
        "groups": STANDARD_GROUPS if groups is None else groups,
        "items": items if items is not None else [make_item(i) for i in range(1, 5)],
        "activity_logs": activity_logs or [],
    }


def make_snapshot(**kwargs) -> BoardSnapshot:
    return BoardSnapshot.from_api(make_board(**kwargs))


@pytest.fixture
def now():
    return NOW


@pytest.fixture(autouse=True)
def _reset_circuit_breakers():
    CircuitBreaker.reset_all()
    yield
    CircuitBreaker.reset_all()


@pytest.fixture
def busy_snapshot():
    """Board with a clear "In Progress" bottleneck and one incomplete item."""
    items = [
        make_item(1, group="doing", status="In Progress"),
        make_item(2, group="doing", status="In Progress", owner="Ben Ode"),
        make_item(3, group="done", status="Done"),
        make_item(4, group="todo", status=None),
    ]
    logs = [
        status_event(1, None, "To Do", hours_before(120)),
        status_event(1, "To Do", "In Progress", hours_before(118)),
        status_event(2, None, "To Do", hours_before(100)),
        status_event(2, "To Do", "In Progress", hours_before(98)),
        status_event(3, None, "To Do", hours_before(30)),
        status_event(3, "To Do", "In Progress", hours_before(28)),
        status_event(3, "In Progress", "Done", hours_before(26)),
    ]
    return make_snapshot(items=items, activity_logs=logs)
