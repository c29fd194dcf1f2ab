"""
Board Insights Hub — Status-Transition Extractor
==================================================

Rebuilds per-item status changes from a board's activity log.

Activity payloads are JSON in JSON: ``data`` may be a dict or a JSON string,
and the status values inside it may themselves be JSON strings such as
``{"label": "In Progress"}`` (or, from the live API, dicts such as
``{"label": {"index": 1, "text": "In Progress"}}``). All of that decoding
goes through decode_payload() and decode_status_value(); nothing here raises
on bad input, unreadable events are dropped and counted.
"""
from __future__ import annotations

import json
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from models.analysis_models import StatusChange
from models.board_models import ActivityEvent
from scripts.lib.logger import setup_logger

logger = setup_logger(__name__)

COLUMN_CHANGE_EVENT = "change_column_value"
_TITLE_FIELDS = ("column_title", "title", "text")


def decode_payload(raw: Any) -> Optional[dict]:
    """Decode an activity ``data`` field into a dict, or None if it isn't one."""
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            decoded = json.loads(raw)
        except (json.JSONDecodeError, TypeError, ValueError):
            return None
        return decoded if isinstance(decoded, dict) else None
    return None


def _label_of(obj: dict) -> Optional[str]:
    label = obj.get("label")
    if isinstance(label, dict):
        label = label.get("text")
    if label is None or label == "":
        return None
    return str(label)


def decode_status_value(raw: Any) -> Optional[str]:
    """Return the status label held by ``raw``.

    Fallback contract: a JSON object with a ``label`` yields the label;
    anything else (unparseable text, JSON without a label, plain strings)
    yields the raw value as a string. Empty input yields None.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, dict):
        label = _label_of(raw)
        return label if label is not None else json.dumps(raw, sort_keys=True)
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except (json.JSONDecodeError, TypeError, ValueError):
            return raw
        if isinstance(decoded, dict):
            label = _label_of(decoded)
            if label is not None:
                return label
        return raw
    return str(raw)


def is_status_column(payload: dict) -> bool:
    column_id = str(payload.get("column_id") or "").lower()
    if column_id == "status" or "status" in column_id:
        return True
    return any(
        "status" in str(payload.get(field) or "").lower() for field in _TITLE_FIELDS
    )


def _item_ref(event: ActivityEvent, payload: dict) -> tuple[Optional[str], Optional[str]]:
    if event.entity and event.entity.id:
        return event.entity.id, event.entity.name
    pulse_id = payload.get("pulse_id")
    return (
        str(pulse_id) if pulse_id is not None else None,
        payload.get("pulse_name"),
    )


def extract_status_changes(events: Iterable[ActivityEvent]) -> List[StatusChange]:
    """Return the status changes in ``events``, in log order."""
    changes: List[StatusChange] = []
    dropped: Counter = Counter()

    for event in events:
        if event.event != COLUMN_CHANGE_EVENT or not event.data:
            continue

        payload = decode_payload(event.data)
        if payload is None:
            dropped["unparseable"] += 1
            continue
        if not payload.get("column_id") or not payload.get("value"):
            dropped["missing_column_or_value"] += 1
            continue
        if not is_status_column(payload):
            continue
        if event.timestamp is None:
            dropped["bad_timestamp"] += 1
            continue

        previous_status = decode_status_value(payload.get("previous_value"))
        new_status = decode_status_value(payload.get("value"))
        if new_status == previous_status:
            dropped["no_op"] += 1
            continue

        item_id, item_name = _item_ref(event, payload)
        changes.append(StatusChange(
            item_id=item_id,
            item_name=item_name,
            previous_status=previous_status,
            new_status=new_status,
            timestamp=event.timestamp,
            user_id=event.user.id if event.user else None,
            user_name=event.user.name if event.user else None,
        ))

    if dropped:
        logger.debug("Dropped activity events: %s", dict(dropped))
    logger.debug("Extracted %d status changes", len(changes))
    return changes


def analyze_status_transitions(changes: Iterable[StatusChange]) -> Dict[str, Dict[str, int]]:
    """Count from-status -> to-status transitions."""
    transitions: Dict[str, Dict[str, int]] = {}
    for change in changes:
        if not change.previous_status or not change.new_status:
            continue
        targets = transitions.setdefault(change.previous_status, {})
        targets[change.new_status] = targets.get(change.new_status, 0) + 1
    return transitions
