"""
Board Insights Hub — Board Snapshot Models
===========================================

Immutable pydantic models for one fetched Monday.com board: columns, groups,
items with their column values, and the board's activity log.

Column types are resolved once at ingestion into ColumnType; everything
downstream compares against the enum, never against raw API strings.
"""
from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from scripts.lib.utils import parse_datetime


# ─── Column Types ───────────────────────────────────────────

class ColumnType(str, Enum):
    STATUS = "status"
    PEOPLE = "people"
    DATE = "date"
    NUMBERS = "numbers"
    TEXT = "text"
    DROPDOWN = "dropdown"
    TIMELINE = "timeline"
    DEPENDENCY = "dependency"
    CHECKBOX = "checkbox"
    LINK = "link"
    EMAIL = "email"
    PHONE = "phone"
    FORMULA = "formula"
    RATING = "rating"
    OTHER = "other"


# Older API versions and board exports use these names for the same types.
COLUMN_TYPE_SYNONYMS: Dict[str, ColumnType] = {
    "color": ColumnType.STATUS,
    "person": ColumnType.PEOPLE,
    "multiple-person": ColumnType.PEOPLE,
    "multiple_person": ColumnType.PEOPLE,
    "numeric": ColumnType.NUMBERS,
    "number": ColumnType.NUMBERS,
    "long-text": ColumnType.TEXT,
    "long_text": ColumnType.TEXT,
    "timerange": ColumnType.TIMELINE,
    "boolean": ColumnType.CHECKBOX,
    "tag": ColumnType.DROPDOWN,
}


def resolve_column_type(raw: Any) -> ColumnType:
    """Map an API column type string to ColumnType (OTHER if unknown)."""
    if isinstance(raw, ColumnType):
        return raw
    key = str(raw or "").strip().lower()
    if key in COLUMN_TYPE_SYNONYMS:
        return COLUMN_TYPE_SYNONYMS[key]
    try:
        return ColumnType(key)
    except ValueError:
        return ColumnType.OTHER


def _str_id(val: Any) -> Optional[str]:
    if val is None or val == "":
        return None
    return str(val)


# ─── Board Structure ────────────────────────────────────────

class Column(BaseModel):
    """A typed field tracked per item."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    type: ColumnType = ColumnType.OTHER
    raw_type: str = ""
    settings: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, raw: dict) -> "Column":
        settings = raw.get("settings")
        if settings is None and raw.get("settings_str"):
            try:
                settings = json.loads(raw["settings_str"])
            except (json.JSONDecodeError, TypeError):
                settings = None
        return cls(
            id=str(raw.get("id", "")),
            title=raw.get("title") or "",
            type=resolve_column_type(raw.get("type")),
            raw_type=str(raw.get("type") or ""),
            settings=settings if isinstance(settings, dict) else {},
        )


class Group(BaseModel):
    """A named workflow stage / category partitioning items."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    color: Optional[str] = None
    position: Optional[str] = None

    @classmethod
    def from_api(cls, raw: dict) -> "Group":
        position = raw.get("position")
        return cls(
            id=str(raw.get("id", "")),
            title=raw.get("title") or "",
            color=raw.get("color"),
            position=str(position) if position is not None else None,
        )


class ColumnValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    column_id: str
    title: str = ""
    type: ColumnType = ColumnType.OTHER
    text: str = ""
    value: Any = None

    @property
    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())

    @classmethod
    def from_api(cls, raw: dict, columns: Dict[str, Column] = None) -> "ColumnValue":
        column_id = str(raw.get("id", ""))
        column = (columns or {}).get(column_id)
        title = raw.get("title") or (column.title if column else "") or column_id
        raw_type = raw.get("type")
        if raw_type:
            col_type = resolve_column_type(raw_type)
        else:
            col_type = column.type if column else ColumnType.OTHER
        return cls(
            column_id=column_id,
            title=title,
            type=col_type,
            text=raw.get("text") or "",
            value=raw.get("value"),
        )


class Item(BaseModel):
    """A unit of work. ``group_id`` is a weak reference to a Group."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    group_id: Optional[str] = None
    column_values: Tuple[ColumnValue, ...] = ()

    @classmethod
    def from_api(cls, raw: dict, columns: Dict[str, Column] = None) -> "Item":
        group = raw.get("group") or {}
        return cls(
            id=str(raw.get("id", "")),
            name=raw.get("name") or "",
            group_id=_str_id(group.get("id")) if isinstance(group, dict) else _str_id(group),
            column_values=tuple(
                ColumnValue.from_api(cv, columns)
                for cv in raw.get("column_values") or []
                if isinstance(cv, dict)
            ),
        )


# ─── Activity Log ───────────────────────────────────────────

class EntityRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: Optional[str] = None


class ActivityEvent(BaseModel):
    """One raw activity-log entry.

    ``data`` stays opaque (a dict or a JSON string); decoding it is the
    transition extractor's job. ``timestamp`` is None when ``created_at``
    could not be parsed. ``entity`` is None when the log names the entity
    kind (e.g. ``"pulse"``) instead of an ``{id, name}`` reference.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    event: str = ""
    timestamp: Optional[datetime] = None
    entity: Optional[EntityRef] = None
    user: Optional[EntityRef] = None
    data: Any = None

    @classmethod
    def from_api(cls, raw: dict) -> "ActivityEvent":
        entity = raw.get("entity")
        user = raw.get("user")
        if isinstance(user, dict):
            user_ref = EntityRef(id=_str_id(user.get("id")), name=user.get("name"))
        elif raw.get("user_id") is not None:
            user_ref = EntityRef(id=_str_id(raw.get("user_id")))
        else:
            user_ref = None
        return cls(
            id=_str_id(raw.get("id")),
            event=raw.get("event") or "",
            timestamp=parse_datetime(raw.get("created_at")),
            entity=(
                EntityRef(id=_str_id(entity.get("id")), name=entity.get("name"))
                if isinstance(entity, dict) else None
            ),
            user=user_ref,
            data=raw.get("data"),
        )


# ─── Snapshot ───────────────────────────────────────────────

class BoardSnapshot(BaseModel):
    """Everything fetched for one board at one moment. Never mutated."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    columns: Tuple[Column, ...] = ()
    groups: Tuple[Group, ...] = ()
    items: Tuple[Item, ...] = ()
    activity_logs: Tuple[ActivityEvent, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.columns or self.groups or self.items)

    @classmethod
    def from_api(
        cls,
        board: dict,
        items: Optional[List[dict]] = None,
        activity_logs: Optional[List[dict]] = None,
    ) -> "BoardSnapshot":
        """Build a snapshot from raw API dicts.

        ``items`` and ``activity_logs`` default to the lists nested in
        ``board`` (``items`` or ``items_page.items``, and ``activity_logs``).
        """
        columns = tuple(
            Column.from_api(c) for c in board.get("columns") or [] if isinstance(c, dict)
        )
        by_id = {c.id: c for c in columns}

        if items is None:
            items = board.get("items")
            if items is None:
                items = (board.get("items_page") or {}).get("items") or []
        if activity_logs is None:
            activity_logs = board.get("activity_logs") or []

        return cls(
            id=str(board.get("id", "")),
            name=board.get("name") or "",
            columns=columns,
            groups=tuple(
                Group.from_api(g) for g in board.get("groups") or [] if isinstance(g, dict)
            ),
            items=tuple(Item.from_api(i, by_id) for i in items if isinstance(i, dict)),
            activity_logs=tuple(
                ActivityEvent.from_api(a) for a in activity_logs if isinstance(a, dict)
            ),
        )


class BoardSummary(BaseModel):
    """Board list entry as shown in the board picker."""
    id: str
    name: str
    workspace: Optional[str] = None
    item_count: Optional[int] = None
    state: Optional[str] = None

    @classmethod
    def from_api(cls, raw: dict) -> "BoardSummary":
        return cls(
            id=str(raw.get("id", "")),
            name=raw.get("name") or "",
            workspace=(raw.get("workspace") or {}).get("name"),
            item_count=raw.get("items_count"),
            state=raw.get("state"),
        )
