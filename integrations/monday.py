"""
Monday.com Integration
=======================

Async connector to the Monday.com GraphQL API v2 for:
- Board listing (board picker)
- Full board snapshots: columns, groups, items, activity log

The GraphQL documents below are shared with the CLI fetcher
(scripts/fetch_monday.py) so both produce the same snapshot shape.

Setup:
1. Get an API token from Monday.com -> Avatar -> Developers -> My access tokens
2. Set MONDAY_API_KEY in .env
"""
from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, List, Optional

import aiohttp

from models.board_models import BoardSnapshot, BoardSummary
from scripts.lib.circuit_breaker import CircuitBreaker
from scripts.lib.errors import (
    APIAuthError,
    APIError,
    APIRateLimitError,
    APITimeoutError,
    BoardNotFoundError,
    ConfigError,
)
from scripts.lib.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_API_URL = "https://api.monday.com/v2"
DEFAULT_API_VERSION = "2024-10"
DEFAULT_ACTIVITY_LOG_LIMIT = 500
BOARDS_PAGE_SIZE = 50
ITEMS_PAGE_SIZE = 100
REQUEST_TIMEOUT = 30

# ─── GraphQL ────────────────────────────────────────────────

# No 'title' on column_values since API 2024-10; titles come from board columns
ITEM_FIELDS = """
    id
    name
    group { id title }
    column_values { id type text value }
"""

BOARDS_QUERY = """
query ($page: Int!, $limit: Int!) {
    boards (page: $page, limit: $limit) {
        id name state items_count
        workspace { id name }
    }
}
"""

BOARD_SNAPSHOT_QUERY = f"""
query ($boardId: [ID!]!, $itemLimit: Int!, $logLimit: Int!) {{
    boards (ids: $boardId) {{
        id name
        columns {{ id title type settings_str }}
        groups {{ id title color position }}
        items_page (limit: $itemLimit) {{
            cursor
            items {{ {ITEM_FIELDS} }}
        }}
        activity_logs (limit: $logLimit) {{
            id event data entity created_at user_id
        }}
    }}
}}
"""

NEXT_ITEMS_QUERY = f"""
query ($cursor: String!, $itemLimit: Int!) {{
    next_items_page (cursor: $cursor, limit: $itemLimit) {{
        cursor
        items {{ {ITEM_FIELDS} }}
    }}
}}
"""


def graphql_errors(payload: Dict[str, Any]) -> Optional[str]:
    """Joined GraphQL error messages, or None if the response has none."""
    errors = payload.get("errors") or payload.get("error_message")
    if not errors:
        return None
    if isinstance(errors, list):
        return "; ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors)
    return str(errors)


class MondayIntegration:
    """Monday.com board connector."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        api_version: Optional[str] = None,
        activity_log_limit: Optional[int] = None,
    ):
        self.api_key = api_key or os.getenv("MONDAY_API_KEY")
        self.api_url = api_url or os.getenv("MONDAY_API_URL", DEFAULT_API_URL)
        self.api_version = api_version or os.getenv("MONDAY_API_VERSION", DEFAULT_API_VERSION)
        self.activity_log_limit = int(
            activity_log_limit or os.getenv("MONDAY_ACTIVITY_LOG_LIMIT", DEFAULT_ACTIVITY_LOG_LIMIT)
        )
        self.breaker = CircuitBreaker.get("monday")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": self.api_key or "",
            "API-Version": self.api_version,
            "Content-Type": "application/json",
        }

    async def _query(self, query: str, variables: Optional[dict] = None) -> Dict[str, Any]:
        """POST a GraphQL document and return its ``data`` block.

        Raises:
            ConfigError: MONDAY_API_KEY is not set.
            CircuitOpenError: Monday.com has been failing; not called.
            APIAuthError / APIRateLimitError / APITimeoutError / APIError
        """
        if not self.is_configured:
            raise ConfigError("Monday.com is not configured, set MONDAY_API_KEY in .env",
                              setting="MONDAY_API_KEY")

        self.breaker.guard()
        body: Dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables

        timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.api_url, headers=self._headers(), json=body) as resp:
                    if resp.status >= 500:
                        self.breaker.record_failure()
                        text = await resp.text()
                        logger.error("Monday.com API returned %d: %s", resp.status, text[:300])
                        raise APIError(
                            f"Monday.com API returned {resp.status}",
                            status_code=resp.status, url=self.api_url,
                        )
                    # Monday.com answered; a rejected token or a 429 still closes the circuit.
                    self.breaker.record_success()
                    if resp.status in (401, 403):
                        raise APIAuthError(self.api_url, status_code=resp.status)
                    if resp.status == 429:
                        retry_after = resp.headers.get("Retry-After")
                        raise APIRateLimitError(
                            self.api_url, int(retry_after) if retry_after and retry_after.isdigit() else None,
                        )
                    try:
                        payload = await resp.json(content_type=None)
                    except ValueError as e:
                        logger.error("Monday.com API returned a non-JSON body: %s", e)
                        raise APIError(
                            "Monday.com API returned a non-JSON body",
                            status_code=resp.status, url=self.api_url,
                        ) from e
        except asyncio.TimeoutError as e:
            self.breaker.record_failure()
            logger.error("Monday.com API timed out after %ds", REQUEST_TIMEOUT)
            raise APITimeoutError(self.api_url, REQUEST_TIMEOUT) from e
        except aiohttp.ClientError as e:
            self.breaker.record_failure()
            logger.error("Monday.com API error: %s", e)
            raise APIError(f"Monday.com request failed: {e}", url=self.api_url) from e

        errors = graphql_errors(payload or {})
        if errors:
            logger.error("Monday.com GraphQL errors: %s", errors)
            raise APIError(f"GraphQL errors: {errors}", code="GRAPHQL_ERROR", url=self.api_url)
        return (payload or {}).get("data") or {}

    async def get_boards(self) -> List[BoardSummary]:
        """All boards visible to the token. Empty when not configured."""
        if not self.is_configured:
            logger.warning("Monday.com is not configured, set MONDAY_API_KEY in .env")
            return []

        boards: List[BoardSummary] = []
        page = 1
        while True:
            data = await self._query(BOARDS_QUERY, {"page": page, "limit": BOARDS_PAGE_SIZE})
            batch = data.get("boards") or []
            boards.extend(BoardSummary.from_api(b) for b in batch)
            if len(batch) < BOARDS_PAGE_SIZE:
                break
            page += 1

        logger.info("Fetched %d Monday.com boards", len(boards))
        return boards

    async def get_board_snapshot(self, board_id: str) -> BoardSnapshot:
        """Columns, groups, every item (cursor-paginated) and the activity log.

        Raises:
            BoardNotFoundError: No board with that id is visible to the token.
        """
        data = await self._query(BOARD_SNAPSHOT_QUERY, {
            "boardId": [str(board_id)],
            "itemLimit": ITEMS_PAGE_SIZE,
            "logLimit": self.activity_log_limit,
        })
        boards = data.get("boards") or []
        if not boards or not boards[0]:
            raise BoardNotFoundError(board_id)
        board = boards[0]

        page = board.get("items_page") or {}
        items: List[dict] = list(page.get("items") or [])
        cursor = page.get("cursor")
        while cursor:
            data = await self._query(NEXT_ITEMS_QUERY, {"cursor": cursor, "itemLimit": ITEMS_PAGE_SIZE})
            page = data.get("next_items_page") or {}
            batch = page.get("items") or []
            if not batch:
                break
            items.extend(batch)
            cursor = page.get("cursor")

        logs = board.get("activity_logs") or []
        logger.info(
            "Fetched board %s: %d items, %d activity log entries",
            board_id, len(items), len(logs),
        )
        return BoardSnapshot.from_api(board, items=items, activity_logs=logs)

    def get_status(self) -> Dict[str, Any]:
        return {
            "name": "Monday.com",
            "configured": self.is_configured,
            "api_version": self.api_version,
            "circuit": self.breaker.status(),
            "features": ["boards", "items", "activity_logs"],
        }
