"""
Monday.com Snapshot Fetcher
============================

Pulls one board's snapshot (columns, groups, items, activity log) from the
Monday.com GraphQL API v2 and writes it to
data/raw/monday_board_<id>_<YYYY-MM-DD>.json for scripts/workflow_analyzer.py.

Handles cursor pagination, rate limiting (stays under 60 req/min), retries
on timeouts / 429s, and a circuit breaker around the API.

Usage:
    python scripts/fetch_monday.py --list-boards
    python scripts/fetch_monday.py --board-id 1234567890
    python scripts/fetch_monday.py --board-id 1234567890 --log-limit 1000
"""
from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv

BASE_DIR = Path(__file__).parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

load_dotenv(BASE_DIR / ".env")

from integrations.monday import (  # noqa: E402
    BOARD_SNAPSHOT_QUERY,
    BOARDS_PAGE_SIZE,
    BOARDS_QUERY,
    DEFAULT_ACTIVITY_LOG_LIMIT,
    DEFAULT_API_URL,
    DEFAULT_API_VERSION,
    ITEMS_PAGE_SIZE,
    NEXT_ITEMS_QUERY,
    graphql_errors,
)
from scripts.lib.circuit_breaker import circuit_breaker_request  # noqa: E402
from scripts.lib.errors import (  # noqa: E402
    APIAuthError,
    APIError,
    APIRateLimitError,
    APITimeoutError,
    BoardNotFoundError,
    ConfigError,
    HubError,
)
from scripts.lib.logger import setup_logger  # noqa: E402
from scripts.lib.utils import atomic_write_json, retry_on_exception  # noqa: E402

logger = setup_logger("fetch_monday")

RAW_DIR = BASE_DIR / "data" / "raw"

MONDAY_RATE_LIMIT = 55  # stay under 60 req/min
MONDAY_RATE_WINDOW = 60  # seconds


class MondayClient:
    """Monday.com GraphQL API v2 client with pagination and rate limiting."""

    def __init__(self, api_key: str, api_url: str = None, api_version: str = None):
        self.api_key = api_key
        self.api_url = api_url or os.getenv("MONDAY_API_URL", DEFAULT_API_URL)
        self.session = requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Authorization": api_key,
            "API-Version": api_version or os.getenv("MONDAY_API_VERSION", DEFAULT_API_VERSION),
        })
        self._request_timestamps: List[float] = []

    def _rate_limit_wait(self):
        now = time.time()
        self._request_timestamps = [
            t for t in self._request_timestamps if now - t < MONDAY_RATE_WINDOW
        ]
        if len(self._request_timestamps) >= MONDAY_RATE_LIMIT:
            sleep_time = MONDAY_RATE_WINDOW - (now - self._request_timestamps[0]) + 0.5
            logger.debug("Rate limit approaching, sleeping %.1fs", sleep_time)
            time.sleep(sleep_time)
        self._request_timestamps.append(time.time())

    @retry_on_exception(max_attempts=3, delay=2.0, backoff=2.0,
                        exceptions=(APITimeoutError, APIRateLimitError))
    def _query(self, query: str, variables: Optional[dict] = None) -> Dict[str, Any]:
        self._rate_limit_wait()
        body: Dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables

        resp = circuit_breaker_request("monday", self.api_url, session=self.session, json=body)
        if resp.status_code in (401, 403):
            raise APIAuthError(self.api_url, status_code=resp.status_code)
        if resp.status_code == 429:
            retry_after = resp.headers.get("Retry-After", "")
            logger.warning("Rate limited (429), Retry-After=%s", retry_after or "?")
            raise APIRateLimitError(self.api_url, int(retry_after) if retry_after.isdigit() else None)
        if resp.status_code >= 400:
            raise APIError(
                f"Monday.com API returned {resp.status_code}",
                status_code=resp.status_code, url=self.api_url,
            )

        payload = resp.json()
        errors = graphql_errors(payload)
        if errors:
            logger.error("GraphQL errors: %s", errors)
            raise APIError(f"GraphQL errors: {errors}", code="GRAPHQL_ERROR", url=self.api_url)
        return payload.get("data") or {}

    def fetch_boards(self) -> List[dict]:
        """Fetch all boards with basic info."""
        logger.info("Fetching boards...")
        all_boards: List[dict] = []
        page = 1
        while True:
            data = self._query(BOARDS_QUERY, {"page": page, "limit": BOARDS_PAGE_SIZE})
            boards = data.get("boards") or []
            all_boards.extend(boards)
            logger.debug("Page %d: %d boards (total: %d)", page, len(boards), len(all_boards))
            if len(boards) < BOARDS_PAGE_SIZE:
                break
            page += 1
        logger.info("Fetched %d boards", len(all_boards))
        return all_boards

    def fetch_board_snapshot(self, board_id: str, log_limit: int = DEFAULT_ACTIVITY_LOG_LIMIT) -> dict:
        """One board with all items (cursor-paginated) and its activity log.

        The returned dict is the raw API board with ``items`` flattened out of
        ``items_page``, ready for BoardSnapshot.from_api().
        """
        logger.info("Fetching snapshot for board %s...", board_id)
        data = self._query(BOARD_SNAPSHOT_QUERY, {
            "boardId": [str(board_id)],
            "itemLimit": ITEMS_PAGE_SIZE,
            "logLimit": log_limit,
        })
        boards = data.get("boards") or []
        if not boards or not boards[0]:
            raise BoardNotFoundError(board_id)
        board = dict(boards[0])

        page_data = board.pop("items_page", None) or {}
        items = list(page_data.get("items") or [])
        cursor = page_data.get("cursor")
        page = 1
        while cursor:
            page += 1
            data = self._query(NEXT_ITEMS_QUERY, {"cursor": cursor, "itemLimit": ITEMS_PAGE_SIZE})
            page_data = data.get("next_items_page") or {}
            batch = page_data.get("items") or []
            if not batch:
                break
            items.extend(batch)
            cursor = page_data.get("cursor")
            logger.debug("Page %d: %d items (total: %d)", page, len(batch), len(items))

        board["items"] = items
        board["activity_logs"] = board.get("activity_logs") or []
        logger.info(
            "Fetched %d items and %d activity log entries from board %s",
            len(items), len(board["activity_logs"]), board_id,
        )
        return board


# ---------------------------------------------------------------------------
# Raw-file writer
# ---------------------------------------------------------------------------

def raw_snapshot_path(board_id: str, date_stamp: str, raw_dir: Path = RAW_DIR) -> Path:
    return raw_dir / f"monday_board_{board_id}_{date_stamp}.json"


def write_raw_snapshot(board: dict, date_stamp: str, raw_dir: Path = RAW_DIR) -> Optional[Path]:
    payload = {
        "source": "monday",
        "object_type": "board_snapshot",
        "captured_at": date_stamp,
        "record_count": len(board.get("items") or []),
        "results": board,
    }
    out_path = raw_snapshot_path(str(board.get("id")), date_stamp, raw_dir)
    if not atomic_write_json(payload, out_path):
        return None
    logger.info("Saved board %s snapshot -> %s", board.get("id"), out_path)
    return out_path


# ---------------------------------------------------------------------------
# Main orchestration
# ---------------------------------------------------------------------------

def _client() -> MondayClient:
    api_key = os.getenv("MONDAY_API_KEY")
    if not api_key:
        raise ConfigError("Missing MONDAY_API_KEY environment variable", setting="MONDAY_API_KEY")
    return MondayClient(api_key)


def list_boards() -> List[dict]:
    boards = _client().fetch_boards()
    for board in boards:
        workspace = (board.get("workspace") or {}).get("name") or "-"
        print(f"{board.get('id'):>14}  {board.get('state', ''):<9} {workspace:<24} {board.get('name')}")
    return boards


def fetch_monday(board_id: str, log_limit: int = None) -> Optional[Path]:
    """Fetch one board snapshot and write it under data/raw/."""
    if log_limit is None:
        log_limit = int(os.getenv("MONDAY_ACTIVITY_LOG_LIMIT", DEFAULT_ACTIVITY_LOG_LIMIT))

    logger.info("Starting Monday.com snapshot export for board %s", board_id)
    board = _client().fetch_board_snapshot(board_id, log_limit=log_limit)
    return write_raw_snapshot(board, time.strftime("%Y-%m-%d"))


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Fetch a Monday.com board snapshot")
    parser.add_argument("--board-id", help="Board to export")
    parser.add_argument(
        "--list-boards", action="store_true",
        help="List boards visible to the API token and exit",
    )
    parser.add_argument(
        "--log-limit", type=int, default=None,
        help=f"Activity log entries to fetch (default MONDAY_ACTIVITY_LOG_LIMIT or {DEFAULT_ACTIVITY_LOG_LIMIT})",
    )
    args = parser.parse_args(argv)
    if not args.list_boards and not args.board_id:
        parser.error("one of --board-id or --list-boards is required")
    return args


def main(argv=None) -> int:
    args = _parse_args(argv)
    try:
        if args.list_boards:
            list_boards()
            return 0
        return 0 if fetch_monday(args.board_id, args.log_limit) else 1
    except HubError as e:
        logger.error("Monday.com extraction failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
