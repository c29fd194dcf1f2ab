"""
Board Insights Hub — Entry Point
==================================

Serves the analysis API (dashboard/api/main.py) with uvicorn.

Run:
    python main.py
    python main.py --port 9000 --reload
"""

import argparse
import os
import sys

from dotenv import load_dotenv

load_dotenv()

from scripts.lib.logger import setup_logger  # noqa: E402

logger = setup_logger("board-insights-hub")

APP = "dashboard.api.main:app"


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the Board Insights Hub API")
    parser.add_argument("--host", default=os.getenv("DASHBOARD_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("DASHBOARD_PORT", "8001")))
    parser.add_argument(
        "--reload", action="store_true",
        default=os.getenv("DEBUG", "false").lower() == "true",
        help="Restart on code changes (default: DEBUG env)",
    )
    return parser.parse_args(argv)


def log_banner(host: str, port: int):
    monday = "configured" if os.getenv("MONDAY_API_KEY") else "not configured (boards list will be empty)"
    logger.info("=" * 60)
    logger.info("  BOARD INSIGHTS HUB  Monday.com workflow analytics")
    logger.info("=" * 60)
    logger.info("  Environment : %s", os.getenv("ENVIRONMENT", "development"))
    logger.info("  Monday.com  : %s", monday)
    logger.info("  API         : http://%s:%d/api/health", host, port)
    logger.info("  Docs        : http://localhost:%d/docs", port)
    logger.info("  Live feed   : ws://localhost:%d/ws/dashboard", port)
    logger.info("=" * 60)


def main(argv=None) -> int:
    import uvicorn

    args = _parse_args(argv)
    log_banner(args.host, args.port)
    uvicorn.run(APP, host=args.host, port=args.port, reload=args.reload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
