"""
Board Insights Hub — Logging
==============================

One log format for the CLI scripts, the analysis pipeline and the API.
Output goes to stdout and, unless LOG_TO_FILE=false, to a daily file
logs/YYYYMMDD_board_insights.log (LOG_DIR overrides the directory).

Usage:
    from scripts.lib.logger import setup_logger
    logger = setup_logger("analysis_pipeline")
    logger.info("Analyzed board %s", board_id)
"""
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import List

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_LOG_DIR = PROJECT_ROOT / "logs"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Per-request chatter from the HTTP stacks; our own loggers cover the calls.
NOISY_LOGGERS = ("aiohttp.access", "urllib3.connectionpool")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def log_file_path(log_dir: Path = None, day: datetime = None) -> Path:
    target_dir = Path(log_dir or os.getenv("LOG_DIR") or DEFAULT_LOG_DIR)
    return target_dir / f"{(day or datetime.now()).strftime('%Y%m%d')}_board_insights.log"


def _handlers(log_to_file: bool, log_dir: Path = None) -> List[logging.Handler]:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    handlers: List[logging.Handler] = [console]

    if log_to_file:
        path = log_file_path(log_dir)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(formatter)
    return handlers


def setup_logger(
    name: str,
    level: str = None,
    log_to_file: bool = None,
    log_dir: Path = None,
) -> logging.Logger:
    """
    Configure and return a named logger.

    Args:
        name: Component name ("fetch_monday", "analysis_router") or __name__.
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Defaults to LOG_LEVEL,
            then INFO.
        log_to_file: Also write the daily log file. Defaults to LOG_TO_FILE,
            then True.
        log_dir: Directory for the daily file. Defaults to LOG_DIR, then
            <project root>/logs.

    Calling it again for the same name returns the existing logger untouched.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if log_to_file is None:
        log_to_file = _env_flag("LOG_TO_FILE", True)

    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.propagate = False
    for handler in _handlers(log_to_file, log_dir):
        logger.addHandler(handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Existing logger for ``name``, configured with defaults if it is new."""
    logger = logging.getLogger(name)
    return logger if logger.handlers else setup_logger(name)
