"""
Board Workflow Analyzer
========================

Reads the latest raw board snapshot written by scripts/fetch_monday.py,
runs the workflow analysis pipeline over it and writes the result to
data/processed/workflow_analysis_<board_id>.json (overwritten each run).

With --ask, the question is classified and answered by the assistant
against the fresh analysis.

Usage:
    python scripts/workflow_analyzer.py --board-id 1234567890
    python scripts/workflow_analyzer.py --board-id 1234567890 --ask "where are my bottlenecks?"
    python scripts/workflow_analyzer.py --snapshot data/raw/monday_board_123_2024-05-01.json
"""
from __future__ import annotations

import argparse
import glob
import json
import sys
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Path setup
# ---------------------------------------------------------------------------
SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT))

load_dotenv(PROJECT_ROOT / ".env")

from models.analysis_models import AnalysisResult  # noqa: E402
from models.board_models import BoardSnapshot, BoardSummary  # noqa: E402
from scripts.analysis.pipeline import run_analysis  # noqa: E402
from scripts.assistant.intents import classify_query  # noqa: E402
from scripts.assistant.responses import generate_response  # noqa: E402
from scripts.lib.errors import DataFetchError, HubError, SchemaValidationError  # noqa: E402
from scripts.lib.logger import setup_logger  # noqa: E402
from scripts.lib.utils import atomic_write_json  # noqa: E402

logger = setup_logger("workflow_analyzer")

RAW_DIR = PROJECT_ROOT / "data" / "raw"
PROCESSED_DIR = PROJECT_ROOT / "data" / "processed"


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def latest_snapshot_file(board_id: str, raw_dir: Path = RAW_DIR) -> Optional[Path]:
    pattern = str(raw_dir / f"monday_board_{board_id}_*.json")
    files = sorted(glob.glob(pattern), reverse=True)
    if not files:
        logger.warning("No raw snapshots found for board %s in %s", board_id, raw_dir)
        return None
    return Path(files[0])


def load_snapshot(path: Path) -> BoardSnapshot:
    logger.info("Loading %s", path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data: Any = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DataFetchError(f"Cannot read snapshot {path}: {e}", source=str(path)) from e

    board = data.get("results", data) if isinstance(data, dict) else None
    if not isinstance(board, dict) or "id" not in board:
        raise SchemaValidationError(f"{path} does not contain a board snapshot", field="results")
    return BoardSnapshot.from_api(board)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

def analyze_board_file(path: Path, processed_dir: Path = PROCESSED_DIR) -> AnalysisResult:
    snapshot = load_snapshot(path)
    result = run_analysis(snapshot)

    output_path = processed_dir / f"workflow_analysis_{result.board_id}.json"
    if atomic_write_json(result.model_dump(mode="json"), output_path):
        logger.info("Workflow analysis saved to %s", output_path)
    return result


def print_summary(result: AnalysisResult):
    print(f"\nAnalysis of \"{result.board_name}\" ({result.board_id})")
    print(f"  Overall efficiency: {result.overall_efficiency}%")
    print(f"    Columns:  {result.columns.efficiency}%")
    print(f"    Groups:   {result.groups.efficiency}%")
    print(f"    Workflow: {result.workflow.efficiency}%")
    print(f"  Bottlenecks: {', '.join(b.status for b in result.bottlenecks) or 'none'}")
    print(f"  Suggestions: {len(result.suggestions)}")
    for s in result.suggestions:
        print(f"    [{s.impact.value:<6}] {s.category.value}: {s.title}")


def answer(result: AnalysisResult, question: str) -> str:
    classification = classify_query(question)
    board = BoardSummary(id=result.board_id, name=result.board_name)
    response = generate_response(classification, result, result.board_id, [board])
    logger.info("Answered %r as %s", question, classification.intent.value)
    return response.text


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Analyze a Monday.com board snapshot")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--board-id", help="Analyze the latest raw snapshot of this board")
    source.add_argument("--snapshot", type=Path, help="Analyze this snapshot file")
    parser.add_argument("--ask", help="Ask the assistant a question about the board")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    path = args.snapshot or latest_snapshot_file(args.board_id)
    if path is None:
        print(f"No snapshot for board {args.board_id}; run scripts/fetch_monday.py first.")
        return 1

    try:
        result = analyze_board_file(path)
    except HubError as e:
        logger.error("Workflow analysis failed: %s", e)
        return 1

    print_summary(result)
    if args.ask:
        print(f"\n> {args.ask}\n{answer(result, args.ask)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
