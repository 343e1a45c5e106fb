"""Command-line interface for gridledger."""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .config import parse_field_list, settings
from .errors import DatasetError
from .grid.models import AggregationMode
from .session import EditSession

_MODES = {
    "none": AggregationMode.NONE,
    "sum": AggregationMode.SUM,
    "average": AggregationMode.AVERAGE,
    "count": AggregationMode.COUNT,
}


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="gridledger - inspect edits, paste and fill plans for a tabular dataset"
    )
    parser.add_argument(
        "--read-only", default=None, help="Comma-separated columns to lock (default: GRIDLEDGER_READ_ONLY_FIELDS)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    aggregate_parser = subparsers.add_parser("aggregate", help="Aggregate every numeric column")
    aggregate_parser.add_argument("dataset", type=Path, help="Dataset JSON file")
    aggregate_parser.add_argument("--mode", choices=sorted(_MODES), default="sum", help="Aggregation mode (default: sum)")

    paste_parser = subparsers.add_parser("paste", help="Show the writes a paste from stdin would make")
    paste_parser.add_argument("dataset", type=Path, help="Dataset JSON file")
    paste_parser.add_argument("--row", type=int, default=0, help="Anchor row index (default: 0)")
    paste_parser.add_argument("--col", type=int, default=0, help="Anchor column index (default: 0)")

    fill_parser = subparsers.add_parser("fill", help="Show the rows a vertical fill would write")
    fill_parser.add_argument("dataset", type=Path, help="Dataset JSON file")
    fill_parser.add_argument("--column", required=True, help="Column to fill")
    fill_parser.add_argument("--anchor", type=int, required=True, help="Row index to copy from")
    fill_parser.add_argument("--target", type=int, required=True, help="Row index the fill ends on")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.effective_log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        session = load_session(args.dataset, args.read_only)
    except DatasetError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    if args.command == "aggregate":
        output = run_aggregate(session, args.mode)
    elif args.command == "paste":
        output = run_paste(session, sys.stdin.read(), args.row, args.col)
    else:
        output = run_fill(session, args.column, args.anchor, args.target)

    print(json.dumps(output, indent=2, default=str))


def load_session(path: Path, read_only: str = None) -> EditSession:
    """Build an edit session from a ``{"columns": [...], "rows": [...]}`` file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise DatasetError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise DatasetError(f"{path} is not valid JSON: {e}") from e

    if not isinstance(data, dict) or "columns" not in data:
        raise DatasetError(f"{path} must be an object with 'columns' and 'rows'")

    read_only_fields = parse_field_list(read_only) if read_only is not None else None

    try:
        return EditSession(data["columns"], data.get("rows", []), read_only_fields=read_only_fields)
    except ValidationError as e:
        raise DatasetError(f"{path} has invalid columns or rows: {e}") from e


def run_aggregate(session: EditSession, mode: str) -> dict:
    result = session.aggregate(_MODES[mode])
    return {name: value.model_dump(mode="json") for name, value in result.items()}


def run_paste(session: EditSession, text: str, start_row: int, start_col: int) -> dict:
    """Describe a paste without applying it."""
    matrix = session.clipboard.parse_text(text)
    writes = session.clipboard.map_paste(matrix, session.columns, start_row, start_col)
    edits = session.resolve_writes(writes)

    skipped = []
    for write in writes:
        if not 0 <= write.row_index < len(session.rows):
            skipped.append({"row_index": write.row_index, "column_name": write.column_name, "reason": "outside grid"})
            continue
        decision = session.editability.check(write.column_name)
        if not decision.editable:
            skipped.append({"row_index": write.row_index, "column_name": write.column_name, "reason": decision.reason})

    return {
        "writes": [
            {"row_id": edit.row_id, "column_name": edit.column_name, "old_value": edit.old_value, "new_value": edit.new_value}
            for edit in edits
        ],
        "skipped": skipped,
    }


def run_fill(session: EditSession, column: str, anchor: int, target: int) -> dict:
    if not 0 <= anchor < len(session.rows):
        return {"error": f"anchor row {anchor} is outside the grid"}
    plan = session.filler.plan(
        session.rows[anchor].values.get(column),
        anchor,
        target,
        column,
        row_is_editable=lambda index, name: 0 <= index < len(session.rows),
    )
    return {
        "direction": plan.direction,
        "value": plan.source_value,
        "rows": plan.rows,
        "skipped_rows": plan.skipped_rows,
    }


if __name__ == "__main__":
    main()
