from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


_ensure_backend_on_path()

from connectors.supabase.client import SupabaseHttpError  # noqa: E402
from connectors.supabase.config import get_supabase_config  # noqa: E402
from connectors.supabase.schema import fetch_sample_columns, fetch_sample_rows, verify_columns  # noqa: E402

logger = logging.getLogger("inspect_schema")


def _split_columns(raw: str) -> list[str]:
    return [c.strip() for c in raw.split(",") if c.strip()]


def format_columns_dump(table: str, columns: list[str], rows: list[dict]) -> str:
    lines = [f"--- {table} Columns ({len(columns)}) ---", ", ".join(columns), "", "--- Data Sample ---"]
    for row in rows:
        label = row.get("name") or row.get("title") or row.get("id") or "?"
        lines.append(f"{label}: {json.dumps(row, default=str, sort_keys=True)}")
    return "\n".join(lines) + "\n"


def cmd_columns(args: argparse.Namespace) -> int:
    config = get_supabase_config()
    columns = fetch_sample_columns(config, args.table)
    if not columns:
        print(f"No records found in {args.table}; columns cannot be inferred from a sample row.")
        return 1
    print(f"{args.table} columns ({len(columns)}): {', '.join(columns)}")

    if args.output:
        sample_columns = _split_columns(args.sample_columns) if args.sample_columns else ["*"]
        rows = fetch_sample_rows(config, args.table, columns=sample_columns, limit=args.limit)
        out_path = Path(args.output)
        out_path.write_text(format_columns_dump(args.table, columns, rows), encoding="utf-8")
        print(f"Wrote {out_path}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    config = get_supabase_config()
    check = verify_columns(config, args.table, _split_columns(args.columns))
    for column in check.present:
        print(f"OK       {args.table}.{column}")
    for column in check.missing:
        print(f"MISSING  {args.table}.{column}")
    for column, error in check.errors.items():
        print(f"ERROR    {args.table}.{column}: {error}")
    if check.missing:
        print("Columns are missing from the database; run the pending migration before deploying.")
    return 0 if check.ok else 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Probe the hosted database schema (tables and columns).")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    columns = sub.add_parser("columns", help="List the columns of a table from one sample row.")
    columns.add_argument("--table", required=True, help="Table name (e.g. Client, Task, Payment).")
    columns.add_argument("--output", default=None, help="Also write a columns + data sample dump to this file.")
    columns.add_argument(
        "--sample-columns",
        default=None,
        help="Comma-separated columns to include in the data sample (default: all).",
    )
    columns.add_argument("--limit", type=int, default=20, help="Rows in the data sample (default: 20).")
    columns.set_defaults(func=cmd_columns)

    verify = sub.add_parser("verify", help="Check that the given columns exist on a table.")
    verify.add_argument("--table", required=True, help="Table name.")
    verify.add_argument(
        "--columns",
        required=True,
        help="Comma-separated column names (e.g. billing_day,contract_end_date,service_details).",
    )
    verify.set_defaults(func=cmd_verify)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        return args.func(args)
    except (SupabaseHttpError, ValueError) as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
