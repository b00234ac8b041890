from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .client import SupabaseHttpError, supabase_request
from .config import SupabaseConfig


# Postgres "undefined_column" and PostgREST "column not in schema cache".
UNDEFINED_COLUMN_CODES = ("42703", "PGRST204")


@dataclass(frozen=True)
class ColumnCheck:
    table: str
    present: tuple[str, ...] = ()
    missing: tuple[str, ...] = ()
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.missing and not self.errors


def fetch_sample_columns(config: SupabaseConfig, table: str) -> list[str]:
    """
    Return the column names of one sample row of `table` (empty when the table has no rows).
    """
    rows = supabase_request(config, "GET", table, params={"select": "*", "limit": 1})
    if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
        return []
    return list(rows[0].keys())


def fetch_sample_rows(
    config: SupabaseConfig,
    table: str,
    *,
    columns: Iterable[str] = ("*",),
    limit: int = 20,
) -> list[dict]:
    if limit <= 0:
        raise ValueError("limit must be > 0")
    rows = supabase_request(
        config,
        "GET",
        table,
        params={"select": ",".join(columns), "limit": limit},
    )
    return [r for r in rows or [] if isinstance(r, dict)]


def verify_columns(config: SupabaseConfig, table: str, columns: Iterable[str]) -> ColumnCheck:
    """
    Probe each column with an empty read so missing columns are reported without writing anything.
    """
    present: list[str] = []
    missing: list[str] = []
    errors: dict[str, str] = {}
    for column in columns:
        try:
            supabase_request(config, "GET", table, params={"select": column, "limit": 0})
        except SupabaseHttpError as exc:
            if exc.code in UNDEFINED_COLUMN_CODES or "does not exist" in str(exc):
                missing.append(column)
            else:
                errors[column] = str(exc)
            continue
        present.append(column)
    return ColumnCheck(table=table, present=tuple(present), missing=tuple(missing), errors=errors)
