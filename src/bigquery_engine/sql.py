"""
SQL string builders for the BigQuery engine.

The engine renders only one statement itself: the table existence query.
Functions are deterministic and side-effect free.
"""

from __future__ import annotations

from src.bigquery_engine.identifiers import parse_table_name


def escape_sql_literal(value: str) -> str:
    """
    Escape a Python string for use as a single-quoted GoogleSQL string literal.
    Backslashes and single quotes are backslash-escaped. Empty/None → empty string.
    """
    return (value or "").replace("\\", "\\\\").replace("'", "\\'")


def build_table_exists_query(table_name: str, home_project: str) -> str:
    """
    Return a query yielding one boolean row: does `table_name` exist?

    Example:
        build_table_exists_query("ds.events", "proj")
        -> "SELECT EXISTS (SELECT 1 FROM proj.ds.INFORMATION_SCHEMA.TABLES
            WHERE table_name = 'events')"  (on one line)

    Raises:
        MalformedNameError: if `table_name` is not a 2- or 3-part name.
    """
    reference = parse_table_name(table_name, home_project)
    information_schema = f"{reference.project}.{reference.dataset}.INFORMATION_SCHEMA.TABLES"
    table_literal = escape_sql_literal(reference.table)
    return (
        f"SELECT EXISTS (SELECT 1 FROM {information_schema} "
        f"WHERE table_name = '{table_literal}')"
    )
