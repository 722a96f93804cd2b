"""
Query Executor

Façade over `google.cloud.bigquery.Client.query`.

- is_valid: dry-run a query (compile only, nothing is executed or billed)
- run_query_without_result: execute for side effects
- select / select_with_schema: execute and materialize every row in memory
- ping: round-trip a constant query to check the connection

404 and 400 API errors are reduced to their bare message (`QueryError`); other errors
propagate unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from google.cloud import bigquery

from src.bigquery_engine.errors import ConnectionCheckError, QueryError, translated_query_errors

_PING_QUERY = "SELECT 1"


@dataclass(frozen=True)
class QueryResult:
    """Rows of a query plus its column names and BigQuery type names."""

    columns: list[str] = field(default_factory=list)
    column_types: list[str] = field(default_factory=list)
    rows: list[list[Any]] = field(default_factory=list)


class QueryExecutor:
    """Run queries against BigQuery with normalised errors."""

    def __init__(self, client: bigquery.Client, timeout: float | None = None) -> None:
        self.client = client
        self.timeout = timeout

    def is_valid(self, query: str) -> bool:
        """Dry-run `query`; True if BigQuery accepts it, QueryError otherwise."""
        job_config = bigquery.QueryJobConfig(dry_run=True, use_query_cache=False)
        with translated_query_errors():
            job = self.client.query(query, job_config=job_config, timeout=self.timeout)
        if job.error_result:
            raise QueryError(job.error_result.get("message", "query is not valid"))
        return True

    def run_query_without_result(self, query: str) -> None:
        """Execute `query` and wait for it, discarding any rows."""
        with translated_query_errors():
            self._read(query)

    def select(self, query: str) -> list[list[Any]]:
        """Execute `query` and return all rows as lists."""
        with translated_query_errors():
            rows = self._read(query)
            return [list(row.values()) for row in rows]

    def select_with_schema(self, query: str) -> QueryResult:
        """Execute `query` and return rows together with column names and types."""
        with translated_query_errors():
            rows = self._read(query)
            data = [list(row.values()) for row in rows]

        if rows.schema is None:
            raise QueryError("schema information is not available")

        return QueryResult(
            columns=[schema_field.name for schema_field in rows.schema],
            column_types=[schema_field.field_type for schema_field in rows.schema],
            rows=data,
        )

    def ping(self) -> None:
        """Run a trivial query; raise ConnectionCheckError if it does not complete."""
        try:
            self.run_query_without_result(_PING_QUERY)
        except Exception as exc:
            raise ConnectionCheckError("failed to run test query on Bigquery connection") from exc

    # ---------- helpers ----------

    def _read(self, query: str) -> bigquery.table.RowIterator:
        """Submit `query` and block until its result is available."""
        job = self.client.query(query, timeout=self.timeout)
        return job.result(timeout=self.timeout)
