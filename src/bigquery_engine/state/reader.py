"""Read live table metadata into TableState snapshots."""

from __future__ import annotations

from google.api_core.exceptions import NotFound
from google.api_core.retry import Retry
from google.cloud import bigquery
from google.cloud.bigquery.retry import DEFAULT_RETRY

from src.bigquery_engine.identifiers import TableReference
from src.bigquery_engine.state.states import TableState


class TableStateReader:
    """
    Fetch live table metadata, one API call per read.

    A missing table is reported as absence (None / `TableState.missing`);
    every other API error propagates to the caller, who decides how to wrap it.
    """

    def __init__(
        self,
        client: bigquery.Client,
        timeout: float | None = None,
        retry: Retry | None = DEFAULT_RETRY,
    ) -> None:
        self.client = client
        self.timeout = timeout
        self.retry = retry

    def fetch_table(self, reference: TableReference) -> bigquery.Table | None:
        """Return the live table (carrying its etag), or None if it does not exist."""
        try:
            return self.client.get_table(
                reference.table_id, retry=self.retry, timeout=self.timeout
            )
        except NotFound:
            return None

    def snapshot(self, reference: TableReference) -> TableState:
        """Return the observed state of `reference`."""
        table = self.fetch_table(reference)
        if table is None:
            return TableState.missing(reference)
        return TableState.from_bigquery_table(reference, table)
