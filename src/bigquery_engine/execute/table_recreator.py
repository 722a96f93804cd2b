"""
TableRecreator

Drops a live table whose kind, partitioning, or clustering no longer matches its asset,
so the caller can build a fresh one:

  1) resolve the table name
  2) fetch live metadata (missing table → nothing to drop)
  3) detect drift
  4) delete on drift

Deletion cannot be undone. Only call this when the table is recreated right after.
"""

from __future__ import annotations

from google.api_core.retry import Retry
from google.cloud import bigquery
from google.cloud.bigquery.retry import DEFAULT_RETRY

from src.bigquery_engine.compile.drift import DriftReport, detect_drift
from src.bigquery_engine.errors import API_CALL_ERRORS, DriftCheckError, RecreationError
from src.bigquery_engine.execute.ports import DropOutcome
from src.bigquery_engine.identifiers import TableReference, parse_table_name
from src.bigquery_engine.models import Asset
from src.bigquery_engine.state.reader import TableStateReader
from src.bigquery_engine.state.states import TableState
from src.logger import LOGGER


class TableRecreator:
    """Delete drifted tables; leave matching or missing tables alone."""

    def __init__(
        self,
        client: bigquery.Client,
        reader: TableStateReader,
        home_project: str,
        timeout: float | None = None,
        retry: Retry | None = DEFAULT_RETRY,
    ) -> None:
        self.client = client
        self.reader = reader
        self.home_project = home_project
        self.timeout = timeout
        self.retry = retry

    def drop_table_on_mismatch(self, table_name: str, asset: Asset) -> DropOutcome:
        """Delete `table_name` if it drifted from `asset`."""
        reference = parse_table_name(table_name, self.home_project)

        state = self._snapshot(reference)
        if not state.exists:
            return DropOutcome.NOT_FOUND

        drift = detect_drift(state, asset)
        if not drift.mismatched:
            return DropOutcome.UNCHANGED

        self._delete(reference, drift)
        return DropOutcome.DROPPED

    # ---------- helpers ----------

    def _snapshot(self, reference: TableReference) -> TableState:
        try:
            return self.reader.snapshot(reference)
        except API_CALL_ERRORS as exc:
            raise DriftCheckError(
                f"failed to fetch metadata for table '{reference.full_name}': {exc}"
            ) from exc

    def _delete(self, reference: TableReference, drift: DriftReport) -> None:
        LOGGER.warning(
            "Table '%s' drifted from its asset (%s); dropping it.",
            reference.full_name,
            drift.describe(),
        )
        try:
            self.client.delete_table(
                reference.table_id, not_found_ok=True, retry=self.retry, timeout=self.timeout
            )
        except API_CALL_ERRORS as exc:
            raise RecreationError(
                f"failed to delete table '{reference.full_name}': {exc}"
            ) from exc
