"""
MetadataReconciler

Pushes asset metadata onto an existing table:
- column descriptions (onto matching live schema fields)
- the table description
- a primary-key constraint built from columns flagged `is_primary_key`

The update carries the etag of the fetched table, so BigQuery rejects it if the table
changed in between. The conflict is reported, not retried: the caller decides whether
to re-fetch and try again.
"""

from __future__ import annotations

from collections.abc import Sequence

from google.api_core.retry import Retry
from google.cloud import bigquery
from google.cloud.bigquery.retry import DEFAULT_RETRY
from google.cloud.bigquery.table import PrimaryKey, TableConstraints

from src.bigquery_engine.errors import API_CALL_ERRORS, ReconciliationError
from src.bigquery_engine.execute.ports import MetadataSyncResult, SkipReason
from src.bigquery_engine.identifiers import parse_table_name
from src.bigquery_engine.models import Asset, Column
from src.bigquery_engine.state.reader import TableStateReader
from src.logger import LOGGER


class MetadataReconciler:
    """Sync descriptions and primary keys from an asset onto its live table."""

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

    def update_table_metadata_if_not_exist(self, asset: Asset) -> MetadataSyncResult:
        """Push `asset` descriptions and primary key onto its table, if it exists."""
        if not asset.has_metadata:
            return MetadataSyncResult.skipped(SkipReason.NO_METADATA)

        reference = parse_table_name(asset.name, self.home_project)
        try:
            table = self.reader.fetch_table(reference)
        except API_CALL_ERRORS as exc:
            return _failed(f"failed to fetch metadata for table '{reference.full_name}'", exc)

        if table is None:
            LOGGER.debug(
                "Table '%s' not materialized yet; metadata sync deferred.", reference.full_name
            )
            return MetadataSyncResult.skipped(SkipReason.TABLE_NOT_FOUND)

        fields = self._stage_updates(table, asset)
        if not fields:
            return MetadataSyncResult.skipped(SkipReason.UNCHANGED)

        try:
            self.client.update_table(table, fields, retry=self.retry, timeout=self.timeout)
        except API_CALL_ERRORS as exc:
            return _failed(f"failed to update table metadata for '{reference.full_name}'", exc)

        LOGGER.info("Updated %s on table '%s'.", ", ".join(fields), reference.full_name)
        return MetadataSyncResult.updated()

    # ---------- staging (mutates the fetched table in place) ----------

    def _stage_updates(self, table: bigquery.Table, asset: Asset) -> list[str]:
        """Apply asset metadata to `table`; return the API fields that changed."""
        fields: list[str] = []

        schema, schema_changed = self._merge_column_descriptions(table.schema, asset.columns)
        if schema_changed:
            table.schema = schema
            fields.append("schema")

        if asset.description and asset.description != (table.description or ""):
            table.description = asset.description
            fields.append("description")

        primary_key = asset.primary_key_column_names
        if primary_key and primary_key != self._live_primary_key(table):
            live_constraints = table.table_constraints
            table.table_constraints = TableConstraints(
                primary_key=PrimaryKey(columns=list(primary_key)),
                foreign_keys=live_constraints.foreign_keys if live_constraints else None,
            )
            fields.append("table_constraints")

        return fields

    @staticmethod
    def _merge_column_descriptions(
        schema: Sequence[bigquery.SchemaField],
        columns: Sequence[Column],
    ) -> tuple[list[bigquery.SchemaField], bool]:
        """Overwrite descriptions of live fields that have a matching asset column."""
        columns_by_name = {column.name: column for column in columns}
        merged: list[bigquery.SchemaField] = []
        changed = False
        for field in schema:
            column = columns_by_name.get(field.name)
            if column is not None and (field.description or "") != column.description:
                api_repr = field.to_api_repr()
                api_repr["description"] = column.description
                field = bigquery.SchemaField.from_api_repr(api_repr)
                changed = True
            merged.append(field)
        return merged, changed

    @staticmethod
    def _live_primary_key(table: bigquery.Table) -> tuple[str, ...]:
        constraints = table.table_constraints
        if constraints is None or constraints.primary_key is None:
            return ()
        return tuple(constraints.primary_key.columns)


def _failed(message: str, cause: Exception) -> MetadataSyncResult:
    """FAILED result carrying a ReconciliationError chained to the API error."""
    error = ReconciliationError(f"{message}: {cause}")
    error.__cause__ = cause
    return MetadataSyncResult.failed(error)
