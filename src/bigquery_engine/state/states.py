"""
Observed table state dataclasses.

These types capture what exists in BigQuery *right now*:
- Table kind (TABLE, VIEW, ...)
- Time / range partitioning and clustering

Notes:
- Dataclasses are frozen and use tuples for nested data.
- A snapshot is taken per call and never cached; a stale snapshot could lead
  to a wrong drop decision.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Self

from google.cloud import bigquery

from src.bigquery_engine.identifiers import TableReference

# -----------------------------
# Layout states
# -----------------------------


@dataclass(frozen=True, slots=True)
class PartitioningState:
    """
    Observed partitioning of a live table.

    `field` is "" for ingestion-time partitioning (no partition column).
    """

    field: str = ""


# -----------------------------
# Table snapshot
# -----------------------------


@dataclass(frozen=True, slots=True)
class TableState:
    """
    Observed table state: identity, existence, kind, and physical layout.

    Fields
    ------
    reference : TableReference
        Table identity.
    exists : bool
        Whether the table exists.
    table_type : str
        BigQuery object kind as reported by the API, e.g. "TABLE" or "VIEW".
    time_partitioning, range_partitioning : PartitioningState | None
        Present when the table is partitioned that way.
    clustering_fields : tuple[str, ...] | None
        None when the table has no clustering configured.
    """

    reference: TableReference
    exists: bool
    table_type: str = ""
    time_partitioning: PartitioningState | None = None
    range_partitioning: PartitioningState | None = None
    clustering_fields: tuple[str, ...] | None = None

    @property
    def full_name(self) -> str:
        """Unquoted full name: 'project.dataset.table'."""
        return self.reference.full_name

    @property
    def is_partitioned(self) -> bool:
        return self.time_partitioning is not None or self.range_partitioning is not None

    @property
    def is_clustered(self) -> bool:
        return bool(self.clustering_fields)

    @classmethod
    def missing(cls, reference: TableReference) -> Self:
        """Factory for a non-existent table snapshot with empty metadata."""
        return cls(reference=reference, exists=False)

    @classmethod
    def from_bigquery_table(cls, reference: TableReference, table: bigquery.Table) -> Self:
        """Build a snapshot from a table fetched with `Client.get_table`."""
        return cls(
            reference=reference,
            exists=True,
            table_type=table.table_type or "",
            time_partitioning=_partitioning_state(table.time_partitioning),
            range_partitioning=_partitioning_state(table.range_partitioning),
            clustering_fields=(
                tuple(table.clustering_fields) if table.clustering_fields is not None else None
            ),
        )


def _partitioning_state(
    partitioning: bigquery.TimePartitioning | bigquery.RangePartitioning | None,
) -> PartitioningState | None:
    if partitioning is None:
        return None
    return PartitioningState(field=partitioning.field or "")
