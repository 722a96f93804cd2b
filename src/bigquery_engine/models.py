"""Domain models for declaring BigQuery assets (columns + materialization)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum


class MaterializationType(StrEnum):
    """Kind of warehouse object an asset becomes. NONE means 'no opinion'."""

    NONE = "none"
    TABLE = "table"
    VIEW = "view"
    MATERIALIZED_VIEW = "materialized_view"


@dataclass(frozen=True)
class Column:
    """Declarative column definition."""

    name: str
    description: str = ""
    is_primary_key: bool = False


@dataclass(frozen=True)
class Materialization:
    """How an asset is materialized, including partitioning and clustering."""

    type: MaterializationType = MaterializationType.NONE
    partition_by: str = ""
    cluster_by: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Accept lists from config loaders while keeping the dataclass hashable.
        object.__setattr__(self, "cluster_by", tuple(self.cluster_by))
        object.__setattr__(self, "type", MaterializationType(self.type))


@dataclass(frozen=True)
class Asset:
    """Declarative asset definition: a named table and how to materialize it."""

    name: str
    columns: Sequence[Column] = field(default_factory=tuple)
    description: str = ""
    materialization: Materialization = field(default_factory=Materialization)

    # --------- Convenience properties ---------

    @property
    def primary_key_column_names(self) -> tuple[str, ...]:
        """Names of columns flagged as primary key, in declared order."""
        return tuple(column.name for column in self.columns if column.is_primary_key)

    @property
    def has_column_descriptions(self) -> bool:
        """True if at least one column carries a non-empty description."""
        return any(column.description for column in self.columns)

    @property
    def has_metadata(self) -> bool:
        """True if there is a table or column description to push."""
        return bool(self.description) or self.has_column_descriptions

    @property
    def declares_partitioning_or_clustering(self) -> bool:
        return bool(self.materialization.partition_by or self.materialization.cluster_by)
