"""
Drift detection between a declared asset and a live table.

Three independent predicates (partitioning, clustering, materialization type) plus
an aggregate `detect_drift` that combines them into a `DriftReport`.

All functions are pure: they read a `TableState` snapshot and an `Asset`, and perform
no I/O.

Policy
------
- Materialization type is always compared (unless the asset's type is NONE).
- Partitioning and clustering are only compared when either side shows any
  partitioning or clustering signal; two plain tables never drift on layout.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.bigquery_engine.models import Asset, MaterializationType
from src.bigquery_engine.state.states import TableState


@dataclass(frozen=True, slots=True)
class DriftReport:
    """Which aspects of a live table disagree with the asset."""

    partitioning: bool = False
    clustering: bool = False
    materialization_type: bool = False

    @property
    def mismatched(self) -> bool:
        return self.partitioning or self.clustering or self.materialization_type

    def describe(self) -> str:
        """One-line summary of drifted aspects, e.g. 'partitioning, clustering'."""
        aspects = [
            name
            for name, drifted in (
                ("materialization type", self.materialization_type),
                ("partitioning", self.partitioning),
                ("clustering", self.clustering),
            )
            if drifted
        ]
        return ", ".join(aspects) if aspects else "none"


# ---------- predicates ----------


def partitioning_matches(state: TableState, asset: Asset) -> bool:
    """True if the live partition column agrees with the asset's `partition_by`."""
    partition_by = asset.materialization.partition_by

    if partition_by and not state.is_partitioned:
        return False

    if not state.is_partitioned:
        return True

    # Both specs are checked if the API ever reports both.
    if state.time_partitioning is not None and state.time_partitioning.field != partition_by:
        return False
    if state.range_partitioning is not None and state.range_partitioning.field != partition_by:
        return False
    return True


def clustering_matches(state: TableState, asset: Asset) -> bool:
    """True if the live clustering columns equal the asset's, in the same order."""
    cluster_by = asset.materialization.cluster_by

    if cluster_by and not state.clustering_fields:
        return False

    if state.clustering_fields is None:
        return True

    return tuple(state.clustering_fields) == tuple(cluster_by)


def materialization_type_matches(state: TableState, asset: Asset) -> bool:
    """True if the live object kind equals the asset's type, ignoring case."""
    declared = asset.materialization.type
    if declared is MaterializationType.NONE:
        return True
    return state.table_type.casefold() == declared.value.casefold()


def requires_mismatch_check(state: TableState, asset: Asset) -> bool:
    """True if either side carries any partitioning or clustering signal."""
    return (
        state.is_partitioned
        or state.is_clustered
        or asset.declares_partitioning_or_clustering
    )


def is_partitioning_or_clustering_mismatch(state: TableState, asset: Asset) -> bool:
    """Layout drift, evaluated only when `requires_mismatch_check` holds."""
    if not requires_mismatch_check(state, asset):
        return False
    return not partitioning_matches(state, asset) or not clustering_matches(state, asset)


# ---------- aggregate ----------


def detect_drift(state: TableState, asset: Asset) -> DriftReport:
    """Compare `state` with `asset` and report every drifted aspect."""
    type_drift = not materialization_type_matches(state, asset)
    if not requires_mismatch_check(state, asset):
        return DriftReport(materialization_type=type_drift)

    return DriftReport(
        partitioning=not partitioning_matches(state, asset),
        clustering=not clustering_matches(state, asset),
        materialization_type=type_drift,
    )
