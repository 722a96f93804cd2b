"""
Engine: high-level entry point for the BigQuery engine.

Responsibilities
----------------
- Wire default components (reader, provisioner, recreator, reconciler, query executor)
  around one `bigquery.Client` and one `BigQueryConfig`.
- Expose the operations a runner calls while materializing an asset:
    - ensure_dataset(asset)
    - drop_table_on_mismatch(table_name, asset)
    - update_table_metadata_if_not_exist(asset)
    - query helpers (is_valid, run_query_without_result, select, select_with_schema, ping)

Notes:
-----
- Share one engine (or at least one DatasetRegistry) across all workers of a process;
  the registry is what bounds dataset lookups to one per dataset.
- Defaults are provided, but every component can be overridden for testing.
"""

from __future__ import annotations

from typing import Any, Self

from google.cloud import bigquery

from src.bigquery_engine.compile.drift import (
    is_partitioning_or_clustering_mismatch,
    materialization_type_matches,
)
from src.bigquery_engine.connection import BigQueryConfig, create_client
from src.bigquery_engine.execute.dataset_provisioner import DatasetProvisioner
from src.bigquery_engine.execute.dataset_registry import DatasetRegistry
from src.bigquery_engine.execute.metadata_reconciler import MetadataReconciler
from src.bigquery_engine.execute.ports import DropOutcome, MetadataSyncResult, ProvisionOutcome
from src.bigquery_engine.execute.query_executor import QueryExecutor, QueryResult
from src.bigquery_engine.execute.table_recreator import TableRecreator
from src.bigquery_engine.models import Asset
from src.bigquery_engine.sql import build_table_exists_query
from src.bigquery_engine.state.reader import TableStateReader
from src.bigquery_engine.state.states import TableState


class BigQueryEngine:
    """
    High-level entry point for the BigQuery engine.

    You can:
      - pass your own components (for custom behaviour), or
      - rely on defaults (simple, batteries included).
    """

    def __init__(
        self,
        client: bigquery.Client,
        config: BigQueryConfig,
        registry: DatasetRegistry | None = None,
        reader: TableStateReader | None = None,
        provisioner: DatasetProvisioner | None = None,
        recreator: TableRecreator | None = None,
        reconciler: MetadataReconciler | None = None,
        query_executor: QueryExecutor | None = None,
    ) -> None:
        self.client = client
        self.config = config
        self.registry = registry if registry is not None else DatasetRegistry()

        # Wire defaults if not supplied
        self.reader = reader or TableStateReader(
            client, timeout=config.timeout, retry=config.retry
        )
        self.provisioner = provisioner or DatasetProvisioner(
            client,
            self.registry,
            home_project=config.project_id,
            location=config.location,
            timeout=config.timeout,
            retry=config.retry,
        )
        self.recreator = recreator or TableRecreator(
            client,
            self.reader,
            home_project=config.project_id,
            timeout=config.timeout,
            retry=config.retry,
        )
        self.reconciler = reconciler or MetadataReconciler(
            client,
            self.reader,
            home_project=config.project_id,
            timeout=config.timeout,
            retry=config.retry,
        )
        self.query_executor = query_executor or QueryExecutor(client, timeout=config.timeout)

    @classmethod
    def from_config(cls, config: BigQueryConfig, registry: DatasetRegistry | None = None) -> Self:
        """Create the client from `config` and wire the default components."""
        return cls(create_client(config), config, registry=registry)

    # ---------- table management ----------

    def ensure_dataset(self, asset: Asset) -> ProvisionOutcome:
        """Create the dataset of `asset` if it does not exist yet."""
        return self.provisioner.ensure_dataset(asset)

    def drop_table_on_mismatch(self, table_name: str, asset: Asset) -> DropOutcome:
        """Drop `table_name` if its kind, partitioning, or clustering drifted from `asset`."""
        return self.recreator.drop_table_on_mismatch(table_name, asset)

    def update_table_metadata_if_not_exist(self, asset: Asset) -> MetadataSyncResult:
        """Push descriptions and the primary key of `asset` onto its live table."""
        return self.reconciler.update_table_metadata_if_not_exist(asset)

    def is_partitioning_or_clustering_mismatch(self, state: TableState, asset: Asset) -> bool:
        return is_partitioning_or_clustering_mismatch(state, asset)

    def is_materialization_type_mismatch(self, state: TableState, asset: Asset) -> bool:
        return not materialization_type_matches(state, asset)

    def build_table_exists_query(self, table_name: str) -> str:
        """Existence query for `table_name`; two-part names use the home project."""
        return build_table_exists_query(table_name, self.config.project_id)

    # ---------- queries ----------

    def is_valid(self, query: str) -> bool:
        return self.query_executor.is_valid(query)

    def run_query_without_result(self, query: str) -> None:
        self.query_executor.run_query_without_result(query)

    def select(self, query: str) -> list[list[Any]]:
        return self.query_executor.select(query)

    def select_with_schema(self, query: str) -> QueryResult:
        return self.query_executor.select_with_schema(query)

    def ping(self) -> None:
        self.query_executor.ping()
