from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

import pytest
from google.api_core.exceptions import NotFound
from google.cloud import bigquery

# ---------------------------
# fakes for the BigQuery client
# ---------------------------


class FakeClient:
    """
    In-memory stand-in for `bigquery.Client` covering the calls the engine makes.

    - `datasets` / `tables` hold what "exists".
    - `calls` records (method, id) in call order.
    - `errors` maps a method name to an exception raised on every call to it.
    """

    def __init__(self) -> None:
        self.datasets: set[str] = set()
        self.tables: dict[str, bigquery.Table] = {}
        self.calls: list[tuple[str, str]] = []
        self.updates: list[tuple[bigquery.Table, list[str]]] = []
        self.errors: dict[str, Exception] = {}
        self.timeouts: list[float | None] = []
        self.retries: list[Any] = []
        self._lock = threading.Lock()

    def _record(self, method: str, ident: str, timeout: float | None, retry: Any) -> None:
        with self._lock:
            self.calls.append((method, ident))
            self.timeouts.append(timeout)
            self.retries.append(retry)
        error = self.errors.get(method)
        if error is not None:
            raise error

    def calls_to(self, method: str) -> list[str]:
        return [ident for name, ident in self.calls if name == method]

    # datasets

    def get_dataset(
        self, dataset_id: str, retry: Any = None, timeout: float | None = None
    ) -> bigquery.Dataset:
        self._record("get_dataset", dataset_id, timeout, retry)
        if dataset_id not in self.datasets:
            raise NotFound(f"Not found: Dataset {dataset_id}")
        return bigquery.Dataset(dataset_id)

    def create_dataset(
        self,
        dataset: bigquery.Dataset,
        exists_ok: bool = False,
        retry: Any = None,
        timeout: float | None = None,
    ) -> bigquery.Dataset:
        dataset_id = f"{dataset.project}.{dataset.dataset_id}"
        self._record("create_dataset", dataset_id, timeout, retry)
        self.datasets.add(dataset_id)
        return dataset

    # tables

    def get_table(
        self, table_id: str, retry: Any = None, timeout: float | None = None
    ) -> bigquery.Table:
        self._record("get_table", table_id, timeout, retry)
        if table_id not in self.tables:
            raise NotFound(f"Not found: Table {table_id}")
        # A fresh copy per call, like a real fetch.
        return bigquery.Table.from_api_repr(self.tables[table_id].to_api_repr())

    def delete_table(
        self,
        table_id: str,
        retry: Any = None,
        timeout: float | None = None,
        not_found_ok: bool = False,
    ) -> None:
        self._record("delete_table", table_id, timeout, retry)
        self.tables.pop(table_id, None)

    def update_table(
        self,
        table: bigquery.Table,
        fields: list[str],
        retry: Any = None,
        timeout: float | None = None,
    ) -> bigquery.Table:
        table_id = f"{table.project}.{table.dataset_id}.{table.table_id}"
        self._record("update_table", table_id, timeout, retry)
        self.updates.append((table, list(fields)))
        return table


def build_table(
    table_id: str = "proj.ds.events",
    *,
    table_type: str = "TABLE",
    time_partitioning_field: str | None = None,
    range_partitioning_field: str | None = None,
    clustering_fields: list[str] | None = None,
    schema: list[dict[str, Any]] | None = None,
    description: str | None = None,
    primary_key: list[str] | None = None,
    etag: str = "etag-1",
) -> bigquery.Table:
    """Build a `bigquery.Table` the way `get_table` would return it."""
    project, dataset, table = table_id.split(".")
    resource: dict[str, Any] = {
        "tableReference": {"projectId": project, "datasetId": dataset, "tableId": table},
        "type": table_type,
        "etag": etag,
        "schema": {"fields": schema or []},
    }
    if time_partitioning_field is not None:
        resource["timePartitioning"] = {"type": "DAY", "field": time_partitioning_field}
    if range_partitioning_field is not None:
        resource["rangePartitioning"] = {
            "field": range_partitioning_field,
            "range": {"start": "0", "end": "100", "interval": "10"},
        }
    if clustering_fields is not None:
        resource["clustering"] = {"fields": clustering_fields}
    if description is not None:
        resource["description"] = description
    if primary_key is not None:
        resource["tableConstraints"] = {"primaryKey": {"columns": primary_key}}
    return bigquery.Table.from_api_repr(resource)


# ---------------------------
# Fixtures
# ---------------------------


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def make_table() -> Callable[..., bigquery.Table]:
    return build_table
