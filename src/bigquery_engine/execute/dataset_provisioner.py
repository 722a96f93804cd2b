"""
DatasetProvisioner

Ensures the dataset containing an asset's table exists before any table operation:

  1) resolve the asset name to project + dataset (unresolvable names are a no-op)
  2) fast path: dataset already in the registry → done, no I/O, no lock
  3) take the dataset's lock, then re-check the registry
  4) look the dataset up; create it on not-found
  5) record success in the registry (failures leave it unset so a later call retries)

At most one lookup-or-create round trip is made per dataset for the life of the registry,
and callers for different datasets never wait on each other.
"""

from __future__ import annotations

from google.api_core.exceptions import NotFound
from google.api_core.retry import Retry
from google.cloud import bigquery
from google.cloud.bigquery.retry import DEFAULT_RETRY

from src.bigquery_engine.errors import API_CALL_ERRORS, ProvisioningError
from src.bigquery_engine.execute.dataset_registry import DatasetRegistry
from src.bigquery_engine.execute.ports import ProvisionOutcome
from src.bigquery_engine.identifiers import try_parse_table_name
from src.bigquery_engine.models import Asset
from src.logger import LOGGER


class DatasetProvisioner:
    """Create datasets on demand, once per dataset per registry."""

    def __init__(
        self,
        client: bigquery.Client,
        registry: DatasetRegistry,
        home_project: str,
        location: str = "",
        timeout: float | None = None,
        retry: Retry | None = DEFAULT_RETRY,
    ) -> None:
        self.client = client
        self.registry = registry
        self.home_project = home_project
        self.location = location
        self.timeout = timeout
        self.retry = retry

    def ensure_dataset(self, asset: Asset) -> ProvisionOutcome:
        """Make sure the dataset of `asset.name` exists."""
        reference = try_parse_table_name(asset.name, self.home_project)
        if reference is None:
            LOGGER.debug("Asset '%s' does not map to a dataset; skipping.", asset.name)
            return ProvisionOutcome.SKIPPED

        dataset_key = reference.dataset_key

        if self.registry.contains(dataset_key):
            return ProvisionOutcome.CACHED

        with self.registry.lock_for(dataset_key):
            # Another caller may have finished while we waited for the lock.
            if self.registry.contains(dataset_key):
                LOGGER.debug("Dataset '%s' provisioned by a concurrent caller.", dataset_key)
                return ProvisionOutcome.CACHED

            outcome = self._lookup_or_create(dataset_key, asset.name)
            self.registry.mark_present(dataset_key)
            return outcome

    # ---------- helpers ----------

    def _lookup_or_create(self, dataset_key: str, table_name: str) -> ProvisionOutcome:
        try:
            self.client.get_dataset(dataset_key, retry=self.retry, timeout=self.timeout)
            return ProvisionOutcome.EXISTS
        except NotFound:
            pass
        except API_CALL_ERRORS as exc:
            raise ProvisioningError(
                f"failed to fetch metadata for dataset '{dataset_key}' of table '{table_name}': {exc}"
            ) from exc

        self._create(dataset_key)
        return ProvisionOutcome.CREATED

    def _create(self, dataset_key: str) -> None:
        dataset = bigquery.Dataset(dataset_key)
        if self.location:
            dataset.location = self.location
        try:
            # exists_ok covers a dataset created by another process since the lookup.
            self.client.create_dataset(
                dataset, exists_ok=True, retry=self.retry, timeout=self.timeout
            )
        except API_CALL_ERRORS as exc:
            raise ProvisioningError(f"failed to create dataset '{dataset_key}': {exc}") from exc
        LOGGER.info("Created dataset '%s'.", dataset_key)
