from __future__ import annotations

import threading
import time

import pytest
import requests
from google.api_core.exceptions import Forbidden, InternalServerError, RetryError, ServiceUnavailable

import src.bigquery_engine.execute.dataset_provisioner as provisioner_mod
from src.bigquery_engine.errors import ProvisioningError
from src.bigquery_engine.execute.dataset_provisioner import DatasetProvisioner
from src.bigquery_engine.execute.dataset_registry import DatasetRegistry
from src.bigquery_engine.execute.ports import ProvisionOutcome
from src.bigquery_engine.models import Asset

# ---------- helpers ----------


class FakeLogger:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def _log(self, msg: str, *args) -> None:
        self.messages.append(msg % args if args else msg)

    debug = info = warning = _log


@pytest.fixture
def logger(monkeypatch) -> FakeLogger:
    fake = FakeLogger()
    monkeypatch.setattr(provisioner_mod, "LOGGER", fake, raising=True)
    return fake


def make_provisioner(client, registry=None, location="") -> DatasetProvisioner:
    return DatasetProvisioner(
        client,
        registry if registry is not None else DatasetRegistry(),
        home_project="home",
        location=location,
        timeout=30.0,
    )


# ---------- tests ----------


def test_creates_missing_dataset_and_caches_it(fake_client, logger):
    registry = DatasetRegistry()
    provisioner = make_provisioner(fake_client, registry)

    outcome = provisioner.ensure_dataset(Asset(name="proj.ds.events"))

    assert outcome is ProvisionOutcome.CREATED
    assert fake_client.calls == [("get_dataset", "proj.ds"), ("create_dataset", "proj.ds")]
    assert registry.contains("proj.ds")
    assert "Created dataset 'proj.ds'." in logger.messages


def test_existing_dataset_is_cached_without_create(fake_client, logger):
    fake_client.datasets.add("proj.ds")
    registry = DatasetRegistry()

    outcome = make_provisioner(fake_client, registry).ensure_dataset(Asset(name="proj.ds.events"))

    assert outcome is ProvisionOutcome.EXISTS
    assert fake_client.calls_to("create_dataset") == []
    assert registry.contains("proj.ds")


def test_two_part_name_uses_home_project(fake_client, logger):
    make_provisioner(fake_client).ensure_dataset(Asset(name="ds.events"))
    assert fake_client.calls_to("get_dataset") == ["home.ds"]


@pytest.mark.parametrize("name", ["events", "a.b.c.d", "ds.", ".events"])
def test_unresolvable_names_are_a_noop(fake_client, logger, name):
    outcome = make_provisioner(fake_client).ensure_dataset(Asset(name=name))
    assert outcome is ProvisionOutcome.SKIPPED
    assert fake_client.calls == []


def test_cached_dataset_makes_no_calls(fake_client, logger):
    registry = DatasetRegistry()
    registry.mark_present("proj.ds")

    outcome = make_provisioner(fake_client, registry).ensure_dataset(Asset(name="proj.ds.other"))

    assert outcome is ProvisionOutcome.CACHED
    assert fake_client.calls == []


def test_second_call_hits_cache(fake_client, logger):
    provisioner = make_provisioner(fake_client)
    provisioner.ensure_dataset(Asset(name="proj.ds.a"))
    outcome = provisioner.ensure_dataset(Asset(name="proj.ds.b"))

    assert outcome is ProvisionOutcome.CACHED
    assert len(fake_client.calls) == 2  # lookup + create from the first call only


def test_lookup_failure_raises_and_leaves_cache_unset(fake_client, logger):
    fake_client.errors["get_dataset"] = Forbidden("access denied")
    registry = DatasetRegistry()

    with pytest.raises(ProvisioningError) as excinfo:
        make_provisioner(fake_client, registry).ensure_dataset(Asset(name="proj.ds.events"))

    assert "proj.ds" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, Forbidden)
    assert not registry.contains("proj.ds")
    assert fake_client.calls_to("create_dataset") == []


def test_create_failure_raises_and_a_later_call_retries(fake_client, logger):
    fake_client.errors["create_dataset"] = InternalServerError("boom")
    registry = DatasetRegistry()
    provisioner = make_provisioner(fake_client, registry)

    with pytest.raises(ProvisioningError, match="failed to create dataset 'proj.ds'"):
        provisioner.ensure_dataset(Asset(name="proj.ds.events"))
    assert not registry.contains("proj.ds")

    del fake_client.errors["create_dataset"]
    assert provisioner.ensure_dataset(Asset(name="proj.ds.events")) is ProvisionOutcome.CREATED
    assert registry.contains("proj.ds")


def test_lock_is_released_after_failure(fake_client, logger):
    fake_client.errors["get_dataset"] = Forbidden("access denied")
    registry = DatasetRegistry()

    with pytest.raises(ProvisioningError):
        make_provisioner(fake_client, registry).ensure_dataset(Asset(name="proj.ds.events"))

    assert not registry.lock_for("proj.ds").locked()


def test_exhausted_retry_on_lookup_is_wrapped(fake_client, logger):
    fake_client.errors["get_dataset"] = RetryError(
        "Timeout of 600.0s exceeded", ServiceUnavailable("backend unavailable")
    )
    registry = DatasetRegistry()

    with pytest.raises(ProvisioningError, match="proj.ds") as excinfo:
        make_provisioner(fake_client, registry).ensure_dataset(Asset(name="proj.ds.events"))

    assert isinstance(excinfo.value.__cause__, RetryError)
    assert not registry.contains("proj.ds")


def test_transport_timeout_on_create_is_wrapped(fake_client, logger):
    fake_client.errors["create_dataset"] = requests.exceptions.ReadTimeout("read timed out")

    with pytest.raises(ProvisioningError, match="failed to create dataset 'proj.ds'") as excinfo:
        make_provisioner(fake_client).ensure_dataset(Asset(name="proj.ds.events"))

    assert isinstance(excinfo.value.__cause__, requests.exceptions.ReadTimeout)


def test_retry_policy_is_passed_to_every_call(fake_client, logger):
    provisioner = DatasetProvisioner(fake_client, DatasetRegistry(), home_project="home", retry=None)

    provisioner.ensure_dataset(Asset(name="proj.ds.events"))

    assert fake_client.retries == [None, None]


def test_location_is_applied_to_new_datasets(fake_client, logger, monkeypatch):
    created = []
    original = fake_client.create_dataset

    def capture(dataset, exists_ok=False, retry=None, timeout=None):
        created.append((dataset.location, exists_ok, timeout))
        return original(dataset, exists_ok=exists_ok, retry=retry, timeout=timeout)

    monkeypatch.setattr(fake_client, "create_dataset", capture)
    make_provisioner(fake_client, location="EU").ensure_dataset(Asset(name="proj.ds.events"))

    assert created == [("EU", True, 30.0)]


def test_concurrent_callers_make_one_round_trip(fake_client, logger):
    workers = 16
    barrier = threading.Barrier(workers)
    original_get_dataset = fake_client.get_dataset

    def slow_get_dataset(dataset_id, retry=None, timeout=None):
        time.sleep(0.05)
        return original_get_dataset(dataset_id, retry=retry, timeout=timeout)

    fake_client.get_dataset = slow_get_dataset  # type: ignore[method-assign]
    registry = DatasetRegistry()
    provisioner = make_provisioner(fake_client, registry)
    outcomes: list[ProvisionOutcome] = []
    outcomes_guard = threading.Lock()

    def materialize(index: int) -> None:
        barrier.wait()
        outcome = provisioner.ensure_dataset(Asset(name=f"proj.ds.table_{index}"))
        with outcomes_guard:
            outcomes.append(outcome)

    threads = [threading.Thread(target=materialize, args=(i,)) for i in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert fake_client.calls_to("get_dataset") == ["proj.ds"]
    assert fake_client.calls_to("create_dataset") == ["proj.ds"]
    assert outcomes.count(ProvisionOutcome.CREATED) == 1
    assert outcomes.count(ProvisionOutcome.CACHED) == workers - 1
    assert len(registry) == 1


def test_different_datasets_do_not_share_a_lock(fake_client, logger):
    registry = DatasetRegistry()
    provisioner = make_provisioner(fake_client, registry)

    # Holding one dataset's lock must not block another dataset.
    with registry.lock_for("proj.blocked"):
        outcome = provisioner.ensure_dataset(Asset(name="proj.free.events"))

    assert outcome is ProvisionOutcome.CREATED
    assert registry.contains("proj.free")
