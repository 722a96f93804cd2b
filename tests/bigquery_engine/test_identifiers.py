import pytest

from src.bigquery_engine.errors import MalformedNameError
from src.bigquery_engine.identifiers import (
    TableReference,
    format_dataset_key,
    parse_table_name,
    try_parse_table_name,
)

# --- parse_table_name ---


def test_two_part_name_uses_home_project():
    assert parse_table_name("ds.events", "home") == TableReference("home", "ds", "events")


def test_three_part_name_keeps_its_project():
    assert parse_table_name("proj.ds.events", "home") == TableReference("proj", "ds", "events")


@pytest.mark.parametrize(
    "name",
    [
        "events",
        "a.b.c.d",
        "a.b.c.d.e",
        "",
        ".events",
        "ds.",
        "proj..events",
        "proj.ds.",
        "..",
    ],
)
def test_malformed_names_raise(name):
    with pytest.raises(MalformedNameError) as excinfo:
        parse_table_name(name, "home")
    assert f"'{name}' given" in str(excinfo.value)


def test_malformed_name_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse_table_name("just_a_table", "home")


def test_parse_is_deterministic():
    assert parse_table_name("p.d.t", "home") == parse_table_name("p.d.t", "home")


def test_try_parse_returns_none_on_bad_names():
    assert try_parse_table_name("a.b.c.d", "home") is None
    assert try_parse_table_name("d.t", "home") == TableReference("home", "d", "t")


# --- TableReference ---


def test_reference_helpers():
    reference = TableReference("proj", "ds", "events")
    assert reference.full_name == "proj.ds.events"
    assert reference.table_id == "proj.ds.events"
    assert reference.dataset_key == "proj.ds"


def test_reference_is_immutable():
    reference = TableReference("proj", "ds", "events")
    with pytest.raises(AttributeError):
        reference.table = "other"  # type: ignore[misc]


def test_format_dataset_key():
    assert format_dataset_key("proj", "ds") == "proj.ds"
