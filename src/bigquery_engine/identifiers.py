"""
Identifier utilities for the BigQuery engine.

This module defines:
- Canonical table reference dataclass: TableReference.
- Parsing of dotted table names ('dataset.table' or 'project.dataset.table').
- Formatting of the dataset key shared by the provisioner and its registry.

Conventions:
- Verbs: split_*, parse_*, format_*.
- Use `reference` for variables/parameters of type TableReference.
- Two-part names are qualified with the configured home project.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.bigquery_engine.errors import MalformedNameError

_NAME_FORMAT_MESSAGE = "table name must be in dataset.table or project.dataset.table format"


# -----------------------------
# Core name data structure
# -----------------------------


@dataclass(frozen=True, slots=True)
class TableReference:
    """Three-part table reference: project.dataset.table."""

    project: str
    dataset: str
    table: str

    @property
    def dataset_key(self) -> str:
        """Unquoted dataset identity: 'project.dataset'."""
        return format_dataset_key(self.project, self.dataset)

    @property
    def full_name(self) -> str:
        """Unquoted full name: 'project.dataset.table'."""
        return f"{self.project}.{self.dataset}.{self.table}"

    @property
    def table_id(self) -> str:
        """Table ID in the form accepted by `google.cloud.bigquery.Client`."""
        return self.full_name


# -----------------------------
# Parsing
# -----------------------------


def split_table_name(name: str) -> list[str]:
    """Split a dotted name into its segments without validating them."""
    return name.split(".")


def parse_table_name(name: str, home_project: str) -> TableReference:
    """
    Parse 'dataset.table' or 'project.dataset.table' into a TableReference.

    Two-part names are placed in `home_project`.

    Raises:
        MalformedNameError: if any segment is empty or there are not 2 or 3 segments.
    """
    segments = split_table_name(name)
    if any(segment == "" for segment in segments):
        raise MalformedNameError(f"{_NAME_FORMAT_MESSAGE}, '{name}' given")

    if len(segments) == 2:
        return TableReference(project=home_project, dataset=segments[0], table=segments[1])
    if len(segments) == 3:
        return TableReference(project=segments[0], dataset=segments[1], table=segments[2])

    raise MalformedNameError(f"{_NAME_FORMAT_MESSAGE}, '{name}' given")


def try_parse_table_name(name: str, home_project: str) -> TableReference | None:
    """Like `parse_table_name`, but return None instead of raising."""
    try:
        return parse_table_name(name, home_project)
    except MalformedNameError:
        return None


# -----------------------------
# Formatting
# -----------------------------


def format_dataset_key(project: str, dataset: str) -> str:
    """Unquoted 'project.dataset', used as the dataset registry key."""
    return f"{project}.{dataset}"

