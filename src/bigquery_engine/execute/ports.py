"""
Execution result types.

- ProvisionOutcome: what ensure_dataset did for one asset
- DropOutcome: what drop_table_on_mismatch did for one table
- MetadataSyncResult: tagged outcome of a metadata sync (updated / skipped / failed)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ProvisionOutcome(StrEnum):
    SKIPPED = "skipped"  # name does not map to a dataset
    CACHED = "cached"
    EXISTS = "exists"
    CREATED = "created"


class DropOutcome(StrEnum):
    NOT_FOUND = "not_found"
    UNCHANGED = "unchanged"
    DROPPED = "dropped"


class SyncStatus(StrEnum):
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(StrEnum):
    NO_METADATA = "no metadata found for the given asset to be pushed to BigQuery"
    TABLE_NOT_FOUND = "table does not exist yet"
    UNCHANGED = "live table already matches the asset metadata"


@dataclass(frozen=True)
class MetadataSyncResult:
    """Outcome of pushing asset metadata onto a live table."""

    status: SyncStatus
    reason: SkipReason | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status != SyncStatus.FAILED

    def raise_for_status(self) -> None:
        """Re-raise the carried error of a FAILED result; no-op otherwise."""
        if self.error is not None:
            raise self.error

    @classmethod
    def updated(cls) -> MetadataSyncResult:
        return cls(status=SyncStatus.UPDATED)

    @classmethod
    def skipped(cls, reason: SkipReason) -> MetadataSyncResult:
        return cls(status=SyncStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, error: Exception) -> MetadataSyncResult:
        return cls(status=SyncStatus.FAILED, error=error)
