"""
Registry of provisioned datasets.

Holds the two pieces of state shared by concurrent materializations:
- the set of dataset keys ('project.dataset') known to exist
- one lock per dataset key, created lazily

Both only ever grow: datasets are never deleted by the engine, and a lock handed out
for a key stays the lock for that key.
"""

from __future__ import annotations

import threading


class DatasetRegistry:
    """Thread-safe existence cache plus per-dataset lock table."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._present: set[str] = set()
        self._locks: dict[str, threading.Lock] = {}

    def contains(self, dataset_key: str) -> bool:
        with self._guard:
            return dataset_key in self._present

    def mark_present(self, dataset_key: str) -> None:
        """Record a confirmed create-or-exists outcome."""
        with self._guard:
            self._present.add(dataset_key)

    def lock_for(self, dataset_key: str) -> threading.Lock:
        """Return the lock for `dataset_key`, creating it on first use."""
        with self._guard:
            lock = self._locks.get(dataset_key)
            if lock is None:
                lock = self._locks[dataset_key] = threading.Lock()
            return lock

    def __len__(self) -> int:
        with self._guard:
            return len(self._present)
