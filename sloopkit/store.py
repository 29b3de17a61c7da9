"""An ordered in-memory key/value store and prefix helpers over it."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping
from itertools import islice

logger = logging.getLogger(__name__)

_MOVE_PREFIX = "!badger!move"


class MemoryStore:
    """A thread-safe key/value store whose keys are iterated in sorted order."""

    def __init__(self, items: Mapping[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = threading.RLock()
        for key, value in (items or {}).items():
            self.set(key, value)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = value

    def get(self, key: str) -> bytes:
        """Return the value stored under ``key``; raise KeyError if absent."""
        with self._lock:
            return self._data[key]

    def delete(self, key: str) -> None:
        """Remove ``key``; removing a missing key is not an error."""
        with self._lock:
            self._data.pop(key, None)

    def iter_keys(self, prefix: str = "") -> Iterator[str]:
        """Iterate, in sorted order, over a snapshot of keys starting with ``prefix``."""
        with self._lock:
            keys = sorted(key for key in self._data if key.startswith(prefix))
        return iter(keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data


def _matching_keys(store: MemoryStore, key_prefix: str) -> Iterator[str]:
    moved_prefix = _MOVE_PREFIX + key_prefix
    return (
        key
        for key in store.iter_keys()
        if key.startswith(key_prefix) or key.startswith(moved_prefix)
    )


def delete_keys_with_prefix(
    key_prefix: str, store: MemoryStore, batch_size: int, num_keys_to_delete: int
) -> tuple[int, int]:
    """Delete up to ``num_keys_to_delete`` keys starting with ``key_prefix`` in batches.

    Returns the number of keys deleted and the number that was asked for.
    """
    limit = batch_size if batch_size > 0 else None
    deleted = 0
    while deleted < num_keys_to_delete:
        batch = list(islice(_matching_keys(store, key_prefix), limit))
        if not batch:
            break
        for key in batch:
            try:
                store.delete(key)
            except Exception:
                logger.error(
                    "Error encountered while deleting keys with prefix: '%s', "
                    "numberOfKeysDeleted: '%d' numOfKeysToDelete: '%d'",
                    key_prefix,
                    deleted,
                    num_keys_to_delete,
                )
                raise
            deleted += 1
    return deleted, num_keys_to_delete


def get_total_key_count(store: MemoryStore, key_prefix: str = "") -> int:
    """Count keys starting with ``key_prefix``; an empty prefix counts all keys."""
    return sum(1 for _ in store.iter_keys(key_prefix))