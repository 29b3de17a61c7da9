"""Per-partition key statistics over a key/value store."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field

from sloopkit.store import MemoryStore
from sloopkit.utilities import KeyFormatError, parse_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SloopKey:
    """The table and partition a storage key belongs to."""

    table_name: str
    partition_id: str


@dataclass
class PartitionInfo:
    """Key counts for one partition."""

    total_key_count: int = 0
    table_name_to_key_count: Counter = field(default_factory=Counter)


def sloop_key_from_key(key: str | bytes) -> SloopKey:
    """Return the table name and partition id of a storage key."""
    if isinstance(key, bytes):
        key = key.decode("utf-8", errors="replace")
    parts = parse_key(key)
    return SloopKey(table_name=parts[1], partition_id=parts[2])


def get_partitions_info(store: MemoryStore) -> tuple[dict[str, PartitionInfo], int]:
    """Count keys per partition and table, skipping keys that do not parse."""
    infos: dict[str, PartitionInfo] = {}
    total = 0
    for key in store.iter_keys():
        try:
            sloop_key = sloop_key_from_key(key)
        except KeyFormatError:
            logger.error("failed to parse information about key: %s", key)
            continue
        info = infos.setdefault(sloop_key.partition_id, PartitionInfo())
        info.total_key_count += 1
        info.table_name_to_key_count[sloop_key.table_name] += 1
        total += 1
    return infos, total


def get_sorted_partition_ids(partitions_info: dict[str, PartitionInfo]) -> list[str]:
    """Return partition ids in sorted order (they share a fixed width)."""
    return sorted(partitions_info)


def get_keys_for_prefix(store: MemoryStore, key_prefix: str) -> list[str]:
    """Return all keys starting with ``key_prefix``."""
    return list(store.iter_keys(key_prefix))


def print_key_histogram(store: MemoryStore) -> None:
    """Log key counts per table and partition at debug level."""
    infos, total = get_partitions_info(store)
    logger.debug("TotalkeyCount: %d", total)
    for partition_id, info in infos.items():
        for table_name, count in info.table_name_to_key_count.items():
            logger.debug(
                "TableName: %s, PartitionId: %s, keyCount: %d",
                table_name,
                partition_id,
                count,
            )