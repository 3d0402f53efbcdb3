"""Domain models for the recent-foods cache."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RecentFoodEntry:
    """A food id and when it was last logged."""

    entry_id: str
    food_id: str
    logged_at: datetime


@dataclass(frozen=True)
class RecentFoodsBatch:
    """One usage to record, with the eviction policy the store applies.

    The store selects evictions and inserts the usage in a single
    transaction, so the entry count never exceeds ``capacity``.
    """

    food_id: str
    logged_at: datetime
    capacity: int
    cutoff: datetime


def select_evictions(
    entries: Iterable[RecentFoodEntry], batch: RecentFoodsBatch
) -> frozenset[str]:
    """Return ids to delete before inserting ``batch``.

    Everything beyond the newest ``capacity - 1`` entries goes, as does
    anything logged before the cutoff.
    """
    newest_first = sorted(entries, key=lambda entry: entry.logged_at, reverse=True)
    keep = max(batch.capacity - 1, 0)
    evicted = {entry.entry_id for entry in newest_first[keep:]}
    evicted.update(
        entry.entry_id for entry in newest_first if entry.logged_at < batch.cutoff
    )
    return frozenset(evicted)
