"""Supabase repository for recent foods."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from food_log.domain.recent import RecentFoodEntry, RecentFoodsBatch
from food_log.services.recent_foods import RecentFoodsRepository


@dataclass
class SupabaseRecentFoodsRepository(RecentFoodsRepository):
    """Supabase-backed recent foods.

    Usages go through the ``apply_recent_food_batch`` function, which locks
    the user's rows, selects evictions and inserts inside one transaction.
    """

    client: Client

    def list_recent(self, user_id: str, limit: int) -> list[RecentFoodEntry]:
        """Return the newest entries for a user."""
        response = (
            self.client.table("recent_foods")
            .select("id, food_id, timestamp")
            .eq("user_id", user_id)
            .order("timestamp", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]

    def apply_batch(self, user_id: str, batch: RecentFoodsBatch) -> None:
        """Evict and insert inside the database function's transaction."""
        self.client.rpc(
            "apply_recent_food_batch",
            {
                "p_user_id": user_id,
                "p_food_id": batch.food_id,
                "p_timestamp": batch.logged_at.isoformat(),
                "p_capacity": batch.capacity,
                "p_cutoff": batch.cutoff.isoformat(),
            },
        ).execute()


def _parse_entry(row: dict[str, object]) -> RecentFoodEntry:
    return RecentFoodEntry(
        entry_id=str(row["id"]),
        food_id=str(row.get("food_id", "")),
        logged_at=datetime.fromisoformat(str(row["timestamp"])),
    )
