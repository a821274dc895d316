"""Supabase repository for completed washes."""

from dataclasses import dataclass
from datetime import date, datetime

from supabase import Client

from washqueue.services.completions import CompletedWashRepository


@dataclass
class SupabaseCompletedWashRepository(CompletedWashRepository):
    """Supabase-backed daily completed-wash log."""

    client: Client

    def add_completion(
        self, user_id: int, machine_id: int, day: date, ended_at: datetime
    ) -> None:
        """Insert a completed wash row."""
        self.client.table("completed_washes").insert(
            {
                "user_id": user_id,
                "machine_id": machine_id,
                "day": day.isoformat(),
                "ended_at": ended_at.isoformat(),
            }
        ).execute()

    def list_user_ids(self, day: date) -> set[int]:
        """Return user ids with a completed wash on ``day``."""
        response = (
            self.client.table("completed_washes")
            .select("user_id")
            .eq("day", day.isoformat())
            .execute()
        )
        return {int(row["user_id"]) for row in response.data or []}

    def clear_day(self, day: date) -> None:
        """Delete the completed washes for ``day``."""
        self.client.table("completed_washes").delete().eq(
            "day", day.isoformat()
        ).execute()
