"""Supabase-backed user repository."""

from dataclasses import dataclass

from supabase import Client

from washqueue.domain.models import UserRecord
from washqueue.services.users import UserRepository

_COLUMNS = "id, name, telegram_chat_id"


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user persistence."""

    client: Client

    def get_by_name(self, name: str) -> UserRecord | None:
        """Return the user with a display name, if present."""
        response = (
            self.client.table("users")
            .select(_COLUMNS)
            .eq("name", name)
            .limit(1)
            .execute()
        )
        if response.data:
            return _to_user(response.data[0])
        return None

    def get_by_id(self, user_id: int) -> UserRecord | None:
        """Return the user for an id, if present."""
        response = (
            self.client.table("users")
            .select(_COLUMNS)
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if response.data:
            return _to_user(response.data[0])
        return None

    def create_user(self, name: str, telegram_chat_id: int | None) -> UserRecord:
        """Create a new user row and return it."""
        response = (
            self.client.table("users")
            .insert({"name": name, "telegram_chat_id": telegram_chat_id})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create user in Supabase")
        return _to_user(response.data[0])

    def list_users(self) -> list[UserRecord]:
        """Return every user ordered by id."""
        response = self.client.table("users").select(_COLUMNS).order("id").execute()
        return [_to_user(row) for row in response.data or []]


def _to_user(row: dict[str, object]) -> UserRecord:
    chat_id = row.get("telegram_chat_id")
    return UserRecord(
        id=int(row["id"]),
        name=str(row["name"]),
        telegram_chat_id=int(chat_id) if chat_id is not None else None,
    )
