"""User directory business logic."""

from dataclasses import dataclass
from typing import Protocol

from washqueue.domain.models import UserRecord


class DuplicateUserName(ValueError):
    """Raised when a display name is already registered."""

    kind = "DuplicateName"


class UserRepository(Protocol):
    """Persistence interface for user data."""

    def get_by_name(self, name: str) -> UserRecord | None:
        """Return the user with a display name, if present."""

    def get_by_id(self, user_id: int) -> UserRecord | None:
        """Return the user for an id, if present."""

    def create_user(self, name: str, telegram_chat_id: int | None) -> UserRecord:
        """Create and return a new user record."""

    def list_users(self) -> list[UserRecord]:
        """Return every registered user."""


@dataclass
class UserService:
    """Application service for registering facility members."""

    repository: UserRepository

    def register(self, name: str, telegram_chat_id: int | None = None) -> UserRecord:
        """Register a new member under a unique, trimmed display name."""
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("Name must not be empty")
        if self.repository.get_by_name(cleaned) is not None:
            raise DuplicateUserName(f"Username {cleaned!r} already exists")
        return self.repository.create_user(cleaned, telegram_chat_id)

    def get(self, user_id: int) -> UserRecord | None:
        """Return a user by id."""
        return self.repository.get_by_id(user_id)

    def list_users(self) -> list[UserRecord]:
        """Return all users."""
        return self.repository.list_users()
