"""
User repository for database access.

Encapsulates all Supabase queries and data mapping for the ``users`` table.
"""

from typing import Any, Optional

from shared.repository import BaseRepository, utc_now_iso
from .models import UserRecord

USERS_TABLE = "users"


class UserRepository(BaseRepository[UserRecord]):
    """
    Repository for user data access.

    All methods return ``UserRecord`` models, which still carry the password
    hash. Callers must sanitize before returning users to clients.

    Note: This repository does NOT perform authorization checks.
    """

    def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        result = self._db.table(USERS_TABLE).select("*").eq("id", user_id).execute()
        if not result.data:
            return None
        return self._map_to_user(result.data[0])

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        """Look up a user by email. The email is lowercased before matching."""
        result = (
            self._db.table(USERS_TABLE)
            .select("*")
            .eq("email", email.strip().lower())
            .execute()
        )
        if not result.data:
            return None
        return self._map_to_user(result.data[0])

    def has_role(self, role: str) -> bool:
        """Check whether any account holds the given role."""
        result = self._db.table(USERS_TABLE).select("id").eq("role", role).limit(1).execute()
        return bool(result.data)

    def create(self, data: dict[str, Any]) -> UserRecord:
        """
        Insert a new user row.

        Args:
            data: Column values; ``email`` is lowercased here.

        Returns:
            Created UserRecord with generated ID and timestamps.
        """
        row = {**data, "email": data["email"].strip().lower()}
        result = self._db.table(USERS_TABLE).insert(row).execute()
        return self._map_to_user(result.data[0])

    def update(self, user_id: str, data: dict[str, Any]) -> Optional[UserRecord]:
        """Apply a partial update and return the updated row, or None if it vanished."""
        changes = {**data, "updated_at": utc_now_iso()}
        result = self._db.table(USERS_TABLE).update(changes).eq("id", user_id).execute()
        if not result.data:
            return None
        return self._map_to_user(result.data[0])

    def touch_last_seen(self, user_id: str) -> Optional[UserRecord]:
        return self.update(user_id, {"last_seen": utc_now_iso()})

    def _map_to_user(self, data: dict[str, Any]) -> UserRecord:
        """Map database row to UserRecord model."""
        return UserRecord(
            id=str(data["id"]),
            name=data["name"],
            email=data["email"],
            password_hash=data["password_hash"],
            role=data.get("role") or "member",
            is_active=data.get("is_active", True),
            last_seen=data.get("last_seen"),
            google_id=data.get("google_id"),
            profile_picture=data.get("profile_picture"),
            phone_number=data.get("phone_number"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )
