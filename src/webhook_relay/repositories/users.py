"""User repository."""
from __future__ import annotations

from webhook_relay.domain.models import User
from webhook_relay.repositories.base import BaseRepository

_USER_COLUMNS = "id, username, password_hash, created_at"


class UserRepository(BaseRepository):
    """Repository for user accounts."""

    async def create(self, username: str, password_hash: str) -> User:
        """Insert a user; a taken username raises DuplicateError."""
        row = await self._fetchrow(
            f"""
            INSERT INTO users (username, password_hash)
            VALUES ($1, $2)
            RETURNING {_USER_COLUMNS}
            """,
            username,
            password_hash,
        )
        if not row:
            raise RuntimeError("Failed to create user")
        return User.model_validate(dict(row))

    async def get_by_username(self, username: str) -> User | None:
        row = await self._fetchrow(
            f"SELECT {_USER_COLUMNS} FROM users WHERE username = $1",
            username,
        )
        return User.model_validate(dict(row)) if row else None
