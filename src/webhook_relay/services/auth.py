"""Registration and login."""
from __future__ import annotations

import structlog

from webhook_relay.core.exceptions import DuplicateError, UnauthorizedError, ValidationError
from webhook_relay.domain.models import User
from webhook_relay.repositories import UserStore
from webhook_relay.services.password import burn_verification, hash_password, verify_password

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthService:
    def __init__(self, users: UserStore, *, bcrypt_rounds: int = 10):
        self._users = users
        self._bcrypt_rounds = bcrypt_rounds

    @staticmethod
    def _require_credentials(username: str, password: str) -> None:
        if not username or not password:
            raise ValidationError("Username and password required")

    async def register(self, username: str, password: str) -> User:
        self._require_credentials(username, password)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if await self._users.get_by_username(username) is not None:
            raise ValidationError("Username already exists")
        password_hash = hash_password(password, rounds=self._bcrypt_rounds)
        try:
            user = await self._users.create(username, password_hash)
        except DuplicateError as exc:
            # lost a race with a concurrent registration
            raise ValidationError("Username already exists") from exc
        logger.info("user_registered", user_id=str(user.id))
        return user

    async def login(self, username: str, password: str) -> User:
        self._require_credentials(username, password)
        user = await self._users.get_by_username(username)
        if user is None:
            burn_verification(password, rounds=self._bcrypt_rounds)
            raise UnauthorizedError("Invalid credentials")
        if not verify_password(password, user.password_hash):
            logger.info("login_rejected", user_id=str(user.id))
            raise UnauthorizedError("Invalid credentials")
        return user
