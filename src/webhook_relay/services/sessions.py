"""Stateless session tokens (JWT) carried in the ``token`` cookie.

There is no server-side revocation list: a token stays valid until it
expires, and logout only clears the cookie.
"""
from __future__ import annotations

import time
from typing import Any

import jwt  # type: ignore[import-untyped]
import structlog
from aiohttp import web
from pydantic import ValidationError as PydanticValidationError

from webhook_relay.domain.models import SessionClaims, User
from webhook_relay.settings import Settings

logger = structlog.get_logger(__name__)


class SessionManager:
    def __init__(self, settings: Settings):
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self._ttl_sec = settings.session_ttl_sec
        self._cookie_name = settings.session_cookie_name
        self._secure = settings.secure_cookies

    @property
    def cookie_name(self) -> str:
        return self._cookie_name

    def issue(self, user: User) -> str:
        """Sign ``{id, username}`` with the configured expiry."""
        now = int(time.time())
        payload: dict[str, Any] = {
            "id": str(user.id),
            "username": user.username,
            "iat": now,
            "exp": now + self._ttl_sec,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def validate(self, token: str) -> SessionClaims | None:
        """Return the claims, or None for a bad signature, expiry or malformed claims."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            logger.info("session_token_expired")
            return None
        except jwt.InvalidTokenError as exc:
            logger.info("session_token_invalid", error=str(exc))
            return None
        try:
            return SessionClaims.model_validate(payload)
        except PydanticValidationError:
            logger.info("session_token_claims_invalid")
            return None

    def set_cookie(self, response: web.StreamResponse, token: str) -> None:
        response.set_cookie(
            self._cookie_name,
            token,
            max_age=self._ttl_sec,
            path="/",
            httponly=True,
            secure=self._secure,
            samesite="Lax",
        )

    def clear_cookie(self, response: web.StreamResponse) -> None:
        response.set_cookie(
            self._cookie_name,
            "",
            max_age=0,
            path="/",
            httponly=True,
            secure=self._secure,
            samesite="Lax",
        )
