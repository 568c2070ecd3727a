"""bcrypt password hashing.

bcrypt only reads the first 72 bytes of its input and recent releases raise
on anything longer, so passwords are truncated to that length before hashing
and before checking.
"""
from __future__ import annotations

import bcrypt
import structlog

logger = structlog.get_logger(__name__)

BCRYPT_MAX_BYTES = 72


def _secret_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(_secret_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, hashed_password: str) -> bool:
    """False on mismatch and on a malformed stored hash."""
    try:
        return bcrypt.checkpw(_secret_bytes(password), hashed_password.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        logger.warning("password_hash_malformed")
        return False


def burn_verification(password: str, rounds: int = 10) -> None:
    """Spend one bcrypt check so unknown usernames cost as much as wrong passwords."""
    bcrypt.checkpw(_secret_bytes(password), _dummy_hash(rounds))


_DUMMY_HASHES: dict[int, bytes] = {}


def _dummy_hash(rounds: int) -> bytes:
    if rounds not in _DUMMY_HASHES:
        _DUMMY_HASHES[rounds] = bcrypt.hashpw(b"webhook-relay", bcrypt.gensalt(rounds=rounds))
    return _DUMMY_HASHES[rounds]
