"""LINE webhook signature verification.

The signature is ``base64(HMAC-SHA256(channel_secret, raw_body))``. It must be
computed over the bytes exactly as received: re-serializing parsed JSON can
reorder keys or change whitespace and break the match.
"""
from __future__ import annotations

import base64
import hashlib
import hmac

SIGNATURE_HEADER = "X-Line-Signature"


def sign(secret: str, raw_body: bytes) -> str:
    """Compute the signature a sender holding ``secret`` would send."""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify(secret: str, signature_header: str | None, raw_body: bytes) -> bool:
    """Check ``signature_header`` against the body; comparison is constant-time.

    Header values that are not ASCII (aiohttp keeps undecodable bytes as
    surrogates) can never be a base64 signature and are rejected outright.
    """
    if not signature_header or not signature_header.isascii():
        return False
    expected = sign(secret, raw_body)
    return hmac.compare_digest(expected.encode("ascii"), signature_header.encode("ascii"))
