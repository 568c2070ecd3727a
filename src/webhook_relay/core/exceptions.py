"""Error taxonomy shared by the service, repository and HTTP layers.

Every error carries the HTTP status it maps to and a message that is safe to
show to the client. Backend details travel on ``__cause__`` and only ever
reach the server-side logs.
"""
from __future__ import annotations


class RelayError(Exception):
    """Base error for the webhook relay."""

    status: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RelayError):
    """Malformed or missing input."""

    status = 400
    default_message = "Invalid request"


class UnauthorizedError(RelayError):
    """Missing or invalid credentials, session or signature."""

    status = 401
    default_message = "Unauthorized"


class ForbiddenError(RelayError):
    """Cross-tenant access attempt."""

    status = 403
    default_message = "Access denied"


class NotFoundError(RelayError):
    """Unknown path or resource."""

    status = 404
    default_message = "Not found"


class InternalError(RelayError):
    """Unexpected failure; the message never includes the cause."""


class StorageError(InternalError):
    """Raised when a storage backend operation fails."""


class PayloadStoreError(StorageError):
    """Raised when the payload store (inline or cache) cannot serve a request."""


class DuplicateError(StorageError):
    """Raised by repositories when a unique constraint rejects an insert."""

    def __init__(self, field: str):
        super().__init__()
        self.field = field
