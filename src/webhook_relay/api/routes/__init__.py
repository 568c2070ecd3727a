"""Route modules."""

from . import auth, endpoints, logs, webhook

__all__ = [
    "auth",
    "endpoints",
    "logs",
    "webhook",
]
