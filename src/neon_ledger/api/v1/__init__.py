# src/neon_ledger/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    authority_router,
    events_router,
    messages_router,
    users_router,
)

__all__ = [
    "auth_router",
    "authority_router",
    "events_router",
    "messages_router",
    "users_router",
]
