# src/neon_ledger/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .authority import router as authority_router
from .events import router as events_router
from .messages import router as messages_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "authority_router",
    "events_router",
    "messages_router",
    "users_router",
]
