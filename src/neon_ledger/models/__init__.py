# src/neon_ledger/models/__init__.py
"""SQLAlchemy models for the Neon Ledger application."""

from .identity import Identity
from .ledger_event import EVENT_RECORD_CREATED, EVENT_RECORD_DELETED, LedgerEvent
from .ledger_state import LEDGER_STATE_ROW_ID, LedgerState
from .message import MessageRecord

__all__ = [
    "Identity",
    "LedgerEvent", "EVENT_RECORD_CREATED", "EVENT_RECORD_DELETED",
    "LedgerState", "LEDGER_STATE_ROW_ID",
    "MessageRecord",
]
