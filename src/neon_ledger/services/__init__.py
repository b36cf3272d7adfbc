# src/neon_ledger/services/__init__.py
"""Business logic services for the Neon Ledger application."""

from .authority import (
    AuthorityError,
    CiphertextAuthority,
    CiphertextRef,
    LocalCiphertextAuthority,
)
from .crypto import CryptoService
from .errors import (
    AlreadyDeleted,
    AuthorityFailure,
    InvalidProof,
    LedgerError,
    NotFound,
    Unauthorized,
)
from .ledger import CallerIdentity, MessageLedger
from .replay import ReplayProtectionService

__all__ = [
    "AuthorityError", "CiphertextAuthority", "CiphertextRef", "LocalCiphertextAuthority",
    "CryptoService",
    "LedgerError", "InvalidProof", "NotFound", "Unauthorized", "AlreadyDeleted",
    "AuthorityFailure",
    "CallerIdentity", "MessageLedger",
    "ReplayProtectionService",
]
