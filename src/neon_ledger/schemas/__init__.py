# src/neon_ledger/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .authority import DecryptRequest, DecryptResponse, EncryptInputRequest, EncryptInputResponse
from .event import EventPage, LedgerEventResponse
from .identity import ChallengeRequest, ChallengeResponse, LoginRequest, LoginResponse
from .message import (
    BatchRequest,
    BatchResponse,
    MessageCountResponse,
    MessageCreate,
    MessageCreated,
    MessageResponse,
    MessageStatus,
    OwnedMessagesResponse,
    OwnedMetadataResponse,
    TotalMessagesResponse,
)

__all__ = [
    "DecryptRequest", "DecryptResponse", "EncryptInputRequest", "EncryptInputResponse",
    "EventPage", "LedgerEventResponse",
    "ChallengeRequest", "ChallengeResponse", "LoginRequest", "LoginResponse",
    "BatchRequest", "BatchResponse", "MessageCountResponse", "MessageCreate",
    "MessageCreated", "MessageResponse", "MessageStatus", "OwnedMessagesResponse",
    "OwnedMetadataResponse", "TotalMessagesResponse",
]
