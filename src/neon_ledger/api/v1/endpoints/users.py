# src/neon_ledger/api/v1/endpoints/users.py
"""Per-owner message index endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from neon_ledger.api.v1.dependencies import LedgerDep, OwnerDep
from neon_ledger.core.security import encode_b64
from neon_ledger.schemas.message import (
    MessageCountResponse,
    OwnedMessagesResponse,
    OwnedMetadataResponse,
)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{owner}/messages", response_model=OwnedMessagesResponse)
def list_owned_messages(owner: OwnerDep, ledger: LedgerDep) -> OwnedMessagesResponse:
    """List every message id created by ``owner``, oldest first."""
    return OwnedMessagesResponse(owner=encode_b64(owner), message_ids=ledger.list_owned(owner))


@router.get("/{owner}/messages/count", response_model=MessageCountResponse)
def count_owned_messages(owner: OwnerDep, ledger: LedgerDep) -> MessageCountResponse:
    """Count messages created by ``owner``, including soft-deleted ones."""
    return MessageCountResponse(owner=encode_b64(owner), count=ledger.count(owner))


@router.get("/{owner}/messages/metadata", response_model=OwnedMetadataResponse)
def owned_messages_metadata(owner: OwnerDep, ledger: LedgerDep) -> OwnedMetadataResponse:
    """Return created_at, id and active flag for each of ``owner``'s messages."""
    metadata = ledger.list_owned_metadata(owner)
    return OwnedMetadataResponse(
        owner=encode_b64(owner),
        created_at=metadata.created_at,
        message_ids=metadata.message_ids,
        active=metadata.active,
    )
