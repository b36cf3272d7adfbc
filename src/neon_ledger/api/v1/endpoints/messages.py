# src/neon_ledger/api/v1/endpoints/messages.py
"""Encrypted message endpoints for the Neon Ledger API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status

from neon_ledger.api.v1.dependencies import CallerDep, LedgerDep, ledger_http_error
from neon_ledger.core.security import encode_b64
from neon_ledger.core.settings import settings
from neon_ledger.schemas.message import (
    BatchRequest,
    BatchResponse,
    MessageCreate,
    MessageCreated,
    MessageResponse,
    MessageStatus,
    TotalMessagesResponse,
)
from neon_ledger.services.errors import LedgerError

router = APIRouter(prefix="/messages", tags=["messages"])


def _decode_hex(field: str, value: str) -> bytes:
    try:
        return bytes.fromhex(value)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid hex encoding for {field}",
        ) from err


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=MessageCreated)
def create_message(
    payload: MessageCreate,
    caller: CallerDep,
    ledger: LedgerDep,
) -> MessageCreated:
    """Store an encrypted message owned by the authenticated caller."""
    content_handle = _decode_hex("content_handle", payload.content_handle)
    proof = _decode_hex("proof", payload.proof)

    try:
        receipt = ledger.create(content_handle, proof, caller)
    except LedgerError as err:
        raise ledger_http_error(err) from err

    return MessageCreated(
        message_id=receipt.id,
        created_at=receipt.created_at,
        owner=encode_b64(receipt.owner),
    )


@router.get("/total", response_model=TotalMessagesResponse)
def total_messages(ledger: LedgerDep) -> TotalMessagesResponse:
    """Return how many messages have ever been created."""
    return TotalMessagesResponse(total=ledger.total())


@router.post("/batch", response_model=BatchResponse)
def get_messages_batch(payload: BatchRequest, ledger: LedgerDep) -> BatchResponse:
    """Return metadata for the requested ids, aligned with the request order."""
    if len(payload.message_ids) > settings.max_batch_size:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Batch size exceeds the limit of {settings.max_batch_size}",
        )

    try:
        batch = ledger.get_batch(payload.message_ids)
    except LedgerError as err:
        raise ledger_http_error(err) from err

    return BatchResponse(
        created_at=batch.created_at,
        owners=[encode_b64(owner) for owner in batch.owners],
        active=batch.active,
    )


@router.get("/{message_id}", response_model=MessageResponse)
def get_message(message_id: int, ledger: LedgerDep) -> MessageResponse:
    """Fetch a single message record, including soft-deleted ones."""
    try:
        view = ledger.get(message_id)
    except LedgerError as err:
        raise ledger_http_error(err) from err

    return MessageResponse(
        id=view.id,
        content_handle=view.content_handle.hex(),
        created_at=view.created_at,
        owner=encode_b64(view.owner),
        active=view.active,
    )


@router.get("/{message_id}/status", response_model=MessageStatus)
def message_status(message_id: int, ledger: LedgerDep) -> MessageStatus:
    """Report whether a message exists and is still active."""
    exists, active = ledger.exists(message_id)
    return MessageStatus(exists=exists, active=active)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_message(message_id: int, caller: CallerDep, ledger: LedgerDep) -> Response:
    """Soft-delete a message owned by the authenticated caller."""
    try:
        ledger.delete(message_id, caller)
    except LedgerError as err:
        raise ledger_http_error(err) from err

    return Response(status_code=status.HTTP_204_NO_CONTENT)
