# src/neon_ledger/api/v1/endpoints/events.py
"""Read-only feed of ledger events for indexers."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from neon_ledger.api.v1.dependencies import SessionDep
from neon_ledger.core.security import encode_b64
from neon_ledger.models import LedgerEvent
from neon_ledger.schemas.event import EventPage, LedgerEventResponse

router = APIRouter(prefix="/events", tags=["events"])

# Largest cursor the database driver can bind as a 64-bit integer.
MAX_EVENT_CURSOR = 2**63 - 1


@router.get("", response_model=EventPage)
def list_events(
    db: SessionDep,
    after: Annotated[int, Query(ge=0, le=MAX_EVENT_CURSOR)] = 0,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
) -> EventPage:
    """Return events with an id greater than ``after`` in emission order."""
    rows = (
        db.query(LedgerEvent)
        .filter(LedgerEvent.id > after)
        .order_by(LedgerEvent.id.asc())
        .limit(limit)
        .all()
    )
    events = [
        LedgerEventResponse(
            id=row.id,
            kind=row.kind,
            owner=encode_b64(row.owner_user_id),
            message_id=int(row.message_id),
            created_at=int(row.created_at) if row.created_at is not None else None,
        )
        for row in rows
    ]
    return EventPage(events=events, next_cursor=events[-1].id if events else None)
