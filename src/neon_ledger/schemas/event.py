"""Ledger event Pydantic schemas."""

from pydantic import BaseModel, Field


class LedgerEventResponse(BaseModel):
    """One RecordCreated or RecordDeleted event."""

    id: int
    kind: str
    owner: str
    message_id: int
    created_at: int | None = Field(None, description="Set for RecordCreated only")


class EventPage(BaseModel):
    """Ascending page of events with a cursor for the next call."""

    events: list[LedgerEventResponse]
    next_cursor: int | None = Field(None, description="Pass as ?after= to continue")
