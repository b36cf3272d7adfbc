# src/neon_ledger/schemas/message.py
"""Message ledger Pydantic schemas."""

from pydantic import BaseModel, Field, field_validator


def _strip_hex_prefix(value: str) -> str:
    value = value.strip()
    return value[2:] if value[:2].lower() == "0x" else value


class MessageCreate(BaseModel):
    """Schema for submitting a new encrypted message."""

    content_handle: str = Field(..., description="Hex-encoded 32-byte ciphertext handle")
    proof: str = Field("", description="Hex-encoded validity proof for the handle")

    @field_validator("content_handle", "proof")
    @classmethod
    def normalize_hex(cls, v: str) -> str:
        """Accept an optional 0x prefix."""
        return _strip_hex_prefix(v)


class MessageCreated(BaseModel):
    """Response returned after a message is stored."""

    status: str = "message_submitted"
    message_id: int
    created_at: int = Field(..., description="Creation time in unix seconds")
    owner: str = Field(..., description="URL-safe base64 identity of the submitter")


class MessageResponse(BaseModel):
    """Single message record as stored on the ledger."""

    id: int
    content_handle: str = Field(..., description="Hex-encoded ciphertext handle")
    created_at: int
    owner: str
    active: bool


class MessageStatus(BaseModel):
    """Non-throwing existence probe result."""

    exists: bool
    active: bool


class TotalMessagesResponse(BaseModel):
    """Global record count."""

    total: int


class BatchRequest(BaseModel):
    """Ids to look up; order and duplicates are preserved in the response."""

    message_ids: list[int] = Field(default_factory=list)


class BatchResponse(BaseModel):
    """Position-aligned metadata for a batch lookup."""

    created_at: list[int]
    owners: list[str]
    active: list[bool]


class OwnedMessagesResponse(BaseModel):
    """All message ids created by an owner, in creation order."""

    owner: str
    message_ids: list[int]


class MessageCountResponse(BaseModel):
    """Number of messages created by an owner."""

    owner: str
    count: int


class OwnedMetadataResponse(BaseModel):
    """Position-aligned metadata for all of an owner's messages."""

    owner: str
    created_at: list[int]
    message_ids: list[int]
    active: list[bool]
