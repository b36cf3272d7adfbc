# src/neon_ledger/models/message.py
"""Models describing encrypted message records."""

from sqlalchemy import BigInteger, Index, LargeBinary
from sqlalchemy.orm import Mapped, mapped_column

from neon_ledger.db.session import Base


class MessageRecord(Base):
    """Encrypted message stored on the ledger.

    The server never sees plaintext: ``content_handle`` references a
    ciphertext held by the ciphertext authority. Records are soft-deleted by
    clearing ``active`` and are never removed.
    """

    __tablename__ = "message_record"

    # Dense id assigned from LedgerState.total_messages, not by the database.
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    content_handle: Mapped[bytes] = mapped_column(LargeBinary(32), nullable=False)
    # Unix seconds.
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    owner_user_id: Mapped[bytes] = mapped_column(LargeBinary(32), nullable=False)
    active: Mapped[bool] = mapped_column(default=True, nullable=False)

    __table_args__ = (
        Index("ix_message_record_owner_id", "owner_user_id", "id"),
    )
