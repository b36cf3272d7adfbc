# src/neon_ledger/models/ledger_event.py
"""Append-only event log emitted by ledger mutations."""

from datetime import datetime

from sqlalchemy import BigInteger, Integer, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column

from neon_ledger.db.session import Base
from neon_ledger.db.time import utcnow

EVENT_RECORD_CREATED = "RecordCreated"
EVENT_RECORD_DELETED = "RecordDeleted"


class LedgerEvent(Base):
    """Externally observable ledger event.

    Rows are only ever inserted, in the same transaction as the mutation
    they describe.
    """

    __tablename__ = "ledger_event"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    owner_user_id: Mapped[bytes] = mapped_column(LargeBinary(32), nullable=False)
    message_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    # Only set for RecordCreated.
    created_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(default=utcnow)
