# src/neon_ledger/models/ledger_state.py
"""Ledger-wide bookkeeping models."""


from sqlalchemy import BigInteger
from sqlalchemy.orm import Mapped, mapped_column

from neon_ledger.db.session import Base

LEDGER_STATE_ROW_ID = 1


class LedgerState(Base):
    """Global record counter.

    ``total_messages`` is both the number of stored records and the id the
    next record will receive. It only ever grows, by one per create.
    """

    __tablename__ = "ledger_state"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, default=LEDGER_STATE_ROW_ID)
    total_messages: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
