# src/neon_ledger/models/identity.py
"""SQLAlchemy model for authenticated caller identities."""

from __future__ import annotations

import base64
from datetime import datetime

from sqlalchemy import LargeBinary
from sqlalchemy.orm import Mapped, mapped_column

from neon_ledger.db.session import Base
from neon_ledger.db.time import utcnow


class Identity(Base):
    """Caller identity keyed by the hash of an Ed25519 public key."""

    __tablename__ = "identity"

    user_id: Mapped[bytes] = mapped_column(LargeBinary(32), primary_key=True)
    pubkey: Mapped[bytes] = mapped_column(LargeBinary(32), unique=True, nullable=False)
    first_seen_at: Mapped[datetime] = mapped_column(default=utcnow)
    last_login_at: Mapped[datetime] = mapped_column(default=utcnow)

    @property
    def pubkey_hex(self) -> str:
        """Return the identity's public key as a hex string."""
        return self.pubkey.hex()

    @property
    def user_id_b64(self) -> str:
        """Return the identifier encoded in URL-safe base64."""
        return base64.urlsafe_b64encode(self.user_id).decode().rstrip("=")
