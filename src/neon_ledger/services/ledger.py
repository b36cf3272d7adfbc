# src/neon_ledger/services/ledger.py
"""Encrypted message ledger.

The ledger is an append-only arena of ``MessageRecord`` rows addressed by a
dense integer id, plus an implicit per-owner index (the owner's ids in
ascending order). Records are created by their owner, may be soft-deleted
once by that owner, and are never removed.

Mutations run one at a time under ``_WRITE_LOCK`` and inside a single
database transaction, so id allocation and the ``active`` flag cannot race
and a failed call leaves no partial state behind. Reads take no lock.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from threading import Lock

from sqlalchemy import func
from sqlalchemy.orm import Session

from neon_ledger.db.time import unix_now
from neon_ledger.models import (
    EVENT_RECORD_CREATED,
    EVENT_RECORD_DELETED,
    LEDGER_STATE_ROW_ID,
    LedgerEvent,
    LedgerState,
    MessageRecord,
)
from neon_ledger.services.authority import AuthorityError, CiphertextAuthority
from neon_ledger.services.errors import (
    AlreadyDeleted,
    AuthorityFailure,
    InvalidProof,
    NotFound,
    Unauthorized,
)
from neon_ledger.utils.hash import blake3_digest

logger = logging.getLogger(__name__)

_WRITE_LOCK = Lock()


def encode_identity(user_id: bytes) -> str:
    """Return the URL-safe base64 form used for identities in the API."""
    return base64.urlsafe_b64encode(user_id).decode().rstrip("=")


def ledger_identity_for(instance_id: str) -> bytes:
    """Derive the ledger's own identity for decryption grants."""
    return blake3_digest(b"neon-ledger:" + instance_id.encode("utf-8"))


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated principal attributed to a mutating call."""

    user_id: bytes

    @property
    def user_id_b64(self) -> str:
        return encode_identity(self.user_id)


@dataclass(frozen=True)
class MessageReceipt:
    """Outcome of a successful ``create``."""

    id: int
    created_at: int
    owner: bytes


@dataclass(frozen=True)
class MessageView:
    """Point read of a single record."""

    id: int
    content_handle: bytes
    created_at: int
    owner: bytes
    active: bool


@dataclass(frozen=True)
class OwnedMetadata:
    """Position-aligned metadata for one owner's records, in creation order."""

    created_at: list[int]
    message_ids: list[int]
    active: list[bool]


@dataclass(frozen=True)
class BatchMetadata:
    """Position-aligned metadata for a caller-supplied id sequence."""

    created_at: list[int]
    owners: list[bytes]
    active: list[bool]


class MessageLedger:
    """Authoritative store for encrypted message records."""

    def __init__(
        self,
        session: Session,
        authority: CiphertextAuthority,
        ledger_identity: bytes,
        clock: Callable[[], int] = unix_now,
    ) -> None:
        """Bind the ledger to a database session and a ciphertext authority.

        Args:
            session: SQLAlchemy session used for reads and mutations.
            authority: Collaborator that validates inputs and holds grants.
            ledger_identity: Identity the ledger grants itself on every create.
            clock: Source of creation timestamps (unix seconds).
        """
        self.session = session
        self.authority = authority
        self.ledger_identity = ledger_identity
        self._clock = clock

    # --- Mutations -------------------------------------------------------------

    def create(
        self,
        content_handle: bytes,
        validity_proof: bytes,
        caller: CallerIdentity,
    ) -> MessageReceipt:
        """Store a new encrypted record owned by ``caller``.

        Args:
            content_handle: Opaque input handle produced by the client.
            validity_proof: Proof blob accompanying the handle.
            caller: Authenticated submitter; becomes the record owner.

        Returns:
            The assigned id, creation timestamp and owner.

        Raises:
            InvalidProof: If ``validity_proof`` is empty.
            AuthorityFailure: If the authority rejects the handle/proof or a grant.
        """
        if not validity_proof:
            raise InvalidProof()

        with _WRITE_LOCK:
            try:
                try:
                    ref = self.authority.construct_verified(
                        content_handle,
                        validity_proof,
                        submitter=caller.user_id,
                    )
                except AuthorityError as err:
                    logger.warning(
                        "Authority rejected input from %s: %s", caller.user_id_b64, err
                    )
                    raise AuthorityFailure() from err

                state = self._state_for_update()
                message_id = int(state.total_messages)
                created_at = self._clock()

                self.session.add(
                    MessageRecord(
                        id=message_id,
                        content_handle=ref.handle,
                        created_at=created_at,
                        owner_user_id=caller.user_id,
                        active=True,
                    )
                )
                state.total_messages = message_id + 1
                self.session.add(
                    LedgerEvent(
                        kind=EVENT_RECORD_CREATED,
                        owner_user_id=caller.user_id,
                        message_id=message_id,
                        created_at=created_at,
                    )
                )

                try:
                    self.authority.authorize(ref, self.ledger_identity)
                    self.authority.authorize(ref, caller.user_id)
                except AuthorityError as err:
                    logger.warning("Authority refused grant for message %d: %s", message_id, err)
                    raise AuthorityFailure() from err

                self.session.commit()
            except Exception:
                self.session.rollback()
                raise

        logger.info("Message %d created by %s", message_id, caller.user_id_b64)
        return MessageReceipt(id=message_id, created_at=created_at, owner=caller.user_id)

    def delete(self, message_id: int, caller: CallerIdentity) -> None:
        """Soft-delete a record owned by ``caller``.

        Checks run in order: existence, ownership, activity. The stored
        content handle is left untouched.

        Raises:
            NotFound: If ``message_id`` is out of range.
            Unauthorized: If ``caller`` is not the record owner.
            AlreadyDeleted: If the record is already inactive.
        """
        with _WRITE_LOCK:
            try:
                if not self._is_valid_id(message_id, self.total()):
                    raise NotFound()

                record = self.session.get(MessageRecord, message_id, with_for_update=True)
                if record is None:  # pragma: no cover - dense ids guarantee a row
                    raise NotFound()
                if record.owner_user_id != caller.user_id:
                    logger.warning(
                        "Rejected delete of message %d by non-owner %s",
                        message_id,
                        caller.user_id_b64,
                    )
                    raise Unauthorized()
                if not record.active:
                    raise AlreadyDeleted()

                record.active = False
                self.session.add(
                    LedgerEvent(
                        kind=EVENT_RECORD_DELETED,
                        owner_user_id=caller.user_id,
                        message_id=message_id,
                    )
                )
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise

        logger.info("Message %d deleted by %s", message_id, caller.user_id_b64)

    # --- Reads -----------------------------------------------------------------

    def total(self) -> int:
        """Return the number of records ever created."""
        state = self.session.get(LedgerState, LEDGER_STATE_ROW_ID)
        return int(state.total_messages) if state is not None else 0

    def get(self, message_id: int) -> MessageView:
        """Return a single record.

        Raises:
            NotFound: If ``message_id`` is out of range.
        """
        if not self._is_valid_id(message_id, self.total()):
            raise NotFound()
        record = self.session.get(MessageRecord, message_id)
        if record is None:  # pragma: no cover - dense ids guarantee a row
            raise NotFound()
        return _to_view(record)

    def exists(self, message_id: int) -> tuple[bool, bool]:
        """Return ``(exists, active)`` without raising."""
        if not self._is_valid_id(message_id, self.total()):
            return False, False
        record = self.session.get(MessageRecord, message_id)
        if record is None:  # pragma: no cover - dense ids guarantee a row
            return False, False
        return True, bool(record.active)

    def list_owned(self, owner: bytes) -> list[int]:
        """Return every id created by ``owner`` in creation order."""
        rows = (
            self.session.query(MessageRecord.id)
            .filter(MessageRecord.owner_user_id == owner)
            .order_by(MessageRecord.id.asc())
            .all()
        )
        return [int(row.id) for row in rows]

    def count(self, owner: bytes) -> int:
        """Return how many records ``owner`` has created, deleted ones included."""
        total = (
            self.session.query(func.count(MessageRecord.id))
            .filter(MessageRecord.owner_user_id == owner)
            .scalar()
        )
        return int(total or 0)

    def list_owned_metadata(self, owner: bytes) -> OwnedMetadata:
        """Project ``owner``'s records to parallel created_at/id/active sequences."""
        records = (
            self.session.query(MessageRecord)
            .filter(MessageRecord.owner_user_id == owner)
            .order_by(MessageRecord.id.asc())
            .all()
        )
        return OwnedMetadata(
            created_at=[int(r.created_at) for r in records],
            message_ids=[int(r.id) for r in records],
            active=[bool(r.active) for r in records],
        )

    def get_batch(self, message_ids: Sequence[int]) -> BatchMetadata:
        """Return metadata for ``message_ids`` in input order.

        Every id is validated before any output is produced; one invalid id
        fails the whole batch.

        Raises:
            NotFound: If any id is out of range.
        """
        if not message_ids:
            return BatchMetadata(created_at=[], owners=[], active=[])

        total = self.total()
        for message_id in message_ids:
            if not self._is_valid_id(message_id, total):
                logger.debug("Batch rejected: message %d does not exist", message_id)
                raise NotFound()

        records = (
            self.session.query(MessageRecord)
            .filter(MessageRecord.id.in_(set(message_ids)))
            .all()
        )
        by_id = {int(r.id): r for r in records}
        ordered = [by_id[message_id] for message_id in message_ids]
        return BatchMetadata(
            created_at=[int(r.created_at) for r in ordered],
            owners=[r.owner_user_id for r in ordered],
            active=[bool(r.active) for r in ordered],
        )

    # --- Internals -------------------------------------------------------------

    @staticmethod
    def _is_valid_id(message_id: int, total: int) -> bool:
        return 0 <= message_id < total

    def _state_for_update(self) -> LedgerState:
        state = (
            self.session.query(LedgerState)
            .filter(LedgerState.id == LEDGER_STATE_ROW_ID)
            .with_for_update()
            .first()
        )
        if state is None:
            state = LedgerState(id=LEDGER_STATE_ROW_ID, total_messages=0)
            self.session.add(state)
            self.session.flush()
        return state


def _to_view(record: MessageRecord) -> MessageView:
    return MessageView(
        id=int(record.id),
        content_handle=record.content_handle,
        created_at=int(record.created_at),
        owner=record.owner_user_id,
        active=bool(record.active),
    )
