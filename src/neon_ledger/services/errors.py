# src/neon_ledger/services/errors.py
"""Failure taxonomy for ledger operations.

Every ledger failure aborts the whole operation; none of these are retried
internally.
"""


class LedgerError(RuntimeError):
    """Base exception raised for ledger failures."""

    detail = "Ledger operation failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.detail)


class InvalidProof(LedgerError):
    """Raised when ``create`` receives an empty validity proof."""

    detail = "Validity proof must not be empty"


class NotFound(LedgerError):
    """Raised when a referenced message id (or any id in a batch) does not exist."""

    detail = "Message does not exist"


class Unauthorized(LedgerError):
    """Raised when a caller tries to delete a record it does not own."""

    detail = "Not message owner"


class AlreadyDeleted(LedgerError):
    """Raised when deleting a record that is already inactive."""

    detail = "Message already deleted"


class AuthorityFailure(LedgerError):
    """Opaque failure reported by the ciphertext authority during ``create``."""

    detail = "Ciphertext authority rejected the input"
