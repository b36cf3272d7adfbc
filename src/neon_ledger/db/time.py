# src/neon_ledger/db/time.py
"""Time utilities for database models."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def unix_now() -> int:
    """Return the current UTC time as whole seconds since the epoch."""
    return int(utcnow().timestamp())
