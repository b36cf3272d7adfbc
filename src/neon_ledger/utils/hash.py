# src/neon_ledger/utils/hash.py
"""BLAKE3 hashing helpers."""

from __future__ import annotations

from blake3 import blake3

DIGEST_SIZE = 32


def blake3_digest(data: bytes) -> bytes:
    """Return the 32-byte BLAKE3 digest of the supplied data."""
    return blake3(data).digest()


def blake3_hexdigest(data: bytes) -> str:
    """Return the hexadecimal digest of the supplied data."""
    return blake3(data).hexdigest()


def keyed_digest(key: bytes, data: bytes) -> bytes:
    """Return a BLAKE3 MAC of ``data`` under ``key``.

    BLAKE3's keyed mode requires exactly 32 key bytes, so arbitrary key
    material is first condensed with an unkeyed digest.
    """
    if len(key) != DIGEST_SIZE:
        key = blake3_digest(key)
    return blake3(data, key=key).digest()
