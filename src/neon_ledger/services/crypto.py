# src/neon_ledger/services/crypto.py
"""Challenge issuance and validation for login handshakes."""

from __future__ import annotations

import secrets
import struct
import time

from neon_ledger.core.security import decode_b64, encode_b64
from neon_ledger.core.settings import settings
from neon_ledger.utils.hash import keyed_digest

PUBKEY_LENGTH_BYTES = 32
NONCE_BYTES = 16
TIMESTAMP_BYTES = 8
MAC_BYTES = 32
CHALLENGE_PAYLOAD_BYTES = NONCE_BYTES + TIMESTAMP_BYTES + MAC_BYTES


class CryptoService:
    """Stateless challenge issuer.

    A challenge is ``nonce || issued_at || mac`` where the MAC binds the
    nonce, the issue time, and the client's public key to the server secret,
    so the server needs no storage to recognise its own challenges.
    """

    @staticmethod
    def _decode_hex(data: str) -> bytes:
        try:
            return bytes.fromhex(data)
        except ValueError as err:
            raise ValueError(f"Invalid hex encoding: {err}") from err

    @staticmethod
    def validate_and_decode_pubkey(pubkey_encoded: str) -> bytes:
        """Validate and decode an Ed25519 public key (base64 or hex)."""
        cleaned = pubkey_encoded.strip()
        errors: list[str] = []
        for decoder in (decode_b64, CryptoService._decode_hex):
            try:
                result = decoder(cleaned)
            except ValueError as err:
                errors.append(str(err))
                continue
            if len(result) != PUBKEY_LENGTH_BYTES:
                errors.append("Ed25519 public keys must be 32 bytes")
                continue
            return result
        joined = "; ".join(errors) if errors else "unknown decoding error"
        raise ValueError(f"Invalid public key format: {joined}")

    @staticmethod
    def _mac(pubkey_bytes: bytes, nonce: bytes, issued_at: bytes) -> bytes:
        payload = b"|".join((b"login", pubkey_bytes, nonce, issued_at))
        return keyed_digest(str(settings.secret_key).encode(), payload)

    @staticmethod
    def issue_auth_challenge(pubkey_bytes: bytes, now: int | None = None) -> str:
        """Return a base64 challenge the client must sign with its key."""
        nonce = secrets.token_bytes(NONCE_BYTES)
        issued_at = struct.pack(">Q", int(time.time() if now is None else now))
        mac = CryptoService._mac(pubkey_bytes, nonce, issued_at)
        return encode_b64(nonce + issued_at + mac)

    @staticmethod
    def validate_auth_challenge(
        pubkey_bytes: bytes,
        challenge_b64: str,
        now: int | None = None,
    ) -> str:
        """Validate a previously issued challenge.

        Returns:
            The server nonce (hex encoded) if validation succeeds.

        Raises:
            ValueError: If the challenge is malformed, forged, or expired.
        """
        challenge = decode_b64(challenge_b64)
        if len(challenge) != CHALLENGE_PAYLOAD_BYTES:
            raise ValueError("Invalid challenge payload size")

        nonce = challenge[:NONCE_BYTES]
        issued_at = challenge[NONCE_BYTES:NONCE_BYTES + TIMESTAMP_BYTES]
        supplied_mac = challenge[NONCE_BYTES + TIMESTAMP_BYTES:]

        expected_mac = CryptoService._mac(pubkey_bytes, nonce, issued_at)
        if not secrets.compare_digest(supplied_mac, expected_mac):
            raise ValueError("Challenge signature mismatch")

        (issued_ts,) = struct.unpack(">Q", issued_at)
        current = int(time.time() if now is None else now)
        if current - issued_ts > settings.challenge_ttl_seconds:
            raise ValueError("Challenge has expired")

        return nonce.hex()
