"""Token and signature primitives for the identity front door."""
from __future__ import annotations

import base64
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from neon_ledger.core.settings import settings


def encode_b64(data: bytes) -> str:
    """Encode bytes as unpadded URL-safe base64."""
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def decode_b64(data: str) -> bytes:
    """Decode URL-safe base64, accepting omitted padding.

    Raises:
        ValueError: If ``data`` is not valid base64.
    """
    padding = "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(data + padding)
    except Exception as err:
        raise ValueError(f"Invalid base64 encoding: {err}") from err


def verify_signature(pubkey: bytes, message: bytes, signature: bytes) -> bool:
    """Verify an Ed25519 signature.

    Args:
        pubkey: Raw 32-byte public key.
        message: Exact bytes that were signed on the client.
        signature: Raw 64-byte signature.

    Returns:
        True if the signature is valid for `message` under `pubkey`; False otherwise.
    """
    try:
        VerifyKey(pubkey).verify(message, signature)
        return True
    except (BadSignatureError, ValueError, TypeError):
        return False


def create_access_token(subject: bytes | str, extra_claims: dict[str, str] | None = None) -> str:
    """Create a JWT access token for an authenticated identity."""
    sub = subject if isinstance(subject, str) else encode_b64(subject)
    to_encode: dict[str, object] = {"sub": sub}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> bytes:
    """Return the identity bytes carried by a token minted here.

    Raises:
        ValueError: If the token is malformed, expired, forged, or has no subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise ValueError("Could not validate credentials") from err

    subject = payload.get("sub")
    if not subject:
        raise ValueError("Could not validate credentials")
    return decode_b64(subject)
