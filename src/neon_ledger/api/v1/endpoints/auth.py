# src/neon_ledger/api/v1/endpoints/auth.py
"""Authentication endpoints for the Neon Ledger API."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from neon_ledger.api.v1.dependencies import SessionDep
from neon_ledger.core.security import (
    create_access_token,
    decode_b64,
    encode_b64,
    verify_signature,
)
from neon_ledger.core.settings import settings
from neon_ledger.db.time import utcnow
from neon_ledger.models import Identity
from neon_ledger.schemas.identity import (
    ChallengeRequest,
    ChallengeResponse,
    LoginRequest,
    LoginResponse,
)
from neon_ledger.services.crypto import CryptoService
from neon_ledger.services.replay import (
    ReplayProtectionService,
    ReplayStoreUnavailable,
    get_replay_service,
)
from neon_ledger.utils.hash import blake3_digest

router = APIRouter(prefix="/auth", tags=["authentication"])
crypto_service = CryptoService()
logger = logging.getLogger(__name__)


def get_replay_service_dep() -> ReplayProtectionService:
    return get_replay_service()


ReplayServiceDep = Annotated[ReplayProtectionService, Depends(get_replay_service_dep)]


def _decode_pubkey(pubkey: str) -> bytes:
    try:
        return crypto_service.validate_and_decode_pubkey(pubkey)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err


def _decode_field(field: str, data: str) -> bytes:
    try:
        return decode_b64(data)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid base64 encoding for {field}",
        ) from err


def _replay_check(check: Callable[..., bool], *args: object) -> bool:
    try:
        return check(*args)
    except ReplayStoreUnavailable as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Login is temporarily unavailable",
        ) from err


def _challenge_used() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Challenge has already been used",
    )


def _upsert_identity(db: Session, pubkey_bytes: bytes) -> Identity:
    """Return the identity for ``pubkey_bytes``, creating it on first login."""
    identity = db.query(Identity).filter(Identity.pubkey == pubkey_bytes).first()
    if identity is None:
        identity = Identity(user_id=blake3_digest(pubkey_bytes), pubkey=pubkey_bytes)
        db.add(identity)
        logger.info("New identity %s", identity.user_id_b64)
    else:
        identity.last_login_at = utcnow()
    return identity


@router.post(
    "/challenge",
    summary="Issue a signature challenge",
    response_model=ChallengeResponse,
)
def issue_challenge(payload: ChallengeRequest) -> ChallengeResponse:
    """Provide clients with a challenge to sign for login."""
    pubkey_bytes = _decode_pubkey(payload.pubkey)
    return ChallengeResponse(
        signature_challenge=crypto_service.issue_auth_challenge(pubkey_bytes),
        expires_in=settings.challenge_ttl_seconds,
    )


@router.post(
    "/login",
    summary="Authenticate with Ed25519 key",
    status_code=status.HTTP_200_OK,
    response_model=LoginResponse,
)
def login(
    payload: LoginRequest,
    db: SessionDep,
    replay_service: ReplayServiceDep,
) -> LoginResponse:
    """Authenticate by providing a signed challenge response.

    Unknown keys are enrolled on their first successful login.
    """
    pubkey_bytes = _decode_pubkey(payload.pubkey)
    pubkey_hex = pubkey_bytes.hex()

    try:
        nonce_hex = crypto_service.validate_auth_challenge(pubkey_bytes, payload.proof.challenge)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err

    if _replay_check(replay_service.is_replay, pubkey_hex, nonce_hex):
        raise _challenge_used()

    challenge_bytes = _decode_field("proof.challenge", payload.proof.challenge)
    signature_bytes = _decode_field("proof.signature", payload.proof.signature)

    if not verify_signature(pubkey_bytes, challenge_bytes, signature_bytes):
        logger.warning("Login rejected for %s: invalid signature", pubkey_hex)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed: invalid signature",
        )

    # Claim the nonce before enrolling; a lost race is a replay.
    if not _replay_check(
        replay_service.register_replay, pubkey_hex, nonce_hex, settings.challenge_ttl_seconds
    ):
        raise _challenge_used()

    identity = _upsert_identity(db, pubkey_bytes)
    db.commit()

    return LoginResponse(
        access_token=create_access_token(identity.user_id),
        token_type="bearer",
        user_id=encode_b64(identity.user_id),
    )
