# src/neon_ledger/api/v1/endpoints/authority.py
"""Client-side helpers backed by the local ciphertext authority.

These stand in for the client encryption library and the decryption
gateway when the ledger runs against ``LocalCiphertextAuthority``. They are
not part of the ledger itself and can be switched off with
``AUTHORITY_ENDPOINTS_ENABLED=false``.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from neon_ledger.api.v1.dependencies import CallerDep, LocalAuthorityDep
from neon_ledger.core.settings import settings
from neon_ledger.schemas.authority import (
    DecryptRequest,
    DecryptResponse,
    EncryptInputRequest,
    EncryptInputResponse,
)
from neon_ledger.services.authority import AuthorityError, CiphertextRef

logger = logging.getLogger(__name__)


def require_authority_endpoints() -> None:
    if not settings.authority_endpoints_enabled:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Authority endpoints are disabled",
        )


router = APIRouter(
    prefix="/authority",
    tags=["authority"],
    dependencies=[Depends(require_authority_endpoints)],
)


@router.post("/inputs", response_model=EncryptInputResponse)
def encrypt_input(
    payload: EncryptInputRequest,
    caller: CallerDep,
    authority: LocalAuthorityDep,
) -> EncryptInputResponse:
    """Seal a plaintext and return a handle/proof bound to the caller."""
    try:
        sealed = authority.encrypt_input(payload.value, caller.user_id)
    except AuthorityError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err
    return EncryptInputResponse(handle=sealed.handle.hex(), proof=sealed.proof.hex())


@router.post("/decrypt", response_model=DecryptResponse)
def decrypt(
    payload: DecryptRequest,
    caller: CallerDep,
    authority: LocalAuthorityDep,
) -> DecryptResponse:
    """Decrypt a stored handle for a caller holding a grant over it."""
    try:
        handle = bytes.fromhex(payload.handle)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid hex encoding for handle",
        ) from err

    try:
        value = authority.decrypt(CiphertextRef(handle=handle), caller.user_id)
    except AuthorityError as err:
        logger.warning("Decrypt refused for %s: %s", caller.user_id_b64, err)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(err),
        ) from err
    return DecryptResponse(handle=handle.hex(), value=value)
