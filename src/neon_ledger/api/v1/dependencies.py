"""Shared API dependencies for authentication and the message ledger."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from neon_ledger.core.security import decode_access_token, decode_b64
from neon_ledger.core.settings import settings
from neon_ledger.db.session import get_db
from neon_ledger.models import Identity
from neon_ledger.services.authority import (
    CiphertextAuthority,
    LocalCiphertextAuthority,
    get_authority,
    get_local_authority,
)
from neon_ledger.services.errors import (
    AlreadyDeleted,
    AuthorityFailure,
    InvalidProof,
    LedgerError,
    NotFound,
    Unauthorized,
)
from neon_ledger.services.ledger import CallerIdentity, MessageLedger, ledger_identity_for

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_caller(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> CallerIdentity:
    """Resolve the authenticated caller from a JWT issued by /auth/login.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        Caller identity attributed to the request

    Raises:
        HTTPException: If the token is invalid or the identity is unknown
    """
    try:
        user_id = decode_access_token(credentials.credentials)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    identity = db.get(Identity, user_id)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Identity not found",
        )
    return CallerIdentity(user_id=identity.user_id)


def get_authority_dep() -> CiphertextAuthority:
    return get_authority()


def get_local_authority_dep() -> LocalCiphertextAuthority:
    return get_local_authority()


AuthorityDep = Annotated[CiphertextAuthority, Depends(get_authority_dep)]
LocalAuthorityDep = Annotated[LocalCiphertextAuthority, Depends(get_local_authority_dep)]


def get_ledger(db: SessionDep, authority: AuthorityDep) -> MessageLedger:
    """Build a ledger bound to the request's session."""
    return MessageLedger(db, authority, ledger_identity_for(settings.ledger_instance_id))


def parse_owner(owner: str) -> bytes:
    """Decode a URL-safe base64 identity from a path parameter."""
    try:
        decoded = decode_b64(owner)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid owner identity encoding",
        ) from err
    if len(decoded) != 32:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Owner identity must be 32 bytes",
        )
    return decoded


# Type aliases for common dependencies
CallerDep = Annotated[CallerIdentity, Depends(get_current_caller)]
LedgerDep = Annotated[MessageLedger, Depends(get_ledger)]
OwnerDep = Annotated[bytes, Depends(parse_owner)]


_LEDGER_ERROR_STATUS: dict[type[LedgerError], int] = {
    InvalidProof: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    Unauthorized: status.HTTP_403_FORBIDDEN,
    AlreadyDeleted: status.HTTP_409_CONFLICT,
    AuthorityFailure: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def ledger_http_error(err: LedgerError) -> HTTPException:
    """Translate a ledger error into the matching HTTP response."""
    status_code = _LEDGER_ERROR_STATUS.get(type(err), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=status_code, detail=str(err))
