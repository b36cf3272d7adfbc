"""Identity and login Pydantic schemas."""

from pydantic import BaseModel, Field


class ChallengeRequest(BaseModel):
    """Request to obtain a login challenge."""

    pubkey: str = Field(..., description="Base64 or hex Ed25519 public key (32 bytes)")


class ChallengeResponse(BaseModel):
    """Challenge payload returned to clients before login."""

    signature_challenge: str = Field(..., description="Base64 challenge that must be signed")
    expires_in: int = Field(..., description="Seconds until the challenge expires")


class SignatureProof(BaseModel):
    """Proof that the client controls the submitted public key."""

    challenge: str = Field(..., description="Challenge string returned by /auth/challenge")
    signature: str = Field(..., description="Base64 Ed25519 signature over the challenge bytes")


class LoginRequest(BaseModel):
    """Schema for login submissions."""

    pubkey: str = Field(..., description="Base64 or hex Ed25519 public key (32 bytes)")
    proof: SignatureProof


class LoginResponse(BaseModel):
    """Response returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(..., description="Token type (typically 'bearer')")
    user_id: str = Field(..., description="URL-safe base64 BLAKE3 digest of the public key")
