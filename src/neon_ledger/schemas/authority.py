"""Schemas for the local ciphertext authority endpoints."""

from pydantic import BaseModel, Field

from neon_ledger.services.authority import UINT32_MAX


class EncryptInputRequest(BaseModel):
    """Plaintext to seal for the authenticated caller."""

    value: int = Field(..., ge=0, le=UINT32_MAX, description="Unsigned 32-bit plaintext")


class EncryptInputResponse(BaseModel):
    """Handle and proof to pass to message submission."""

    handle: str = Field(..., description="Hex-encoded 32-byte ciphertext handle")
    proof: str = Field(..., description="Hex-encoded validity proof bound to the caller")


class DecryptRequest(BaseModel):
    """Handle the caller wants decrypted."""

    handle: str = Field(..., description="Hex-encoded ciphertext handle")


class DecryptResponse(BaseModel):
    """Decrypted plaintext."""

    handle: str
    value: int
