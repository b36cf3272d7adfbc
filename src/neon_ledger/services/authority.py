# src/neon_ledger/services/authority.py
"""Ciphertext authority boundary.

The ledger never encrypts, decrypts, or inspects ciphertexts. It hands an
opaque input handle and its validity proof to a ``CiphertextAuthority``,
receives a reference it may store, and asks the authority to grant
decryption capability to itself and to the submitter.

``LocalCiphertextAuthority`` is a self-contained development adapter: it
keeps sealed values in process memory and signs input proofs with its own
Ed25519 key.

Sealed values and grants are not persisted. After a restart the ledger
still returns every stored handle, but the local authority no longer knows
them, so ``decrypt`` refuses each one. Handles stored by one worker are
likewise unknown to another. Production deployments plug in an authority
backed by durable storage.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Final, Protocol

import nacl.utils
from nacl.exceptions import BadSignatureError, CryptoError
from nacl.secret import SecretBox
from nacl.signing import SigningKey

from neon_ledger.core.settings import Settings, settings
from neon_ledger.utils.hash import blake3_digest

logger = logging.getLogger(__name__)

HANDLE_SIZE: Final[int] = 32
UINT32_MAX: Final[int] = 2**32 - 1


class AuthorityError(RuntimeError):
    """Raised for any rejected handle, proof, grant, or decryption request."""


@dataclass(frozen=True)
class CiphertextRef:
    """Reference to a verified ciphertext held by the authority."""

    handle: bytes


@dataclass(frozen=True)
class EncryptedInput:
    """Client-side encryption output: opaque handle plus validity proof."""

    handle: bytes
    proof: bytes


class CiphertextAuthority(Protocol):
    """Operations the ledger consumes from the ciphertext authority."""

    def construct_verified(
        self, handle: bytes, proof: bytes, *, submitter: bytes
    ) -> CiphertextRef:
        """Validate ``proof`` for ``handle`` and return a storable reference."""
        ...

    def authorize(self, ref: CiphertextRef, grantee: bytes) -> None:
        """Grant ``grantee`` decryption capability over ``ref``."""
        ...


class LocalCiphertextAuthority:
    """In-process authority sealing uint32 values with a secret box."""

    def __init__(
        self,
        signing_key: SigningKey | None = None,
        secret_key: bytes | None = None,
    ) -> None:
        self._signing_key = signing_key or SigningKey.generate()
        self._verify_key = self._signing_key.verify_key
        self._box = SecretBox(secret_key or nacl.utils.random(SecretBox.KEY_SIZE))
        self._ciphertexts: dict[bytes, bytes] = {}
        self._grants: dict[bytes, set[bytes]] = defaultdict(set)
        self._lock = Lock()

    @classmethod
    def from_settings(cls, config: Settings) -> LocalCiphertextAuthority:
        """Build an authority from hex-encoded key material in ``config``."""
        signing_key = (
            SigningKey(bytes.fromhex(config.authority_signing_seed))
            if config.authority_signing_seed
            else None
        )
        secret_key = (
            bytes.fromhex(config.authority_secret_key)
            if config.authority_secret_key
            else None
        )
        return cls(signing_key=signing_key, secret_key=secret_key)

    @property
    def verify_key_hex(self) -> str:
        """Return the public half of the input-verifier key."""
        return self._verify_key.encode().hex()

    def encrypt_input(self, value: int, submitter: bytes) -> EncryptedInput:
        """Seal ``value`` and produce a proof bound to ``submitter``.

        Raises:
            AuthorityError: If ``value`` does not fit in 32 unsigned bits.
        """
        if not 0 <= value <= UINT32_MAX:
            raise AuthorityError("Plaintext must be an unsigned 32-bit integer")

        sealed = bytes(self._box.encrypt(value.to_bytes(4, "big")))
        handle = blake3_digest(sealed)
        proof = self._signing_key.sign(handle + submitter).signature
        with self._lock:
            self._ciphertexts[handle] = sealed
        return EncryptedInput(handle=handle, proof=proof)

    def construct_verified(
        self, handle: bytes, proof: bytes, *, submitter: bytes
    ) -> CiphertextRef:
        """Check the input proof and that the handle refers to a known ciphertext."""
        if len(handle) != HANDLE_SIZE:
            raise AuthorityError("Malformed ciphertext handle")
        try:
            self._verify_key.verify(handle + submitter, proof)
        except (BadSignatureError, ValueError) as err:
            raise AuthorityError("Invalid input proof") from err

        with self._lock:
            if handle not in self._ciphertexts:
                raise AuthorityError("Unknown ciphertext handle")
        return CiphertextRef(handle=handle)

    def authorize(self, ref: CiphertextRef, grantee: bytes) -> None:
        with self._lock:
            if ref.handle not in self._ciphertexts:
                raise AuthorityError("Unknown ciphertext handle")
            self._grants[ref.handle].add(grantee)
        logger.debug("Granted %s access to ciphertext %s", grantee.hex(), ref.handle.hex())

    def is_allowed(self, ref: CiphertextRef, identity: bytes) -> bool:
        """Return True if ``identity`` holds a grant over ``ref``."""
        with self._lock:
            return identity in self._grants.get(ref.handle, set())

    def decrypt(self, ref: CiphertextRef, requester: bytes) -> int:
        """Return the plaintext behind ``ref`` for an authorized requester.

        Raises:
            AuthorityError: If the handle is unknown, the requester holds no
                grant, or the sealed value fails authentication.
        """
        with self._lock:
            sealed = self._ciphertexts.get(ref.handle)
            allowed = requester in self._grants.get(ref.handle, set())
        if sealed is None:
            raise AuthorityError("Unknown ciphertext handle")
        if not allowed:
            raise AuthorityError("Requester is not authorized for this ciphertext")
        try:
            plaintext = self._box.decrypt(sealed)
        except CryptoError as err:
            raise AuthorityError("Ciphertext failed authentication") from err
        return int.from_bytes(plaintext, "big")


_AUTHORITY: LocalCiphertextAuthority | None = None
_AUTHORITY_LOCK = Lock()


def get_local_authority() -> LocalCiphertextAuthority:
    """Return the process-wide local authority, creating it on first use."""
    global _AUTHORITY
    with _AUTHORITY_LOCK:
        if _AUTHORITY is None:
            _AUTHORITY = LocalCiphertextAuthority.from_settings(settings)
        return _AUTHORITY


def get_authority() -> CiphertextAuthority:
    """Return the authority the ledger should use."""
    return get_local_authority()
