"""Tests for login challenges, token handling and hashing helpers."""

from __future__ import annotations

import time
from unittest.mock import MagicMock

import pytest
import redis
from jose import jwt
from nacl.signing import SigningKey

from neon_ledger.core.security import (
    create_access_token,
    decode_access_token,
    decode_b64,
    encode_b64,
    verify_signature,
)
from neon_ledger.core.settings import settings
from neon_ledger.services.crypto import CHALLENGE_PAYLOAD_BYTES, CryptoService
from neon_ledger.services.replay import ReplayProtectionService, ReplayStoreUnavailable
from neon_ledger.utils.hash import blake3_digest, blake3_hexdigest, keyed_digest


def test_challenge_round_trip() -> None:
    pubkey = SigningKey.generate().verify_key.encode()
    challenge = CryptoService.issue_auth_challenge(pubkey)

    assert len(decode_b64(challenge)) == CHALLENGE_PAYLOAD_BYTES
    nonce_hex = CryptoService.validate_auth_challenge(pubkey, challenge)
    assert len(bytes.fromhex(nonce_hex)) == 16


def test_challenge_bound_to_pubkey() -> None:
    """A challenge issued for one key does not validate for another."""
    pubkey = SigningKey.generate().verify_key.encode()
    other = SigningKey.generate().verify_key.encode()
    challenge = CryptoService.issue_auth_challenge(pubkey)

    with pytest.raises(ValueError, match="mismatch"):
        CryptoService.validate_auth_challenge(other, challenge)


def test_challenge_expires() -> None:
    pubkey = SigningKey.generate().verify_key.encode()
    issued = int(time.time())
    challenge = CryptoService.issue_auth_challenge(pubkey, now=issued)

    later = issued + settings.challenge_ttl_seconds + 1
    with pytest.raises(ValueError, match="expired"):
        CryptoService.validate_auth_challenge(pubkey, challenge, now=later)


def test_challenge_rejects_wrong_size() -> None:
    pubkey = SigningKey.generate().verify_key.encode()
    with pytest.raises(ValueError, match="size"):
        CryptoService.validate_auth_challenge(pubkey, encode_b64(b"\x00" * 10))


def test_pubkey_accepts_base64_and_hex() -> None:
    pubkey = SigningKey.generate().verify_key.encode()

    assert CryptoService.validate_and_decode_pubkey(encode_b64(pubkey)) == pubkey
    assert CryptoService.validate_and_decode_pubkey(pubkey.hex()) == pubkey
    with pytest.raises(ValueError):
        CryptoService.validate_and_decode_pubkey(encode_b64(b"\x01" * 16))


def test_verify_signature() -> None:
    key = SigningKey.generate()
    pubkey = key.verify_key.encode()
    signature = key.sign(b"payload").signature

    assert verify_signature(pubkey, b"payload", signature)
    assert not verify_signature(pubkey, b"other", signature)
    assert not verify_signature(pubkey, b"payload", b"\x00" * 10)


def test_access_token_round_trip() -> None:
    user_id = blake3_digest(b"someone")
    token = create_access_token(user_id)

    assert decode_access_token(token) == user_id


def test_access_token_rejects_forgery() -> None:
    forged = jwt.encode({"sub": encode_b64(b"\x01" * 32)}, "wrong-key", algorithm="HS256")
    with pytest.raises(ValueError):
        decode_access_token(forged)
    with pytest.raises(ValueError):
        decode_access_token("not-a-token")


def test_replay_service_tracks_nonces() -> None:
    service = ReplayProtectionService()

    assert not service.is_replay("ab", "01")
    service.register_replay("ab", "01", ttl_seconds=60)
    assert service.is_replay("ab", "01")
    assert not service.is_replay("cd", "01")

    service.register_replay("ab", "02", ttl_seconds=0)
    assert not service.is_replay("ab", "02")


def test_hash_helpers() -> None:
    digest = blake3_digest(b"abc")

    assert len(digest) == 32
    assert blake3_hexdigest(b"abc") == digest.hex()
    assert keyed_digest(b"k", b"abc") != digest
    assert keyed_digest(b"k", b"abc") == keyed_digest(blake3_digest(b"k"), b"abc")


def test_replay_service_uses_redis_keys() -> None:
    """Nonces are checked and claimed in Redis with the challenge TTL."""
    redis_mock = MagicMock()
    service = ReplayProtectionService(redis_mock)

    redis_mock.exists.return_value = 0
    assert service.is_replay("ab", "01") is False
    redis_mock.exists.assert_called_with("replay:ab:01")

    redis_mock.set.return_value = True
    assert service.register_replay("ab", "01", ttl_seconds=60) is True
    redis_mock.set.assert_called_with("replay:ab:01", "1", ex=60, nx=True)

    redis_mock.exists.return_value = 1
    assert service.is_replay("ab", "01") is True

    # SET NX answers None when another worker already claimed the nonce.
    redis_mock.set.return_value = None
    assert service.register_replay("ab", "01", ttl_seconds=60) is False


def test_replay_service_surfaces_redis_outage() -> None:
    redis_mock = MagicMock()
    redis_mock.exists.side_effect = redis.ConnectionError("down")
    redis_mock.set.side_effect = redis.ConnectionError("down")
    service = ReplayProtectionService(redis_mock)

    with pytest.raises(ReplayStoreUnavailable):
        service.is_replay("ab", "01")
    with pytest.raises(ReplayStoreUnavailable):
        service.register_replay("ab", "01", ttl_seconds=60)


def test_memory_replay_service_claims_once() -> None:
    service = ReplayProtectionService()

    assert service.register_replay("ab", "03", ttl_seconds=60) is True
    assert service.register_replay("ab", "03", ttl_seconds=60) is False


def test_shared_replay_service_connects_to_configured_redis(monkeypatch) -> None:
    from neon_ledger.services import replay as replay_module

    calls: list[str] = []

    def fake_from_url(url: str) -> MagicMock:
        calls.append(url)
        return MagicMock()

    monkeypatch.setattr(replay_module, "_REPLAY_SERVICE", None)
    monkeypatch.setattr(replay_module.redis, "from_url", fake_from_url)
    monkeypatch.setattr(settings, "redis_url", "redis://cache.internal:6380/2")

    first = replay_module.get_replay_service()
    second = replay_module.get_replay_service()

    assert first is second
    assert calls == ["redis://cache.internal:6380/2"]
