"""Replay protection for login challenges.

Consumed challenge nonces are recorded in Redis under ``replay:<pubkey>:<nonce>``
with the challenge TTL, so every API worker sees the same set. A service built
without a client keeps the record in process memory; the test suite uses that.
"""

from __future__ import annotations

import logging
import time
from threading import Lock

import redis

from neon_ledger.core.settings import settings

logger = logging.getLogger(__name__)


class ReplayStoreUnavailable(RuntimeError):
    """Raised when the replay store cannot be reached."""


class ReplayProtectionService:
    """Service preventing reuse of login challenge nonces."""

    def __init__(self, client: redis.Redis | None = None) -> None:
        self._redis = client
        self._seen: dict[str, float] = {}
        self._lock = Lock()

    @staticmethod
    def _key(pubkey_hex: str, nonce_hex: str) -> str:
        return f"replay:{pubkey_hex}:{nonce_hex}"

    def is_replay(self, pubkey_hex: str, nonce_hex: str) -> bool:
        """Return True if the nonce has already been used by the caller."""
        key = self._key(pubkey_hex, nonce_hex)
        if self._redis is not None:
            try:
                return bool(self._redis.exists(key))
            except redis.RedisError as err:
                logger.error("Replay store lookup failed: %s", err)
                raise ReplayStoreUnavailable("Replay store unavailable") from err

        with self._lock:
            expires_at = self._seen.get(key)
            return expires_at is not None and expires_at > time.time()

    def register_replay(self, pubkey_hex: str, nonce_hex: str, ttl_seconds: int) -> bool:
        """Record a nonce as used.

        Returns False when the nonce was already recorded, so concurrent logins
        racing on one challenge see exactly one success.
        """
        key = self._key(pubkey_hex, nonce_hex)
        if self._redis is not None:
            if ttl_seconds <= 0:
                return True
            try:
                return bool(self._redis.set(key, "1", ex=ttl_seconds, nx=True))
            except redis.RedisError as err:
                logger.error("Replay store write failed: %s", err)
                raise ReplayStoreUnavailable("Replay store unavailable") from err

        now = time.time()
        with self._lock:
            for stale in [k for k, exp in self._seen.items() if exp <= now]:
                del self._seen[stale]
            if key in self._seen:
                return False
            self._seen[key] = now + ttl_seconds
            return True


_REPLAY_SERVICE: ReplayProtectionService | None = None
_SERVICE_LOCK = Lock()


def get_replay_service() -> ReplayProtectionService:
    """Return the shared Redis-backed replay protection service."""
    global _REPLAY_SERVICE
    with _SERVICE_LOCK:
        if _REPLAY_SERVICE is None:
            _REPLAY_SERVICE = ReplayProtectionService(redis.from_url(settings.redis_url))
        return _REPLAY_SERVICE
