# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from nacl.signing import SigningKey  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from neon_ledger.api.v1.dependencies import (  # noqa: E402
    get_authority_dep,
    get_local_authority_dep,
)
from neon_ledger.api.v1.endpoints.auth import get_replay_service_dep  # noqa: E402
from neon_ledger.core.security import create_access_token, encode_b64  # noqa: E402
from neon_ledger.db.session import Base  # noqa: E402
from neon_ledger.db.session import get_db as app_get_session  # noqa: E402
from neon_ledger.main import app as fastapi_app  # noqa: E402
from neon_ledger.models import Identity  # noqa: E402
from neon_ledger.services.authority import (  # noqa: E402
    AuthorityError,
    CiphertextRef,
    LocalCiphertextAuthority,
)
from neon_ledger.services.ledger import (  # noqa: E402
    CallerIdentity,
    MessageLedger,
    ledger_identity_for,
)
from neon_ledger.services.replay import ReplayProtectionService  # noqa: E402
from neon_ledger.utils.hash import blake3_digest  # noqa: E402

TEST_DB_URL = "sqlite://"
TEST_LEDGER_IDENTITY = ledger_identity_for("neon-ledger-test")


class StubAuthority:
    """Pass-through authority that accepts any handle and records grants."""

    def __init__(self) -> None:
        self.grants: list[tuple[bytes, bytes]] = []
        self.reject_inputs = False
        self.reject_grants = False

    def construct_verified(
        self, handle: bytes, proof: bytes, *, submitter: bytes
    ) -> CiphertextRef:
        if self.reject_inputs:
            raise AuthorityError("input rejected")
        return CiphertextRef(handle=handle)

    def authorize(self, ref: CiphertextRef, grantee: bytes) -> None:
        if self.reject_grants:
            raise AuthorityError("grant refused")
        self.grants.append((ref.handle, grantee))


class FakeClock:
    """Deterministic unix-seconds clock that advances by one on every read."""

    def __init__(self, start: int = 1_700_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        current = self.now
        self.now += 1
        return current


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # The ledger commits its own transactions, so wipe every table between tests.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def local_authority() -> LocalCiphertextAuthority:
    """Fresh in-process authority so grants never leak between tests."""
    return LocalCiphertextAuthority()


@pytest.fixture(autouse=True)
def override_authority_dependency(
    app: FastAPI, local_authority: LocalCiphertextAuthority
) -> Iterator[None]:
    app.dependency_overrides[get_authority_dep] = lambda: local_authority
    app.dependency_overrides[get_local_authority_dep] = lambda: local_authority
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_authority_dep, None)
        app.dependency_overrides.pop(get_local_authority_dep, None)


@pytest.fixture(autouse=True)
def override_replay_dependency(app: FastAPI) -> Iterator[ReplayProtectionService]:
    """Keep consumed nonces in memory so tests do not need a Redis server."""
    replay_service = ReplayProtectionService()
    app.dependency_overrides[get_replay_service_dep] = lambda: replay_service
    try:
        yield replay_service
    finally:
        app.dependency_overrides.pop(get_replay_service_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def stub_authority() -> StubAuthority:
    return StubAuthority()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def ledger_identity() -> bytes:
    return TEST_LEDGER_IDENTITY


@pytest.fixture()
def ledger(db_session: Session, stub_authority: StubAuthority, clock: FakeClock) -> MessageLedger:
    """Ledger wired to the pass-through authority for unit tests."""
    return MessageLedger(db_session, stub_authority, TEST_LEDGER_IDENTITY, clock=clock)


def _generate_identity() -> dict[str, Any]:
    signing_key = SigningKey.generate()
    pubkey_bytes = signing_key.verify_key.encode()
    user_id = blake3_digest(pubkey_bytes)
    return {
        "private_key": signing_key,
        "pubkey_bytes": pubkey_bytes,
        "pubkey_b64": encode_b64(pubkey_bytes),
        "user_id": user_id,
        "user_id_b64": encode_b64(user_id),
        "caller": CallerIdentity(user_id=user_id),
    }


@pytest.fixture()
def alice() -> dict[str, Any]:
    return _generate_identity()


@pytest.fixture()
def bob() -> dict[str, Any]:
    return _generate_identity()


@pytest.fixture()
def auth_headers_for(db_session: Session) -> Callable[[dict[str, Any]], dict[str, str]]:
    """Enrol an identity and return bearer headers for it."""

    def _headers(identity: dict[str, Any]) -> dict[str, str]:
        if db_session.get(Identity, identity["user_id"]) is None:
            db_session.add(
                Identity(user_id=identity["user_id"], pubkey=identity["pubkey_bytes"])
            )
            db_session.commit()
        token = create_access_token(identity["user_id"])
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def submit_message(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Seal a value through the authority endpoints and store it on the ledger."""

    def _submit(headers: dict[str, str], value: int = 7) -> dict[str, Any]:
        sealed = client.post("/api/v1/authority/inputs", json={"value": value}, headers=headers)
        assert sealed.status_code == 200, sealed.text
        sealed_body = sealed.json()
        created = client.post(
            "/api/v1/messages/",
            json={"content_handle": sealed_body["handle"], "proof": sealed_body["proof"]},
            headers=headers,
        )
        assert created.status_code == 201, created.text
        return {**created.json(), "handle": sealed_body["handle"]}

    return _submit
