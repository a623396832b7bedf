# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

ADMIN_EMAIL = "admin@example.com"
os.environ.setdefault("ADMIN_EMAILS", ADMIN_EMAIL)

from scooterbooter.core.errors import Unavailable
from scooterbooter.core.security import Identity, create_access_token
from scooterbooter.core.settings import Settings
from scooterbooter.db import GraphStore, build_engine, build_sessionmaker
from scooterbooter.db.session import Base
from scooterbooter.main import create_app
from scooterbooter.models import User
from scooterbooter.services.container import ServiceContainer
from scooterbooter.services.media import StoredObject
from scooterbooter.services.moderation import ModerationResult

import scooterbooter.db.models  # noqa: F401


class FakePushSender:
    """Collects push batches instead of calling the push endpoint."""

    def __init__(self) -> None:
        self.batches: list[list[dict[str, Any]]] = []
        self.fail = False

    async def send(self, messages: list[dict[str, Any]]) -> None:
        if self.fail:
            raise Unavailable("push endpoint down")
        self.batches.append(messages)

    @property
    def messages(self) -> list[dict[str, Any]]:
        return [message for batch in self.batches for message in batch]


class FakeMediaStore:
    def __init__(self) -> None:
        self.deleted: list[str] = []
        self.presigned: list[tuple[str, str]] = []

    async def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        self.presigned.append((key, content_type))
        return f"https://uploads.test/{key}?expires={expires_in}"

    async def delete(self, key: str) -> None:
        self.deleted.append(key)

    async def fetch(self, key: str) -> StoredObject:
        return StoredObject(body=b"\x89PNG", content_type="image/png")


class FakeClassifier:
    """Blocks any text containing a blocked word; can be switched to fail."""

    def __init__(self, blocked: tuple[str, ...] = ("forbidden",)) -> None:
        self.blocked = blocked
        self.calls: list[tuple[str | None, str | None]] = []
        self.fail = False

    async def classify(self, text: str | None, image_key: str | None) -> ModerationResult:
        self.calls.append((text, image_key))
        if self.fail:
            raise RuntimeError("classifier timeout")
        if text and any(word in text.lower() for word in self.blocked):
            return ModerationResult(safe=False, reason="Hate speech")
        return ModerationResult(safe=True)


class FakeIdentityProvider:
    def __init__(self) -> None:
        self.deleted: list[str] = []

    async def delete_user(self, username: str) -> None:
        self.deleted.append(username)


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite file with every subsystem on."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'graph.db'}",
        admin_emails_raw=ADMIN_EMAIL,
        store_timeout_seconds=5.0,
        moderation_enabled=True,
    )


@pytest.fixture()
def store(test_settings: Settings) -> Iterator[GraphStore]:
    sync_url = test_settings.database_url.replace("+aiosqlite", "")
    sync_engine = create_engine(sync_url)
    Base.metadata.create_all(bind=sync_engine)
    sync_engine.dispose()

    engine = build_engine(test_settings.database_url)
    yield GraphStore(build_sessionmaker(engine), timeout=test_settings.store_timeout_seconds)
    engine.sync_engine.dispose()


@pytest.fixture()
def push() -> FakePushSender:
    return FakePushSender()


@pytest.fixture()
def media_store() -> FakeMediaStore:
    return FakeMediaStore()


@pytest.fixture()
def classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture()
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture()
def container(
    store: GraphStore,
    test_settings: Settings,
    push: FakePushSender,
    media_store: FakeMediaStore,
    classifier: FakeClassifier,
    identity_provider: FakeIdentityProvider,
) -> ServiceContainer:
    return ServiceContainer(
        store,
        test_settings,
        push=push,
        media_store=media_store,
        classifier=classifier,
        identity_provider=identity_provider,
    )


@pytest.fixture()
def make_user(container: ServiceContainer) -> Callable[..., Any]:
    """Create a profile with a claimed handle; returns the stored user."""

    async def _make(handle: str, *, full_name: str | None = None, user_id: str | None = None) -> User:
        uid = user_id or f"user-{handle}"
        await container.identity.ensure_user(Identity(user_id=uid, email=f"{handle}@example.com", username=uid))
        await container.identity.claim_handle(uid, handle)
        if full_name:
            await container.identity.update_profile(uid, full_name=full_name)
        return await container.identity.require_user(uid)

    return _make


@pytest.fixture()
def app(container: ServiceContainer) -> FastAPI:
    return create_app(container)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build bearer headers for an arbitrary user id."""

    def _headers(user_id: str, email: str | None = None) -> dict[str, str]:
        token = create_access_token(user_id, email=email or f"{user_id}@example.com")
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def register(client: TestClient, auth_headers: Callable[..., dict[str, str]]) -> Callable[..., dict[str, str]]:
    """Authenticate a new user through the API and claim a handle; returns headers."""

    def _register(handle: str, *, email: str | None = None) -> dict[str, str]:
        headers = auth_headers(f"user-{handle}", email)
        response = client.post("/username", json={"handle": handle}, headers=headers)
        assert response.status_code == 200, response.text
        return headers

    return _register
