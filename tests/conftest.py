"""Shared fixtures: a fake managed backend served through ``httpx.MockTransport``."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Backend settings must exist before application modules are imported.
os.environ.setdefault("SUPABASE_URL", "https://backend.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-test-key")
os.environ.setdefault("SESSION_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RETRY_DELAY_SECONDS", "0")
os.environ.pop("DATA_VAULT_MASTER_KEY", None)

from socialgram.clients.backend import BackendClient  # noqa: E402
from socialgram.database import Base  # noqa: E402
from socialgram.services.auth_store import AuthStore, MemoryStateStorage, SqlStateStorage  # noqa: E402

USER_ID = "11111111-1111-4111-8111-111111111111"
OTHER_ID = "22222222-2222-4222-8222-222222222222"
THIRD_ID = "33333333-3333-4333-8333-333333333333"
POST_ID = "44444444-4444-4444-8444-444444444444"
COMMENT_ID = "55555555-5555-4555-8555-555555555555"


def profile_row(user_id: str = USER_ID, username: str = "jane_doe", **extra: Any) -> dict[str, Any]:
    row = {
        "id": user_id,
        "username": username,
        "full_name": "Jane Doe",
        "bio": None,
        "avatar_url": None,
        "website": None,
        "is_private": False,
        "followers_count": 0,
        "following_count": 0,
        "posts_count": 0,
        "created_at": "2024-01-01T00:00:00+00:00",
        "updated_at": "2024-01-01T00:00:00+00:00",
    }
    row.update(extra)
    return row


def session_payload(
    user_id: str = USER_ID,
    *,
    access_token: str = "access-token",
    refresh_token: str = "refresh-token",
    expires_at: int | None = None,
    expires_in: int = 3600,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "expires_in": expires_in,
        "user": {"id": user_id, "email": "jane@example.com"},
    }
    if expires_at is not None:
        payload["expires_at"] = expires_at
    return payload


Responder = Callable[[httpx.Request], httpx.Response]


@dataclass
class FakeBackend:
    """Routes requests by ``(method, path)`` to queued responses and records every call."""

    routes: dict[tuple[str, str], list[Any]] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def add(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        *,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Queue a response; the last queued response for a route is repeated."""

        self.routes.setdefault((method, path), []).append((status_code, json_body, headers or {}))

    def add_responder(self, method: str, path: str, responder: Responder) -> None:
        self.routes.setdefault((method, path), []).append(responder)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": f"No fake route for {request.method} {request.url.path}"})
        entry = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(entry):
            return entry(request)
        status_code, body, headers = entry
        if body is None:
            return httpx.Response(status_code, headers=headers)
        return httpx.Response(status_code, json=body, headers=headers)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [item for item in self.requests if item.method == method and item.url.path == path]

    def last(self, method: str, path: str) -> httpx.Request:
        matching = self.calls(method, path)
        assert matching, f"no {method} {path} request was made"
        return matching[-1]


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def backend_client(fake_backend: FakeBackend) -> Iterator[BackendClient]:
    client = BackendClient(
        "https://backend.test",
        "anon-test-key",
        transport=httpx.MockTransport(fake_backend.handler),
    )
    yield client
    client.close()


@pytest.fixture
def session_factory() -> Iterator[sessionmaker]:
    """In-memory SQLite database shared by every session of a test."""

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def sql_storage(session_factory: sessionmaker) -> SqlStateStorage:
    return SqlStateStorage(session_factory=session_factory)


@pytest.fixture
def memory_storage() -> MemoryStateStorage:
    return MemoryStateStorage()


@pytest.fixture
def store(memory_storage: MemoryStateStorage) -> AuthStore:
    return AuthStore("auth-storage:test", memory_storage)
