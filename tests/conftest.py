"""Pytest configuration and shared fixtures.

Provides:
- ``backend/`` on ``sys.path`` so tests can import the ``momentful`` package
  regardless of how pytest is invoked
- An in-memory stand-in for the Supabase client (tables, storage, auth)
- Mock Replicate / Runway HTTP APIs via ``httpx.MockTransport``
- An async HTTP client bound to the FastAPI app
"""
import os
import sys
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, AsyncGenerator

import httpx
import pytest
import pytest_asyncio

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
BACKEND = os.path.join(ROOT, "backend")
if BACKEND not in sys.path:
    sys.path.insert(0, BACKEND)

# Set test environment variables before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_SECRET_KEY"] = "test-service-role-key"
os.environ["REPLICATE_API_TOKEN"] = "r8_test_token"
os.environ["RUNWAY_API_KEY"] = "rw_test_key"

from momentful import database
from momentful.services.providers import replicate, runway


# =============================================================================
# Supabase stand-in
# =============================================================================

class FakeQuery:
    """Chainable subset of the PostgREST query builder."""

    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.filters: list[tuple[str, Any]] = []
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None

    def select(self, *columns: str) -> "FakeQuery":
        self.op = "select"
        return self

    def insert(self, values: Any) -> "FakeQuery":
        self.op, self.payload = "insert", values
        return self

    def update(self, values: dict[str, Any]) -> "FakeQuery":
        self.op, self.payload = "update", values
        return self

    def delete(self) -> "FakeQuery":
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self) -> SimpleNamespace:
        if self.table in self.db.failing_tables:
            raise RuntimeError(f"relation {self.table} is unavailable")
        self.db.operations.append((self.table, self.op, self.payload, list(self.filters)))
        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = [self.db.new_row(item) for item in items]
            rows.extend(created)
            return SimpleNamespace(data=[dict(r) for r in created])

        if self.op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(dict(row))
            return SimpleNamespace(data=updated)

        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=removed)

        result = [dict(r) for r in rows if self._matches(r)]
        if self._order:
            column, desc = self._order
            result.sort(key=lambda r: r.get(column) or "", reverse=desc)
        if self._limit is not None:
            result = result[: self._limit]
        return SimpleNamespace(data=result)


class FakeBucketApi:
    def __init__(self, storage: "FakeStorage", bucket: str) -> None:
        self.storage = storage
        self.bucket = bucket

    def create_signed_url(self, path: str, expires_in: int) -> dict[str, str]:
        if self.storage.sign_error is not None:
            raise self.storage.sign_error
        self.storage.signed.append((self.bucket, path, expires_in))
        return {"signedURL": f"https://storage.test/{self.bucket}/{path}?token=signed&e={expires_in}"}

    def upload(self, path: str, content: bytes, file_options: dict[str, str] | None = None):
        if self.storage.upload_error is not None:
            raise self.storage.upload_error
        self.storage.objects[(self.bucket, path)] = (content, file_options or {})
        return SimpleNamespace(path=path)


class FakeStorage:
    def __init__(self) -> None:
        self.buckets: list[str] = []
        self.signed: list[tuple[str, str, int]] = []
        self.objects: dict[tuple[str, str], tuple[bytes, dict[str, str]]] = {}
        self.sign_error: Exception | None = None
        self.upload_error: Exception | None = None
        self.create_errors: dict[str, Exception] = {}

    def from_(self, bucket: str) -> FakeBucketApi:
        return FakeBucketApi(self, bucket)

    def list_buckets(self) -> list[SimpleNamespace]:
        return [SimpleNamespace(id=b, name=b) for b in self.buckets]

    def create_bucket(self, bucket_id: str, options: dict[str, Any] | None = None):
        if bucket_id in self.create_errors:
            raise self.create_errors[bucket_id]
        self.buckets.append(bucket_id)
        return {"name": bucket_id}


class FakeAuth:
    def __init__(self) -> None:
        self.tokens: dict[str, str] = {}

    def get_user(self, token: str) -> SimpleNamespace:
        if token not in self.tokens:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=self.tokens[token]))


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.failing_tables: set[str] = set()
        self.operations: list[tuple[str, str, Any, list]] = []
        self.storage = FakeStorage()
        self.auth = FakeAuth()
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def new_row(self, values: dict[str, Any]) -> dict[str, Any]:
        self._clock += timedelta(seconds=1)
        return {"id": uuid.uuid4().hex, "created_at": self._clock.isoformat(), **values}


@pytest.fixture
def supabase() -> FakeSupabase:
    """Install a fresh in-memory Supabase client for the duration of a test."""
    fake = FakeSupabase()
    database._client = fake
    yield fake
    database._client = None


# =============================================================================
# Provider HTTP mocks
# =============================================================================

class MockProviderApi:
    """Route table for an ``httpx.MockTransport``.

    Responses are keyed by ``(method, path)``; a list of responses for one key
    is consumed in order, with the last one repeated.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, status_code: int = 200, json: Any = None, **kwargs: Any) -> None:
        self.routes.setdefault((method, path), []).append(
            httpx.Response(status_code, json=json, **kwargs)
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"detail": "Not found"})
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def client(self, base_url: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler), base_url=base_url)


@pytest_asyncio.fixture
async def replicate_api() -> AsyncGenerator[MockProviderApi, None]:
    api = MockProviderApi()
    replicate._client = api.client("https://replicate.test")
    yield api
    await replicate.close_client()


@pytest_asyncio.fixture
async def runway_api() -> AsyncGenerator[MockProviderApi, None]:
    api = MockProviderApi()
    runway._client = api.client("https://runway.test")
    yield api
    await runway.close_client()


# =============================================================================
# App client
# =============================================================================

@pytest_asyncio.fixture
async def async_client(supabase: FakeSupabase) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Async HTTP client for the FastAPI app (lifespan is not run)."""
    from momentful.main import app

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers(supabase: FakeSupabase) -> dict[str, str]:
    supabase.auth.tokens["valid-token"] = "user-123"
    return {"Authorization": "Bearer valid-token"}
