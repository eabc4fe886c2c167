"""Shared fixtures: app factories for both data modes and a fake changedetection.io."""

import json

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from dashboard.config import Settings
from dashboard.core.database import Base, enable_sqlite_foreign_keys, get_db
from dashboard.main import create_app
from dashboard.services.changedetection import ChangeDetectionClient

UPSTREAM_URL = "http://changedetection.test"
API_KEY = "test-api-key"

WATCH_A = "aaaaaaaa-0000-4000-8000-000000000001"
WATCH_B = "bbbbbbbb-0000-4000-8000-000000000002"
WATCH_C = "cccccccc-0000-4000-8000-000000000003"


def make_settings(**overrides) -> Settings:
    values = {
        "SECRET_KEY": "test-secret-key",
        "LOG_FORMAT": "text",
        "LOG_LEVEL": "WARNING",
        "CHANGEDETECTION_URL": UPSTREAM_URL,
        "CHANGEDETECTION_API_KEY": API_KEY,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeChangeDetection:
    """In-memory stand-in for the changedetection.io /api/v1 endpoints."""

    def __init__(self):
        self.watches: dict[str, dict] = {}
        self.history: dict[str, dict[str, str]] = {}
        self.snapshots: dict[tuple[str, str], str] = {}
        self.diffs: dict[tuple[str, str], str] = {}
        self.failing_paths: set[str] = set()
        self.timeout_paths: set[str] = set()
        # endpoint -> body served with a 200, bypassing the normal routes
        self.raw_bodies: dict[str, str] = {}
        self.requests: list[httpx.Request] = []

    def add_watch(self, uuid, url, title=None, last_changed=None, paused=False, history=None):
        self.watches[uuid] = {
            "uuid": uuid,
            "url": url,
            "title": title,
            "last_changed": last_changed,
            "last_checked": last_changed,
            "history_n": len(history or {}),
            "viewed": True,
            "paused": paused,
        }
        self.history[uuid] = {str(ts): f"/datastore/{uuid}/{ts}.txt" for ts in (history or [])}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        assert path.startswith("/api/v1/")
        endpoint = path[len("/api/v1"):]

        if endpoint in self.timeout_paths:
            raise httpx.ReadTimeout("timed out", request=request)
        if endpoint in self.failing_paths:
            return httpx.Response(500, text="Internal error")
        if endpoint in self.raw_bodies:
            return httpx.Response(200, text=self.raw_bodies[endpoint])

        parts = endpoint.strip("/").split("/")

        if parts == ["systeminfo"]:
            return httpx.Response(200, json={"watch_count": len(self.watches), "version": "0.47.06"})

        if parts == ["watch"] and request.method == "GET":
            listing = {}
            for uuid, watch in self.watches.items():
                # The listing never includes the paused flag
                listing[uuid] = {k: v for k, v in watch.items() if k not in ("paused", "uuid")}
            return httpx.Response(200, json=listing)

        if parts[0] == "diff" and len(parts) == 3:
            diff = self.diffs.get((parts[1], parts[2]))
            if diff is None:
                return httpx.Response(404, text="No diff")
            return httpx.Response(200, text=diff)

        if parts[0] == "watch" and len(parts) >= 2:
            uuid = parts[1]
            if uuid not in self.watches:
                return httpx.Response(404, text="Watch not found")

            if len(parts) == 2 and request.method == "DELETE":
                del self.watches[uuid]
                return httpx.Response(200, text="DELETED")
            if len(parts) == 2:
                if request.url.params.get("recheck"):
                    return httpx.Response(200, text="OK")
                return httpx.Response(200, json=self.watches[uuid])
            if parts[2:] == ["trigger"]:
                return httpx.Response(200, text="OK")
            if parts[2:] == ["history"]:
                return httpx.Response(200, json=self.history.get(uuid, {}))
            if len(parts) == 4 and parts[2] == "history":
                snapshot = self.snapshots.get((uuid, parts[3]))
                if snapshot is None:
                    return httpx.Response(404, text="No snapshot")
                return httpx.Response(200, text=snapshot)

        return httpx.Response(404, text=json.dumps({"message": "not found"}))


# ---------------------------------------------------------------------------
# Local mode
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def local_settings():
    return make_settings(DATA_MODE="local")


@pytest.fixture
def local_app(local_settings, session_factory):
    app = create_app(local_settings)

    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    return app


@pytest_asyncio.fixture
async def client(local_app):
    async with AsyncClient(transport=ASGITransport(app=local_app), base_url="http://test") as c:
        yield c


# ---------------------------------------------------------------------------
# Proxy mode
# ---------------------------------------------------------------------------


@pytest.fixture
def upstream():
    return FakeChangeDetection()


@pytest_asyncio.fixture
async def cd_client(upstream):
    client = ChangeDetectionClient(
        base_url=UPSTREAM_URL,
        api_key=API_KEY,
        timeout=5.0,
        transport=httpx.MockTransport(upstream.handler),
    )
    yield client
    await client.close()


@pytest.fixture
def proxy_settings():
    return make_settings(DATA_MODE="proxy")


@pytest.fixture
def proxy_app(proxy_settings, cd_client):
    app = create_app(proxy_settings)
    app.state.changedetection_client = cd_client
    return app


@pytest_asyncio.fixture
async def proxy_client(proxy_app):
    async with AsyncClient(transport=ASGITransport(app=proxy_app), base_url="http://test") as c:
        yield c
