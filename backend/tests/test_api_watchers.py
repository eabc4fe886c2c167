"""Integration tests for /api/watchers and /api/changes (local mode)."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from dashboard.models.watcher import ChangeEvent, Watcher


def _message(url: str, new: str = "New: $1") -> str:
    return f"<del>Old: $2</del>\n**{new}**\n[[Watch URL]({url})]"


async def _post(client: AsyncClient, url: str, new: str = "New: $1") -> dict:
    resp = await client.post("/api/webhook", json={"title": url, "message": _message(url, new)})
    assert resp.status_code == 200
    return resp.json()


class TestListWatchers:
    @pytest.mark.asyncio
    async def test_list_empty(self, client: AsyncClient):
        resp = await client.get("/api/watchers")
        assert resp.status_code == 200
        assert resp.json() == []

    @pytest.mark.asyncio
    async def test_list_includes_count_and_latest_change(self, client: AsyncClient):
        await _post(client, "https://a.example", new="first")
        last = await _post(client, "https://a.example", new="second")

        resp = await client.get("/api/watchers")
        watchers = resp.json()

        assert len(watchers) == 1
        watcher = watchers[0]
        assert watcher["url"] == "https://a.example"
        assert watcher["changeCount"] == 2
        assert watcher["latestChange"]["id"] == last["changeId"]
        assert watcher["latestChange"]["newValue"] == "second"
        # Listing stays light
        assert "screenshotBase64" not in watcher["latestChange"]

    @pytest.mark.asyncio
    async def test_list_most_recently_updated_first(self, client: AsyncClient, session_factory):
        now = datetime.now(timezone.utc)
        async with session_factory() as session:
            session.add_all(
                [
                    Watcher(url="https://old.example", title="old", updated_at=now - timedelta(days=2)),
                    Watcher(url="https://new.example", title="new", updated_at=now),
                    Watcher(url="https://mid.example", title="mid", updated_at=now - timedelta(days=1)),
                ]
            )
            await session.commit()

        resp = await client.get("/api/watchers")
        titles = [w["title"] for w in resp.json()]
        assert titles == ["new", "mid", "old"]
        assert all(w["changeCount"] == 0 and w["latestChange"] is None for w in resp.json())


class TestGetWatcher:
    @pytest.mark.asyncio
    async def test_changes_newest_first(self, client: AsyncClient):
        first = await _post(client, "https://a.example", new="one")
        second = await _post(client, "https://a.example", new="two")

        resp = await client.get(f"/api/watchers/{first['watcherId']}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["url"] == "https://a.example"
        assert [c["id"] for c in data["changes"]] == [second["changeId"], first["changeId"]]
        assert data["changes"][0]["watchUrl"] == "https://a.example"

    @pytest.mark.asyncio
    async def test_not_found(self, client: AsyncClient):
        resp = await client.get("/api/watchers/999")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Watcher not found"}

    @pytest.mark.asyncio
    async def test_non_numeric_id(self, client: AsyncClient):
        resp = await client.get("/api/watchers/not-a-number")
        assert resp.status_code == 422
        assert "error" in resp.json()


class TestDeleteWatcher:
    @pytest.mark.asyncio
    async def test_delete_cascades_to_changes(self, client: AsyncClient, session_factory):
        created = await _post(client, "https://a.example")
        await _post(client, "https://a.example")
        other = await _post(client, "https://b.example")

        resp = await client.delete(f"/api/watchers/{created['watcherId']}")
        assert resp.status_code == 200
        assert resp.json()["success"] is True

        async with session_factory() as session:
            remaining = await session.execute(
                select(func.count())
                .select_from(ChangeEvent)
                .where(ChangeEvent.watcher_id == created["watcherId"])
            )
            assert remaining.scalar() == 0
            assert await session.get(ChangeEvent, other["changeId"]) is not None

        assert (await client.get(f"/api/watchers/{created['watcherId']}")).status_code == 404
        assert (await client.get(f"/api/changes/{created['changeId']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_missing(self, client: AsyncClient):
        resp = await client.delete("/api/watchers/12345")
        assert resp.status_code == 404


class TestGetChange:
    @pytest.mark.asyncio
    async def test_change_detail(self, client: AsyncClient):
        created = await _post(client, "https://a.example", new="New: $5")

        resp = await client.get(f"/api/changes/{created['changeId']}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["watcherId"] == created["watcherId"]
        assert data["oldValue"] == "Old: $2"
        assert data["newValue"] == "New: $5"
        assert data["webhookData"]["title"] == "https://a.example"

    @pytest.mark.asyncio
    async def test_change_not_found(self, client: AsyncClient):
        resp = await client.get("/api/changes/42")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Change not found"}


class TestLocalModeRoutes:
    @pytest.mark.asyncio
    async def test_proxy_only_routes_absent(self, client: AsyncClient):
        resp = await client.get("/api/systeminfo")
        assert resp.status_code == 404
        assert "error" in resp.json()
