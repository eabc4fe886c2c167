"""changedetection.io API client.

Adapts the upstream REST API (https://changedetection.io/docs/api_v1/) to the
dashboard's watcher/change view model. Nothing is cached between calls; every
method hits the upstream service.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import ValidationError

from dashboard.config import Settings
from dashboard.core.metrics import (
    preview_failures_total,
    upstream_request_duration_seconds,
    upstream_requests_total,
)
from dashboard.schemas.changedetection import (
    ApiWatch,
    ChangeHistoryEntry,
    RemoteWatcherDetail,
    WatcherWithStats,
)

logger = logging.getLogger(__name__)


class ChangeDetectionAPIError(Exception):
    """Upstream returned a non-2xx response or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ChangeDetectionTimeoutError(ChangeDetectionAPIError):
    """Upstream did not answer within the configured timeout."""


def _from_epoch(ts: int | float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def _history_entry(timestamp: int) -> ChangeHistoryEntry:
    # Size deltas aren't exposed by the history endpoint
    return ChangeHistoryEntry(
        id=str(timestamp),
        created_at=_from_epoch(timestamp),
        timestamp=timestamp,
    )


def sort_by_recent_update(watchers: list[WatcherWithStats]) -> list[WatcherWithStats]:
    """Newest ``updated_at`` first; watchers never updated go last in input order."""
    updated = [w for w in watchers if w.updated_at is not None]
    never_updated = [w for w in watchers if w.updated_at is None]
    # sorted() stays stable with reverse=True, so equal timestamps keep input order
    updated = sorted(updated, key=lambda w: w.updated_at, reverse=True)
    return updated + never_updated


class ChangeDetectionClient:
    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 20.0,
        trigger_style: str = "recheck",
        preview_length: int = 300,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.trigger_style = trigger_style
        self.preview_length = preview_length

        if not api_key:
            logger.warning("CHANGEDETECTION_API_KEY is not set. API calls may fail.")

        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/api/v1",
            headers={"x-api-key": api_key},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "ChangeDetectionClient":
        return cls(
            base_url=settings.CHANGEDETECTION_URL,
            api_key=settings.CHANGEDETECTION_API_KEY,
            timeout=settings.CHANGEDETECTION_TIMEOUT,
            trigger_style=settings.TRIGGER_STYLE,
            preview_length=settings.PREVIEW_LENGTH,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ChangeDetectionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(
        self,
        operation: str,
        method: str,
        endpoint: str,
        params: dict | None = None,
    ) -> httpx.Response:
        start = time.perf_counter()
        try:
            response = await self._client.request(method, endpoint, params=params)
        except httpx.TimeoutException as e:
            upstream_requests_total.labels(operation=operation, status="timeout").inc()
            raise ChangeDetectionTimeoutError(
                f"API request timed out: {method} {endpoint}"
            ) from e
        except httpx.HTTPError as e:
            upstream_requests_total.labels(operation=operation, status="error").inc()
            raise ChangeDetectionAPIError(f"API request failed: {e}") from e
        finally:
            upstream_request_duration_seconds.labels(operation=operation).observe(
                time.perf_counter() - start
            )

        upstream_requests_total.labels(
            operation=operation, status=str(response.status_code)
        ).inc()

        if response.is_error:
            raise ChangeDetectionAPIError(
                f"API request failed: {response.status_code} "
                f"{response.reason_phrase} - {response.text}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json_object(response: httpx.Response) -> dict[str, Any]:
        """Decode a JSON object body; anything else is an upstream error."""
        try:
            data = response.json()
        except ValueError as e:
            raise ChangeDetectionAPIError(
                f"Invalid JSON from {response.request.url.path}: {e}",
            ) from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ChangeDetectionAPIError(
                f"Unexpected response from {response.request.url.path}: "
                f"expected an object, got {type(data).__name__}",
            )
        return data

    @staticmethod
    def _parse_watch(raw: Any, uuid: str) -> ApiWatch:
        try:
            return ApiWatch.model_validate(raw)
        except ValidationError as e:
            raise ChangeDetectionAPIError(f"Invalid watch record for {uuid}: {e}") from e

    # ------------------------------------------------------------------
    # Watchers
    # ------------------------------------------------------------------

    async def list_watchers(self) -> list[WatcherWithStats]:
        """All watches with change counts and pause state, most recently changed first.

        GET /watch lists every watch but omits the paused flag, so each
        summary is enriched with one detail request.
        """
        response = await self._request("list_watchers", "GET", "/watch")
        data = self._json_object(response)

        now = datetime.now(timezone.utc)
        summaries = []
        for uuid, raw in data.items():
            watch = self._parse_watch(raw, uuid)
            latest = _history_entry(watch.last_changed) if watch.last_changed else None
            summaries.append(
                WatcherWithStats(
                    id=uuid,
                    url=watch.url,
                    title=watch.title or watch.url,
                    created_at=_from_epoch(watch.date_created) if watch.date_created else now,
                    updated_at=_from_epoch(watch.last_changed) if watch.last_changed else None,
                    change_count=watch.history_n or 0,
                    latest_change=latest,
                )
            )

        summaries = await self.enrich_pause_state(summaries)
        return sort_by_recent_update(summaries)

    async def enrich_pause_state(
        self, summaries: list[WatcherWithStats]
    ) -> list[WatcherWithStats]:
        """Fill ``paused`` from each watch's detail record, one request per watch."""
        enriched = []
        for summary in summaries:
            paused = False
            try:
                detail = await self._get_watch(summary.id)
                paused = detail.paused is True
            except ChangeDetectionAPIError as e:
                logger.warning(f"Failed to fetch paused status for {summary.id}: {e.message}")
            enriched.append(summary.model_copy(update={"paused": paused}))
        return enriched

    async def _get_watch(self, uuid: str) -> ApiWatch:
        response = await self._request("get_watcher", "GET", f"/watch/{uuid}")
        return self._parse_watch(self._json_object(response), uuid)

    async def get_history(self, uuid: str) -> list[ChangeHistoryEntry]:
        """History timestamps of a watch, newest first."""
        response = await self._request("get_history", "GET", f"/watch/{uuid}/history")
        history = self._json_object(response)

        changes = []
        for key in history:
            try:
                timestamp = int(key)
            except (TypeError, ValueError):
                logger.warning(f"Skipping unparseable history key {key!r} for {uuid}")
                continue
            changes.append(_history_entry(timestamp))

        changes.sort(key=lambda c: c.timestamp, reverse=True)
        return changes

    async def get_watcher(self, uuid: str) -> RemoteWatcherDetail:
        """A watch plus its change history.

        A missing history is tolerated (the watch may never have been
        checked); a failure fetching the watch itself is raised.
        """
        watch = await self._get_watch(uuid)

        try:
            changes = await self.get_history(uuid)
        except ChangeDetectionAPIError as e:
            logger.warning(f"No history found for watcher {uuid}: {e.message}")
            changes = []

        now = datetime.now(timezone.utc)
        return RemoteWatcherDetail(
            id=uuid,
            url=watch.url,
            title=watch.title or watch.url,
            created_at=_from_epoch(watch.date_created) if watch.date_created else now,
            updated_at=_from_epoch(watch.last_changed) if watch.last_changed else now,
            paused=watch.paused is True,
            changes=changes,
        )

    async def delete_watcher(self, uuid: str) -> None:
        await self._request("delete_watcher", "DELETE", f"/watch/{uuid}")

    async def trigger_check(self, uuid: str) -> None:
        """Queue an immediate recheck of a watch."""
        if self.trigger_style == "trigger":
            await self._request("trigger_check", "GET", f"/watch/{uuid}/trigger")
        else:
            await self._request(
                "trigger_check", "GET", f"/watch/{uuid}", params={"recheck": "1"}
            )

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    async def get_snapshot(self, uuid: str, timestamp: str) -> str:
        response = await self._request(
            "get_snapshot", "GET", f"/watch/{uuid}/history/{timestamp}"
        )
        return response.text

    async def get_diff(self, uuid: str, timestamp: str) -> str:
        response = await self._request("get_diff", "GET", f"/diff/{uuid}/{timestamp}")
        return response.text

    async def get_preview(self, uuid: str) -> str | None:
        """Start of the newest snapshot, or None if there is none to show.

        Previews are decoration for the list view: a failed snapshot fetch is
        logged and reported as no preview.
        """
        watcher = await self.get_watcher(uuid)
        if not watcher.changes:
            logger.info(f"No changes for watcher {uuid} ({watcher.title})")
            return None

        latest = watcher.changes[0]
        try:
            snapshot = await self.get_snapshot(uuid, latest.id)
        except ChangeDetectionAPIError as e:
            preview_failures_total.inc()
            logger.error(f"Error fetching snapshot for {uuid}: {e.message}")
            return None

        return snapshot[: self.preview_length].strip()

    async def get_system_info(self) -> dict:
        response = await self._request("get_system_info", "GET", "/systeminfo")
        return self._json_object(response)
