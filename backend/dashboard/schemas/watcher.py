"""Schemas for the local webhook store (watchers and their change events)."""

from datetime import datetime
from typing import Any

from dashboard.schemas.base import CamelModel


class ChangeSummary(CamelModel):
    """Change event without the screenshot or raw payload."""

    id: int
    watcher_id: int
    title: str
    message: str
    watch_url: str | None = None
    diff_url: str | None = None
    edit_url: str | None = None
    change_type: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    created_at: datetime


class ChangeResponse(ChangeSummary):
    """Full change event as shown in the history view."""

    screenshot_base64: str | None = None
    screenshot_mimetype: str | None = None


class ChangeDetailResponse(ChangeResponse):
    webhook_data: Any = None


class WatcherSummary(CamelModel):
    id: int
    url: str
    title: str | None = None
    watcher_uuid: str | None = None
    created_at: datetime
    updated_at: datetime
    change_count: int = 0
    latest_change: ChangeSummary | None = None


class WatcherDetail(CamelModel):
    id: int
    url: str
    title: str | None = None
    watcher_uuid: str | None = None
    created_at: datetime
    updated_at: datetime
    changes: list[ChangeResponse]
