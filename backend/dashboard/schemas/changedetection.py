"""Schemas for the changedetection.io API and the proxy-mode view model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from dashboard.schemas.base import CamelModel


class ApiWatch(BaseModel):
    """A watch as returned by ``GET /api/v1/watch`` or ``/watch/{uuid}``."""

    model_config = ConfigDict(extra="allow")

    uuid: str | None = None
    url: str = ""
    title: str | None = None
    last_changed: int | None = None
    last_checked: int | None = None
    history_n: int | None = None  # number of history entries
    viewed: bool | None = None
    paused: bool | None = None
    date_created: float | None = None


class ChangeHistoryEntry(CamelModel):
    """One history timestamp of a watch; ``id`` is the timestamp string."""

    id: str
    created_at: datetime
    timestamp: int
    size_total: int = Field(0, alias="size_total")
    size_removed: int = Field(0, alias="size_removed")
    size_added: int = Field(0, alias="size_added")


class WatcherWithStats(CamelModel):
    id: str
    url: str
    title: str
    created_at: datetime
    # None when the watch has never recorded a change
    updated_at: datetime | None = None
    change_count: int = 0
    latest_change: ChangeHistoryEntry | None = None
    paused: bool = False


class RemoteWatcherDetail(CamelModel):
    id: str
    url: str
    title: str
    created_at: datetime
    updated_at: datetime
    paused: bool = False
    changes: list[ChangeHistoryEntry]


class PreviewResponse(BaseModel):
    preview: str | None = None
