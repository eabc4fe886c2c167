"""Schemas for inbound changedetection.io notifications."""

from pydantic import BaseModel, ConfigDict

from dashboard.schemas.base import CamelModel


class WebhookAttachment(BaseModel):
    model_config = ConfigDict(extra="allow")

    filename: str | None = None
    base64: str | None = None
    mimetype: str | None = None


class WebhookPayload(BaseModel):
    """Apprise JSON notification body sent by changedetection.io."""

    model_config = ConfigDict(extra="allow")

    version: str | None = None
    title: str | None = None
    message: str
    type: str | None = None
    attachments: list[WebhookAttachment] = []


class WebhookResponse(CamelModel):
    success: bool
    watcher_id: int
    change_id: int
    watcher_created: bool
