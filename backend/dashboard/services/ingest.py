"""Webhook ingestion: turns a notification into watcher + change rows."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.core.exceptions import WebhookPayloadError
from dashboard.models.watcher import ChangeEvent, Watcher
from dashboard.schemas.webhook import WebhookPayload
from dashboard.services.message_parser import extract_fields

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    watcher: Watcher
    change: ChangeEvent
    watcher_created: bool


def parse_webhook_body(raw: bytes) -> tuple[WebhookPayload, Any]:
    """Decode a webhook request body into a payload model.

    Accepts a bare object, a single-element array wrapping it, and relay
    envelopes that carry the notification under ``body``. Returns the model
    and the unwrapped JSON it was built from.
    """
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise WebhookPayloadError(f"Invalid JSON body: {e}")

    if isinstance(data, list):
        if not data:
            raise WebhookPayloadError("Webhook payload array is empty")
        data = data[0]

    if isinstance(data, dict) and "message" not in data and isinstance(data.get("body"), dict):
        data = data["body"]

    if not isinstance(data, dict):
        raise WebhookPayloadError("Webhook payload must be a JSON object")

    try:
        payload = WebhookPayload.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise WebhookPayloadError(f"Invalid webhook payload: {fields}")

    return payload, data


async def ingest_webhook(
    db: AsyncSession, payload: WebhookPayload, raw: Any = None
) -> IngestResult:
    """Upsert the watcher named by the payload and append a change event."""
    fields = extract_fields(payload.message)

    watcher_key = fields.watch_url or (payload.title or "").strip()
    if not watcher_key:
        raise WebhookPayloadError("Could not determine watcher URL from webhook")

    result = await db.execute(select(Watcher).where(Watcher.url == watcher_key))
    watcher = result.scalar_one_or_none()
    created = watcher is None

    if created:
        watcher = Watcher(
            url=watcher_key,
            title=payload.title or watcher_key,
            watcher_uuid=fields.watcher_uuid,
        )
        db.add(watcher)
        try:
            await db.flush()
        except IntegrityError:
            # Another request created the same URL first
            await db.rollback()
            result = await db.execute(select(Watcher).where(Watcher.url == watcher_key))
            watcher = result.scalar_one_or_none()
            if watcher is None:
                raise
            created = False
            logger.info(f"Watcher for {watcher_key} was created concurrently, reusing it")
        else:
            logger.info(f"Created watcher for {watcher_key}")

    if not created:
        if not watcher.title and payload.title:
            watcher.title = payload.title
        if not watcher.watcher_uuid and fields.watcher_uuid:
            watcher.watcher_uuid = fields.watcher_uuid
        watcher.updated_at = datetime.now(timezone.utc)
        await db.flush()

    screenshot = next((a for a in payload.attachments if a.base64), None)

    change = ChangeEvent(
        watcher_id=watcher.id,
        title=payload.title or "",
        message=payload.message,
        watch_url=fields.watch_url,
        diff_url=fields.diff_url,
        edit_url=fields.edit_url,
        screenshot_base64=screenshot.base64 if screenshot else None,
        screenshot_mimetype=screenshot.mimetype if screenshot else None,
        change_type=payload.type,
        old_value=fields.old_value,
        new_value=fields.new_value,
        webhook_data=raw if raw is not None else payload.model_dump(),
    )
    db.add(change)
    await db.flush()

    logger.info(f"Recorded change {change.id} for watcher {watcher.id} ({watcher.url})")
    return IngestResult(watcher=watcher, change=change, watcher_created=created)
