"""Inbound change notifications from changedetection.io."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.core.database import get_db
from dashboard.core.exceptions import WebhookPayloadError
from dashboard.core.metrics import watchers_created_total, webhook_events_total
from dashboard.schemas.webhook import WebhookResponse
from dashboard.services.ingest import ingest_webhook, parse_webhook_body

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "",
    response_model=WebhookResponse,
    summary="Ingest a change notification",
    description="Receives one changedetection.io notification (optionally wrapped "
    "in a single-element array), creates the watcher on first sight of its URL "
    "and records a change event. Unauthenticated so the monitor can post to it.",
)
async def receive_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    body = await request.body()
    try:
        payload, raw = parse_webhook_body(body)
        result = await ingest_webhook(db, payload, raw)
    except WebhookPayloadError as e:
        webhook_events_total.labels(status="rejected").inc()
        logger.warning(f"Rejected webhook: {e.detail}")
        raise

    await db.commit()
    webhook_events_total.labels(status="accepted").inc()
    if result.watcher_created:
        watchers_created_total.inc()

    return WebhookResponse(
        success=True,
        watcher_id=result.watcher.id,
        change_id=result.change.id,
        watcher_created=result.watcher_created,
    )
