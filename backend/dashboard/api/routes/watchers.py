"""Watcher endpoints backed by the local webhook store."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.core.database import get_db
from dashboard.core.exceptions import NotFoundError
from dashboard.models.watcher import ChangeEvent, Watcher
from dashboard.schemas.base import ActionResponse
from dashboard.schemas.watcher import (
    ChangeResponse,
    ChangeSummary,
    WatcherDetail,
    WatcherSummary,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "",
    response_model=list[WatcherSummary],
    summary="List watchers",
    description="All watchers, most recently updated first, each with its change "
    "count and latest change.",
)
async def list_watchers(db: AsyncSession = Depends(get_db)):
    stats = (
        select(
            ChangeEvent.watcher_id,
            func.count(ChangeEvent.id).label("change_count"),
            func.max(ChangeEvent.id).label("latest_id"),
        )
        .group_by(ChangeEvent.watcher_id)
        .subquery()
    )

    result = await db.execute(
        select(Watcher, stats.c.change_count, stats.c.latest_id)
        .outerjoin(stats, stats.c.watcher_id == Watcher.id)
        .order_by(Watcher.updated_at.desc(), Watcher.id.desc())
    )
    rows = result.all()

    latest_ids = [latest_id for _, _, latest_id in rows if latest_id is not None]
    latest_by_id = {}
    if latest_ids:
        change_result = await db.execute(
            select(ChangeEvent).where(ChangeEvent.id.in_(latest_ids))
        )
        latest_by_id = {c.id: c for c in change_result.scalars().all()}

    watchers = []
    for watcher, change_count, latest_id in rows:
        latest = latest_by_id.get(latest_id)
        watchers.append(
            WatcherSummary(
                id=watcher.id,
                url=watcher.url,
                title=watcher.title,
                watcher_uuid=watcher.watcher_uuid,
                created_at=watcher.created_at,
                updated_at=watcher.updated_at,
                change_count=change_count or 0,
                latest_change=ChangeSummary.model_validate(latest) if latest else None,
            )
        )
    return watchers


@router.get(
    "/{watcher_id}",
    response_model=WatcherDetail,
    summary="Get watcher with change history",
)
async def get_watcher(watcher_id: int, db: AsyncSession = Depends(get_db)):
    """Watcher detail plus all of its changes, newest first."""
    watcher = await db.get(Watcher, watcher_id)
    if not watcher:
        raise NotFoundError("Watcher not found")

    result = await db.execute(
        select(ChangeEvent)
        .where(ChangeEvent.watcher_id == watcher.id)
        .order_by(ChangeEvent.created_at.desc(), ChangeEvent.id.desc())
    )
    changes = result.scalars().all()

    return WatcherDetail(
        id=watcher.id,
        url=watcher.url,
        title=watcher.title,
        watcher_uuid=watcher.watcher_uuid,
        created_at=watcher.created_at,
        updated_at=watcher.updated_at,
        changes=[ChangeResponse.model_validate(c) for c in changes],
    )


@router.delete(
    "/{watcher_id}",
    response_model=ActionResponse,
    summary="Delete watcher",
)
async def delete_watcher(watcher_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a watcher and all of its change events."""
    watcher = await db.get(Watcher, watcher_id)
    if not watcher:
        raise NotFoundError("Watcher not found")

    deleted = await db.execute(
        delete(ChangeEvent).where(ChangeEvent.watcher_id == watcher.id)
    )
    await db.delete(watcher)
    await db.commit()

    logger.info(f"Deleted watcher {watcher_id} and {deleted.rowcount} change(s)")
    return ActionResponse(success=True, message="Watcher deleted successfully")
