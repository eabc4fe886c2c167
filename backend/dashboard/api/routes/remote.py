"""Watcher endpoints proxied to the changedetection.io API."""

import logging
import re

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from dashboard.api.deps import get_changedetection_client
from dashboard.core.exceptions import BadRequestError
from dashboard.schemas.base import ActionResponse
from dashboard.schemas.changedetection import (
    PreviewResponse,
    RemoteWatcherDetail,
    WatcherWithStats,
)
from dashboard.services.changedetection import ChangeDetectionClient

router = APIRouter()
logger = logging.getLogger(__name__)

_TIMESTAMP_RE = re.compile(r"[0-9]+|latest")


def _check_timestamp(timestamp: str) -> None:
    # History keys are epoch seconds; upstream also accepts "latest"
    if not _TIMESTAMP_RE.fullmatch(timestamp):
        raise BadRequestError(f"Invalid timestamp: {timestamp}")


@router.get(
    "/watchers",
    response_model=list[WatcherWithStats],
    summary="List watchers",
    description="All upstream watches with change counts and pause state. Watches "
    "with a recorded change come first, newest first; never-changed watches last.",
)
async def list_watchers(
    client: ChangeDetectionClient = Depends(get_changedetection_client),
):
    return await client.list_watchers()


@router.get(
    "/watchers/{watcher_id}",
    response_model=RemoteWatcherDetail,
    summary="Get watcher with change history",
)
async def get_watcher(
    watcher_id: str,
    client: ChangeDetectionClient = Depends(get_changedetection_client),
):
    return await client.get_watcher(watcher_id)


@router.get(
    "/watchers/{watcher_id}/preview",
    response_model=PreviewResponse,
    summary="Latest snapshot preview",
    description="First characters of the newest snapshot, for the list view. "
    "Returns a null preview when there is no history or the snapshot can't be fetched.",
)
async def get_preview(
    watcher_id: str,
    client: ChangeDetectionClient = Depends(get_changedetection_client),
):
    return PreviewResponse(preview=await client.get_preview(watcher_id))


@router.delete(
    "/watchers/{watcher_id}",
    response_model=ActionResponse,
    summary="Delete watcher",
)
async def delete_watcher(
    watcher_id: str,
    client: ChangeDetectionClient = Depends(get_changedetection_client),
):
    await client.delete_watcher(watcher_id)
    logger.info(f"Deleted upstream watcher {watcher_id}")
    return ActionResponse(success=True, message="Watcher deleted successfully")


@router.post(
    "/watchers/{watcher_id}/trigger",
    response_model=ActionResponse,
    summary="Trigger a recheck",
)
async def trigger_check(
    watcher_id: str,
    client: ChangeDetectionClient = Depends(get_changedetection_client),
):
    await client.trigger_check(watcher_id)
    return ActionResponse(success=True, message="Check triggered successfully")


@router.get("/snapshot/{watcher_id}/{timestamp}", summary="Snapshot content")
async def get_snapshot(
    watcher_id: str,
    timestamp: str,
    client: ChangeDetectionClient = Depends(get_changedetection_client),
):
    _check_timestamp(timestamp)
    snapshot = await client.get_snapshot(watcher_id, timestamp)
    return Response(content=snapshot, media_type="text/html")


@router.get("/diff/{watcher_id}/{timestamp}", summary="Diff content")
async def get_diff(
    watcher_id: str,
    timestamp: str,
    client: ChangeDetectionClient = Depends(get_changedetection_client),
):
    _check_timestamp(timestamp)
    diff = await client.get_diff(watcher_id, timestamp)
    return Response(content=diff, media_type="text/html")


@router.get("/systeminfo", summary="Upstream system info")
async def get_system_info(
    client: ChangeDetectionClient = Depends(get_changedetection_client),
):
    return await client.get_system_info()
