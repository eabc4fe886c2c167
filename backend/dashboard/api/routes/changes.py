from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.core.database import get_db
from dashboard.core.exceptions import NotFoundError
from dashboard.models.watcher import ChangeEvent
from dashboard.schemas.watcher import ChangeDetailResponse

router = APIRouter()


@router.get(
    "/{change_id}",
    response_model=ChangeDetailResponse,
    summary="Get change event",
    description="A single change event including its screenshot and the raw "
    "webhook body it was created from.",
)
async def get_change(change_id: int, db: AsyncSession = Depends(get_db)):
    change = await db.get(ChangeEvent, change_id)
    if not change:
        raise NotFoundError("Change not found")
    return ChangeDetailResponse.model_validate(change)
