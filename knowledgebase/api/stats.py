from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from knowledgebase.core.deps import get_db
from knowledgebase.core.security import CurrentUser, get_current_user
from knowledgebase.schemas.usage_schema import UsageStatsResponse, UsageStatsUpdate
from knowledgebase.utils.logger import get_logger
from knowledgebase.utils.usage_tracker import get_usage_stats, upsert_usage_stats

logger = get_logger("knowledgebase.api.stats")

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=UsageStatsResponse)
async def read_stats(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    stats = await get_usage_stats(db, current_user.id)
    if stats is None:
        return UsageStatsResponse()
    return UsageStatsResponse.model_validate(stats)


@router.post("", response_model=UsageStatsResponse)
async def update_stats(
    body: UsageStatsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    stats = await upsert_usage_stats(db, current_user.id, **body.model_dump())
    logger.info("Usage stats updated", extra={"user_id": current_user.id})
    return UsageStatsResponse.model_validate(stats)
