from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from knowledgebase.models.document import KnowledgeDocument, utcnow
from knowledgebase.models.usage import UsageStats
from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.utils.usage_tracker")


async def get_usage_stats(db: AsyncSession, owner_id: str) -> Optional[UsageStats]:
    result = await db.execute(select(UsageStats).where(UsageStats.owner_id == owner_id))
    return result.scalar_one_or_none()


async def upsert_usage_stats(db: AsyncSession, owner_id: str, **fields) -> UsageStats:
    """Create-or-update the owner's counters; ``None`` values leave a counter untouched."""
    stats = await get_usage_stats(db, owner_id)
    if stats is None:
        stats = UsageStats(
            owner_id=owner_id,
            total_documents=0,
            total_files=0,
            total_links=0,
            queries_this_month=0,
        )
        db.add(stats)

    now = utcnow()
    if fields.get("queries_this_month") is not None:
        fields.setdefault("queries_month", now.strftime("%Y-%m"))
    for key, value in fields.items():
        if value is not None:
            setattr(stats, key, value)
    stats.last_updated = now

    await db.commit()
    await db.refresh(stats)
    return stats


async def refresh_document_counts(db: AsyncSession, owner_id: str) -> None:
    """Recount the owner's documents after a create/delete. Best-effort."""
    try:
        result = await db.execute(
            select(KnowledgeDocument.type, func.count())
            .where(KnowledgeDocument.owner_id == owner_id)
            .group_by(KnowledgeDocument.type)
        )
        counts = dict(result.all())
        await upsert_usage_stats(
            db,
            owner_id,
            total_documents=sum(counts.values()),
            total_files=counts.get("file", 0),
            total_links=counts.get("web", 0),
        )
    except Exception as e:
        await db.rollback()
        logger.warning("Failed to refresh document counts", extra={"user_id": owner_id, "error": str(e)})


async def record_query(db: AsyncSession, owner_id: str) -> None:
    """Bump queries_this_month, restarting the count when the month changes. Best-effort."""
    try:
        stats = await get_usage_stats(db, owner_id)
        month = utcnow().strftime("%Y-%m")
        queries = 1
        if stats is not None and stats.queries_month == month:
            queries = (stats.queries_this_month or 0) + 1
        await upsert_usage_stats(db, owner_id, queries_this_month=queries)
    except Exception as e:
        await db.rollback()
        logger.warning("Failed to record query usage", extra={"user_id": owner_id, "error": str(e)})
