from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from knowledgebase.core.config import Settings
from knowledgebase.core.deps import get_db, get_llm, get_settings
from knowledgebase.core.errors import KnowledgeBaseError
from knowledgebase.core.security import CurrentUser, get_current_user
from knowledgebase.llm.llm import GeminiClient
from knowledgebase.llm.prompt_template import PING_PROMPT
from knowledgebase.models.document import KnowledgeDocument
from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.api.debug")

router = APIRouter(prefix="/debug", tags=["debug"])

PREVIEW_CHARS = 200


@router.get("/status")
async def debug_status(
    settings: Settings = Depends(get_settings),
    llm: GeminiClient = Depends(get_llm),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Environment, Gemini and database checks for the current deployment."""
    checks = {
        "environment": {
            "hasGoogleAI": bool(settings.GOOGLE_API_KEY),
            "hasJwtSecret": bool(settings.JWT_SECRET_KEY),
            "databaseUrlScheme": settings.DATABASE_URL.split(":", 1)[0],
            "webSearchEnabled": settings.WEB_SEARCH_ENABLED,
        },
    }

    if llm.configured:
        try:
            reply = await llm.generate(PING_PROMPT)
            checks["googleAI"] = {"working": True, "response": reply[:100]}
        except KnowledgeBaseError as e:
            checks["googleAI"] = {"working": False, "error": e.message}
    else:
        checks["googleAI"] = {"working": False, "error": "API key not configured"}

    try:
        total = await db.scalar(select(func.count()).select_from(KnowledgeDocument))
        owned = await db.scalar(
            select(func.count()).select_from(KnowledgeDocument)
            .where(KnowledgeDocument.owner_id == current_user.id)
        )
        checks["database"] = {"working": True, "documentsCount": total, "userDocuments": owned}
    except SQLAlchemyError as e:
        logger.error("Database check failed", extra={"error": str(e)})
        checks["database"] = {"working": False, "error": str(e)}

    healthy = all(check.get("working") is not False and not check.get("error") for check in checks.values())
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "userId": current_user.id,
        "checks": checks,
        "overallHealth": "healthy" if healthy else "issues_detected",
    }


@router.get("/documents")
async def debug_documents(
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """The caller's documents with content previews; ownerless rows are counted separately."""
    result = await db.execute(
        select(KnowledgeDocument)
        .where(KnowledgeDocument.owner_id == current_user.id)
        .order_by(KnowledgeDocument.last_updated.desc())
        .limit(settings.DOCUMENT_PAGE_SIZE)
    )
    owned = list(result.scalars().all())
    total = await db.scalar(select(func.count()).select_from(KnowledgeDocument))
    ownerless = await db.scalar(
        select(func.count()).select_from(KnowledgeDocument)
        .where(KnowledgeDocument.owner_id.is_(None))
    )

    logger.debug("Debug documents listed", extra={"user_id": current_user.id, "count": len(owned)})

    documents = []
    for doc in owned:
        parsed = doc.parsed_content
        text = parsed.plain_text
        documents.append({
            "id": doc.id,
            "title": doc.title,
            "type": doc.type,
            "source": doc.source,
            "contentType": parsed.kind,
            "contentLength": len(doc.content or ""),
            "contentPreview": text[:PREVIEW_CHARS] + "..." if text else "No content",
            "hasFileData": parsed.kind == "pdf",
            "userId": doc.owner_id,
            "createdAt": doc.created_at.isoformat() if doc.created_at else None,
        })

    return {
        "totalDocuments": total,
        "userDocuments": len(owned),
        "ownerlessDocuments": ownerless,
        "currentUserId": current_user.id,
        "documents": documents,
    }
