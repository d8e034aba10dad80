from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from knowledgebase.core.deps import get_answer_generator, get_db, get_document_store, get_rate_limiter
from knowledgebase.core.errors import InvalidInput, UpstreamFailure
from knowledgebase.core.rate_limit import RateLimiter
from knowledgebase.core.security import CurrentUser, get_current_user
from knowledgebase.rag.pipeline import AnswerGenerator, AnswerTier, Failed
from knowledgebase.schemas.search_schema import (
    SearchHistoryItem,
    SearchHistoryResponse,
    SearchRequest,
    SearchResponse,
)
from knowledgebase.utils.chat_persistence import list_search_results, save_search_result
from knowledgebase.utils.document_store import DocumentStore
from knowledgebase.utils.logger import get_logger
from knowledgebase.utils.usage_tracker import record_query

logger = get_logger("knowledgebase.api.search")

router = APIRouter(prefix="/search", tags=["search"])


@router.post("", response_model=SearchResponse)
async def search(
    body: SearchRequest,
    store: DocumentStore = Depends(get_document_store),
    generator: AnswerGenerator = Depends(get_answer_generator),
    limiter: RateLimiter = Depends(get_rate_limiter),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Answer a question over the caller's documents.
    Falls back to web search, then keyword matching, when Gemini fails.
    """
    query = body.query.strip()
    if not query:
        raise InvalidInput("Missing query")

    limiter.check(current_user.id, "search", limit=30, window=60)

    documents = await store.list(current_user.id)
    logger.info("Search request received", extra={
        "user_id": current_user.id,
        "query": query[:100],
        "document_count": len(documents),
    })

    result = await generator.answer(query, documents, owner_name=current_user.name)
    if isinstance(result, Failed):
        logger.error("Search failed", extra={"user_id": current_user.id, "attempts": result.attempts})
        raise UpstreamFailure("Search failed")

    response = SearchResponse(
        answer=result.text,
        sources=result.sources,
        is_general_knowledge=result.is_general_knowledge,
        is_google_search=result.tier is AnswerTier.SECONDARY,
        tier=result.tier.value,
    )

    # Both best-effort: the answer is returned even if these fail
    await save_search_result(
        db,
        current_user.id,
        question=query,
        answer=result.text,
        sources=[s.model_dump(by_alias=True, exclude_none=True) for s in result.sources],
        tier=result.tier.value,
    )
    await record_query(db, current_user.id)

    return response


@router.get("/history", response_model=SearchHistoryResponse)
async def search_history(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    rows = await list_search_results(db, current_user.id, limit=limit)
    return SearchHistoryResponse(results=[
        SearchHistoryItem(
            id=row.id,
            question=row.question,
            answer=row.answer,
            sources=row.sources or [],
            tier=row.tier,
            timestamp=row.timestamp,
        )
        for row in rows
    ])
