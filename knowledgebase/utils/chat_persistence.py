import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from knowledgebase.models.conversation import Conversation
from knowledgebase.models.document import utcnow
from knowledgebase.models.search_result import SearchResult
from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.utils.chat_persistence")


async def save_conversation_turn(
    db: AsyncSession,
    owner_id: str,
    conversation_id: Optional[str],
    user_message: str,
    assistant_response: str,
) -> Conversation:
    """
    Save one user/assistant exchange as a conversation row.

    A missing ``conversation_id`` starts a new conversation. Rolls back and
    re-raises on failure so the route can report it.
    """
    now = utcnow()
    conversation_id = conversation_id or uuid.uuid4().hex
    row = Conversation(
        conversation_id=conversation_id,
        owner_id=owner_id,
        messages=[
            {"role": "user", "content": user_message, "timestamp": now.isoformat()},
            {"role": "assistant", "content": assistant_response, "timestamp": now.isoformat()},
        ],
        query=user_message,
        response=assistant_response,
        last_updated=now,
    )
    try:
        db.add(row)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error("Failed to save conversation turn", extra={
            "user_id": owner_id,
            "conversation_id": conversation_id,
            "error": str(e),
        })
        raise

    logger.info("Conversation turn saved", extra={
        "user_id": owner_id,
        "conversation_id": conversation_id,
        "user_msg_len": len(user_message),
        "assistant_msg_len": len(assistant_response),
    })
    return row


async def load_conversation_messages(db: AsyncSession, owner_id: str, conversation_id: str) -> List[dict]:
    result = await db.execute(
        select(Conversation)
        .where(Conversation.conversation_id == conversation_id, Conversation.owner_id == owner_id)
        .order_by(Conversation.last_updated)
        .limit(50)
    )
    messages = [m for row in result.scalars().all() for m in (row.messages or [])]
    return sorted(messages, key=lambda m: m.get("timestamp") or "")


async def list_conversations(db: AsyncSession, owner_id: str, limit: int = 20) -> List[Conversation]:
    result = await db.execute(
        select(Conversation)
        .where(Conversation.owner_id == owner_id)
        .order_by(Conversation.last_updated.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def save_search_result(
    db: AsyncSession,
    owner_id: str,
    question: str,
    answer: str,
    sources: List[dict],
    tier: Optional[str] = None,
) -> Optional[SearchResult]:
    """Persist an answered query. Best-effort: returns None instead of raising."""
    try:
        row = SearchResult(
            owner_id=owner_id,
            question=question,
            answer=answer,
            sources=sources,
            tier=tier,
            timestamp=utcnow(),
        )
        db.add(row)
        await db.commit()
        return row
    except Exception as e:
        await db.rollback()
        logger.warning("Failed to persist search result", extra={"user_id": owner_id, "error": str(e)}, exc_info=True)
        return None


async def list_search_results(db: AsyncSession, owner_id: str, limit: int = 10) -> List[SearchResult]:
    result = await db.execute(
        select(SearchResult)
        .where(SearchResult.owner_id == owner_id)
        .order_by(SearchResult.timestamp.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
