from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from knowledgebase.core.deps import get_db
from knowledgebase.core.errors import InvalidInput
from knowledgebase.core.security import CurrentUser, get_current_user
from knowledgebase.schemas.conversation_schema import (
    ConversationCreate,
    ConversationList,
    ConversationMessages,
    ConversationSaved,
    ConversationSummary,
)
from knowledgebase.utils.chat_persistence import (
    list_conversations,
    load_conversation_messages,
    save_conversation_turn,
)
from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.api.conversations")

router = APIRouter(prefix="/conversations", tags=["conversations"])

PREVIEW_CHARS = 100


@router.post("", response_model=ConversationSaved)
async def save_conversation(
    body: ConversationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    user_message = body.message or body.query
    if not user_message:
        raise InvalidInput("Missing message")

    row = await save_conversation_turn(
        db,
        current_user.id,
        body.conversation_id,
        user_message,
        body.response,
    )
    return ConversationSaved(conversation_id=row.conversation_id)


@router.get("", response_model=None)
async def get_conversations(
    conversation_id: Optional[str] = Query(None, alias="conversationId"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """One conversation's messages, or the latest conversations when no id is given."""
    if conversation_id:
        messages = await load_conversation_messages(db, current_user.id, conversation_id)
        return ConversationMessages(messages=messages)

    rows = await list_conversations(db, current_user.id)
    return ConversationList(conversations=[
        ConversationSummary(
            conversation_id=row.conversation_id,
            last_message=row.query,
            last_response=row.response[:PREVIEW_CHARS] + ("..." if len(row.response) > PREVIEW_CHARS else ""),
            last_updated=row.last_updated,
        )
        for row in rows
    ])
