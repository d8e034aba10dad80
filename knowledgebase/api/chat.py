from fastapi import APIRouter, Depends

from knowledgebase.core.config import Settings
from knowledgebase.core.deps import get_llm, get_rate_limiter, get_settings
from knowledgebase.core.errors import UpstreamFailure
from knowledgebase.core.rate_limit import RateLimiter
from knowledgebase.core.security import CurrentUser, get_current_user
from knowledgebase.llm.chat import generate_chat_reply
from knowledgebase.llm.llm import GeminiClient
from knowledgebase.schemas.chat_schema import ChatRequest, ChatResponse
from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.api.chat")

router = APIRouter(prefix="/chat", tags=["chat"])


# ------ Chat about a document -----
@router.post("", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    llm: GeminiClient = Depends(get_llm),
    limiter: RateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Answer the latest user message, optionally grounded in one document
    (``context``) and/or a PDF sent inline (``fileBase64``).
    """
    limiter.check(current_user.id, "chat", limit=30, window=60)

    if not llm.configured:
        raise UpstreamFailure("Missing GOOGLE_API_KEY")

    logger.info("Chat request received", extra={
        "user_id": current_user.id,
        "message_count": len(body.messages),
        "document_type": body.document_type,
    })

    reply = await generate_chat_reply(llm, body, max_context_chars=settings.CHAT_CONTEXT_MAX_CHARS)

    logger.info("Chat reply generated", extra={"user_id": current_user.id, "reply_length": len(reply)})
    return ChatResponse(reply=reply)
