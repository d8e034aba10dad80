from typing import List, Optional

from knowledgebase.core.errors import InvalidInput
from knowledgebase.llm.prompt_template import (
    NO_CONTEXT_SYSTEM_PROMPT,
    PDF_SYSTEM_PROMPT,
    RESUME_SYSTEM_PROMPT,
    WEB_SYSTEM_PROMPT,
    default_system_prompt,
)
from knowledgebase.schemas.chat_schema import ChatContext, ChatMessage, ChatRequest
from knowledgebase.schemas.content import PDF_MIME_TYPE
from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.llm.chat")

MAX_HISTORY_TURNS = 10
TRUNCATION_MARKER = "... [content truncated]"


def build_chat_system_prompt(
    context: Optional[ChatContext],
    document_type: Optional[str],
    has_pdf: bool,
) -> str:
    if context is None and not has_pdf:
        return NO_CONTEXT_SYSTEM_PROMPT

    if document_type == "resume":
        return RESUME_SYSTEM_PROMPT
    if document_type == "web":
        return WEB_SYSTEM_PROMPT
    if has_pdf:
        return PDF_SYSTEM_PROMPT

    title = context.title if context else "Document"
    kind = "web page" if context and context.type == "web" else "document"
    return default_system_prompt.format(kind=kind, title=title)


def latest_user_message(messages: List[ChatMessage]) -> ChatMessage:
    if not messages or messages[-1].role != "user" or not messages[-1].content.strip():
        raise InvalidInput("No user message found")
    return messages[-1]


def _format_history(messages: List[ChatMessage]) -> str:
    turns = [m for m in messages if m.role in ("user", "assistant") and m.content.strip()]
    turns = turns[-MAX_HISTORY_TURNS:]
    if not turns:
        return ""
    lines = [f"{'User' if m.role == 'user' else 'Assistant'}: {m.content}" for m in turns]
    return "Conversation so far:\n" + "\n".join(lines) + "\n\n"


def build_chat_prompt(request: ChatRequest, *, max_context_chars: int = 28000) -> str:
    question = latest_user_message(request.messages)
    has_pdf = bool(request.file_base64) and request.file_mime == PDF_MIME_TYPE

    context = request.context
    if context is not None and len(context.content) > max_context_chars:
        context = context.model_copy(update={"content": context.content[:max_context_chars] + TRUNCATION_MARKER})

    sections = [build_chat_system_prompt(context, request.document_type, has_pdf)]
    if context is not None and context.content:
        sections.append(f"Document Context ({context.type}): {context.content}\n\n")
    sections.append(_format_history(request.messages[:-1]))
    sections.append(f"User Question: {question.content}")
    return "".join(sections)


async def generate_chat_reply(llm, request: ChatRequest, *, max_context_chars: int = 28000) -> str:
    """
    Answer the latest user message, attaching the PDF inline when one is sent.

    Raises InvalidInput when there is no trailing user message, and the LLM
    client's UpstreamFailure / EmptyGeneration otherwise.
    """
    prompt = build_chat_prompt(request, max_context_chars=max_context_chars)
    has_pdf = bool(request.file_base64) and request.file_mime == PDF_MIME_TYPE

    logger.info("Chat prompt prepared", extra={
        "message_count": len(request.messages),
        "has_context": request.context is not None,
        "document_type": request.document_type,
        "has_pdf": has_pdf,
        "prompt_length": len(prompt),
    })

    return await llm.generate(
        prompt,
        pdf_base64=request.file_base64 if has_pdf else None,
        pdf_mime=request.file_mime or PDF_MIME_TYPE,
    )
