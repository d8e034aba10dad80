import enum
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from knowledgebase.core.config import Settings
from knowledgebase.core.errors import KnowledgeBaseError
from knowledgebase.llm.chat import generate_chat_reply
from knowledgebase.llm.prompt_template import document_prompt, general_knowledge_prompt
from knowledgebase.models.document import KnowledgeDocument
from knowledgebase.rag.context import AssembledContext, PdfAttachment, assemble_context
from knowledgebase.rag.sources import find_relevant_sources, keyword_match, to_source_ref
from knowledgebase.schemas.chat_schema import ChatContext, ChatMessage, ChatRequest
from knowledgebase.schemas.search_schema import SourceRef
from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.rag.pipeline")

NO_MATCHES_ANSWER = "I could not find relevant items in your knowledge base yet."


class AnswerTier(str, enum.Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    TERTIARY = "tertiary"


@dataclass
class Answered:
    tier: AnswerTier
    text: str
    sources: List[SourceRef] = field(default_factory=list)
    is_general_knowledge: bool = False


@dataclass
class Failed:
    reason: str
    attempts: List[str] = field(default_factory=list)


AnswerResult = Union[Answered, Failed]


def _pdf_chat_request(query: str, pdf: PdfAttachment) -> ChatRequest:
    doc = pdf.document
    return ChatRequest(
        messages=[ChatMessage(role="user", content=query)],
        context=ChatContext(
            title=doc.title,
            type=doc.type,
            content=pdf.content.text_content,
            source=doc.source,
        ),
        file_base64=pdf.content.file_data.base64,
        file_mime=pdf.content.file_data.mime_type,
    )


def _format_web_answer(query: str, snippets) -> str:
    lines = [f'I couldn\'t answer "{query}" from your knowledge base, but here is what I found on the web:', ""]
    for i, item in enumerate(snippets, start=1):
        line = f"{i}. {item.title}"
        if item.snippet:
            line += f": {item.snippet}"
        if item.url:
            line += f" ({item.url})"
        lines.append(line)
    return "\n".join(lines)


class AnswerGenerator:
    """
    Answers a question in up to three tiers:

    - primary: Gemini over the assembled context (or the first PDF inline)
    - secondary: snippets scraped from a web search results page
    - tertiary: keyword match over the stored documents

    Each tier returns ``Answered`` or ``Failed``; the first ``Answered`` wins.
    """

    def __init__(self, llm, web_search, settings: Settings):
        self.llm = llm
        self.web_search = web_search
        self.settings = settings

    async def answer(
        self,
        query: str,
        documents: Sequence[KnowledgeDocument],
        owner_name: Optional[str] = None,
    ) -> AnswerResult:
        context = assemble_context(
            documents,
            query,
            owner_name=owner_name,
            general_budget=self.settings.GENERAL_CONTEXT_MAX_CHARS,
            document_budget=self.settings.DOCUMENT_CONTEXT_MAX_CHARS,
        )

        attempts: List[str] = []
        tiers = (
            (AnswerTier.PRIMARY, self._primary),
            (AnswerTier.SECONDARY, self._secondary),
            (AnswerTier.TERTIARY, self._tertiary),
        )
        for tier, attempt in tiers:
            result = await attempt(query, documents, context)
            if isinstance(result, Answered):
                logger.info("Query answered", extra={
                    "tier": tier.value,
                    "source_count": len(result.sources),
                    "is_general_knowledge": result.is_general_knowledge,
                    "failed_tiers": attempts,
                })
                return result
            logger.warning(f"{tier.value} tier failed: {result.reason}")
            attempts.append(tier.value)

        return Failed(reason="All answer strategies failed", attempts=attempts)

    async def _primary(self, query, documents, context: AssembledContext) -> AnswerResult:
        pdf = context.primary_pdf
        try:
            if pdf is not None:
                logger.info("Using PDF chat path", extra={"doc_id": pdf.document.id})
                text = await generate_chat_reply(
                    self.llm,
                    _pdf_chat_request(query, pdf),
                    max_context_chars=self.settings.CHAT_CONTEXT_MAX_CHARS,
                )
            else:
                template = general_knowledge_prompt if context.is_general_knowledge else document_prompt
                prompt = template.format(context=context.text, question=query)
                text = await self.llm.generate(prompt)
        except KnowledgeBaseError as e:
            return Failed(reason=e.message)

        pinned = [pdf.document] if pdf is not None else []
        return Answered(
            tier=AnswerTier.PRIMARY,
            text=text,
            sources=find_relevant_sources(query, text, documents, pinned=pinned),
            is_general_knowledge=context.is_general_knowledge,
        )

    async def _secondary(self, query, documents, context: AssembledContext) -> AnswerResult:
        try:
            snippets = await self.web_search.search(query)
        except KnowledgeBaseError as e:
            return Failed(reason=e.message)

        return Answered(
            tier=AnswerTier.SECONDARY,
            text=_format_web_answer(query, snippets),
            is_general_knowledge=context.is_general_knowledge,
        )

    async def _tertiary(self, query, documents, context: AssembledContext) -> AnswerResult:
        matches = keyword_match(query, documents)
        if matches:
            text = f"I found {len(matches)} document(s) in your knowledge base that may be relevant to your question."
        else:
            text = NO_MATCHES_ANSWER
        return Answered(
            tier=AnswerTier.TERTIARY,
            text=text,
            sources=[to_source_ref(doc) for doc in matches],
            is_general_knowledge=context.is_general_knowledge,
        )
