from typing import Optional

from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from knowledgebase.core.config import Settings
from knowledgebase.core.errors import EmptyGeneration, UpstreamFailure
from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.llm")


def _message_text(message) -> str:
    """Flatten a chat model reply (str or list of content blocks) to text."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class GeminiClient:
    """
    Thin wrapper around LangChain's Gemini chat model.

    Built once at start-up; the underlying model is created on first use so a
    missing API key only fails the requests that need Gemini.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        temperature: float = 0.2,
        max_output_tokens: int = 2048,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._llm: Optional[ChatGoogleGenerativeAI] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiClient":
        return cls(
            api_key=settings.GOOGLE_API_KEY,
            model=settings.GEMINI_MODEL,
            temperature=settings.GEMINI_TEMPERATURE,
            max_output_tokens=settings.GEMINI_MAX_OUTPUT_TOKENS,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_llm(self) -> ChatGoogleGenerativeAI:
        if self._llm is None:
            self._llm = ChatGoogleGenerativeAI(
                model=self.model,
                google_api_key=self.api_key,
                temperature=self.temperature,  # low temperature for factual answers
                max_output_tokens=self.max_output_tokens,
            )
        return self._llm

    async def generate(
        self,
        prompt: str,
        *,
        pdf_base64: Optional[str] = None,
        pdf_mime: str = "application/pdf",
    ) -> str:
        """
        Send a prompt (plus an optional inline PDF) and return the reply text.

        Raises UpstreamFailure on API errors and EmptyGeneration on an empty reply.
        """
        if not self.configured:
            raise UpstreamFailure("Missing GOOGLE_API_KEY")

        parts = [{"type": "text", "text": prompt}]
        if pdf_base64:
            parts.append({"type": "media", "mime_type": pdf_mime, "data": pdf_base64})

        logger.info("Calling Gemini", extra={
            "model": self.model,
            "prompt_length": len(prompt),
            "has_pdf": bool(pdf_base64),
        })

        try:
            result = await self._get_llm().ainvoke([HumanMessage(content=parts)])
        except Exception as e:
            logger.error(f"Gemini API error: {e}", exc_info=True)
            raise UpstreamFailure(f"Gemini API error: {e}") from e

        text = _message_text(result)
        if not text.strip():
            logger.warning("Gemini returned an empty answer")
            raise EmptyGeneration("The model returned an empty answer")

        logger.info("Answer generated", extra={"answer_length": len(text)})
        return text
