"""
Document content as a tagged union.

The ``documents.content`` column holds either plain text or a JSON envelope::

    {"type": "pdf", "textContent": "...",
     "fileData": {"base64": "...", "mimeType": "application/pdf",
                  "fileName": "cv.pdf", "fileSize": 1234}}

``parse_content`` is the only place that reads that column format and
``serialize_content`` the only place that writes it.
"""
import json
from typing import Annotated, Literal, Optional, Union

from pydantic import Field, ValidationError

from knowledgebase.schemas.base import CamelModel

PDF_MIME_TYPE = "application/pdf"


class PdfFileData(CamelModel):
    base64: str
    mime_type: str = PDF_MIME_TYPE
    file_name: str = "document.pdf"
    file_size: Optional[int] = None


class TextContent(CamelModel):
    kind: Literal["text"] = "text"
    text: str = ""

    @property
    def plain_text(self) -> str:
        return self.text


class PdfContent(CamelModel):
    kind: Literal["pdf"] = "pdf"
    text_content: str = ""
    file_data: PdfFileData

    @property
    def plain_text(self) -> str:
        return self.text_content


DocumentContent = Annotated[Union[TextContent, PdfContent], Field(discriminator="kind")]


def parse_content(raw: Optional[str]) -> Union[TextContent, PdfContent]:
    """Decode a stored content string; anything that is not a PDF envelope is verbatim text."""
    if not raw:
        return TextContent(text="")

    stripped = raw.lstrip()
    if not stripped.startswith("{"):
        return TextContent(text=raw)

    try:
        envelope = json.loads(stripped)
    except ValueError:
        return TextContent(text=raw)

    if not isinstance(envelope, dict) or envelope.get("type") != "pdf":
        return TextContent(text=raw)

    file_data = envelope.get("fileData")
    if not isinstance(file_data, dict) or not file_data.get("base64"):
        return TextContent(text=raw)

    try:
        return PdfContent(
            text_content=str(envelope.get("textContent") or ""),
            file_data=PdfFileData.model_validate(file_data),
        )
    except ValidationError:
        return TextContent(text=raw)


def serialize_content(content: Union[TextContent, PdfContent, None]) -> str:
    if content is None:
        return ""
    if isinstance(content, PdfContent):
        return json.dumps({
            "type": "pdf",
            "textContent": content.text_content,
            "fileData": content.file_data.model_dump(by_alias=True, exclude_none=True),
        })
    return content.text
