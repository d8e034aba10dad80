import base64
from dataclasses import dataclass
from typing import Optional

import fitz  # PyMuPDF

from knowledgebase.core.errors import InvalidInput
from knowledgebase.schemas.content import PDF_MIME_TYPE, PdfContent, PdfFileData
from knowledgebase.utils.file_utils import validate_file_size, validate_pdf_type
from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.utils.pdf_loader")

DEFAULT_MAX_BYTES = 10 * 1024 * 1024


@dataclass
class PdfUpload:
    text: str
    base64_data: str
    file_name: str
    file_size: int
    mime_type: str = PDF_MIME_TYPE
    page_count: Optional[int] = None

    def to_content(self) -> PdfContent:
        return PdfContent(
            text_content=self.text,
            file_data=PdfFileData(
                base64=self.base64_data,
                mime_type=self.mime_type,
                file_name=self.file_name,
                file_size=self.file_size,
            ),
        )


def count_pages(pdf_bytes: bytes) -> Optional[int]:
    """Page count, or None when PyMuPDF cannot open the bytes."""
    try:
        with fitz.open(stream=pdf_bytes, filetype="pdf") as pdf:
            return pdf.page_count
    except Exception as e:
        logger.warning("Could not open PDF for page count", extra={"error": str(e)})
        return None


def ingest_pdf(
    file_name: Optional[str],
    content_type: Optional[str],
    data: Optional[bytes],
    *,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> PdfUpload:
    """
    Validate an uploaded PDF and base64-encode it.

    No text is extracted here: Gemini reads the PDF bytes directly when a
    question is asked, so ``text`` is only a placeholder for the UI.
    """
    if not data:
        raise InvalidInput("No file provided")

    file_name = file_name or "document.pdf"
    validate_pdf_type(file_name, content_type)
    validate_file_size(len(data), max_bytes)

    encoded = base64.b64encode(data).decode("ascii")
    page_count = count_pages(data)

    logger.info("PDF converted to base64", extra={
        "file_name": file_name,
        "size_kb": round(len(data) / 1024),
        "page_count": page_count,
    })

    return PdfUpload(
        text=(
            f"[PDF Document: {file_name}]\n\n"
            "This PDF file has been uploaded and will be processed by AI when you ask questions about it."
        ),
        base64_data=encoded,
        file_name=file_name,
        file_size=len(data),
        page_count=page_count,
    )
