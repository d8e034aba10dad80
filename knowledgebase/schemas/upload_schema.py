from typing import Optional

from knowledgebase.schemas.base import CamelModel


class PdfUploadResponse(CamelModel):
    text: str
    base64_data: str
    file_name: str
    file_size: int
    mime_type: str = "application/pdf"
    page_count: Optional[int] = None


class FetchUrlResponse(CamelModel):
    title: str
    content: str
    description: str = ""
    url: str
    warning: Optional[str] = None
    error: Optional[str] = None
    extracted_at: Optional[str] = None
