from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from knowledgebase.schemas.base import CamelModel
from knowledgebase.schemas.content import PdfFileData

DocumentType = Literal["file", "web"]


class DocumentCreate(CamelModel):
    title: str = Field(..., min_length=1)
    type: DocumentType
    source: str = ""
    content: Optional[str] = ""
    # Present for uploaded PDFs (the /upload-pdf payload)
    file_data: Optional[PdfFileData] = None


class DocumentUpdate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None


class DocumentResponse(CamelModel):
    id: str
    title: str
    type: DocumentType
    source: str
    # Plain text view: the text itself, or the PDF's extracted text
    content: str
    content_type: Literal["text", "pdf"]
    file_data: Optional[PdfFileData] = None
    owner_id: Optional[str] = None
    last_updated: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc) -> "DocumentResponse":
        parsed = doc.parsed_content
        return cls(
            id=doc.id,
            title=doc.title,
            type=doc.type,
            source=doc.source or "",
            content=parsed.plain_text,
            content_type=parsed.kind,
            file_data=getattr(parsed, "file_data", None),
            owner_id=doc.owner_id,
            last_updated=doc.last_updated,
            created_at=doc.created_at,
        )


class DocumentListResponse(CamelModel):
    documents: List[DocumentResponse]


class DocumentDeleteResponse(CamelModel):
    detail: str
