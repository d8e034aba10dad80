from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from knowledgebase.models.document import KnowledgeDocument
from knowledgebase.rag.classifier import is_general_knowledge
from knowledgebase.schemas.content import PdfContent
from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.rag.context")

GENERAL_KNOWLEDGE_BUDGET = 5000
DOCUMENT_BUDGET = 20000


@dataclass
class PdfAttachment:
    document: KnowledgeDocument
    content: PdfContent


@dataclass
class AssembledContext:
    text: str
    is_general_knowledge: bool
    budget: int
    truncated: bool = False
    text_documents: List[KnowledgeDocument] = field(default_factory=list)
    pdf_attachments: List[PdfAttachment] = field(default_factory=list)

    @property
    def primary_pdf(self) -> Optional[PdfAttachment]:
        # Only one PDF goes to the model per question
        return self.pdf_attachments[0] if self.pdf_attachments else None


def _document_header(doc: KnowledgeDocument) -> str:
    kind = "web page" if doc.type == "web" else "document"
    return f"--- {doc.title} ({kind}: {doc.source}) ---"


def assemble_context(
    documents: Sequence[KnowledgeDocument],
    query: str,
    *,
    owner_name: Optional[str] = None,
    general_budget: int = GENERAL_KNOWLEDGE_BUDGET,
    document_budget: int = DOCUMENT_BUDGET,
) -> AssembledContext:
    """
    Split documents into text vs PDF and build the text context.

    General-knowledge questions get the smaller budget so the model leans on
    its own knowledge; PDFs are never inlined as text.
    """
    general = is_general_knowledge(query, owner_name)
    budget = general_budget if general else document_budget

    text_docs: List[KnowledgeDocument] = []
    pdfs: List[PdfAttachment] = []
    blocks: List[str] = []

    for doc in documents:
        parsed = doc.parsed_content
        if isinstance(parsed, PdfContent):
            pdfs.append(PdfAttachment(document=doc, content=parsed))
            continue
        if not parsed.text.strip():
            continue
        text_docs.append(doc)
        blocks.append(f"{_document_header(doc)}\n{parsed.text.strip()}\n")

    text = "\n".join(blocks)
    truncated = len(text) > budget
    if truncated:
        text = text[:budget]

    logger.info("Context assembled", extra={
        "is_general_knowledge": general,
        "text_documents": len(text_docs),
        "pdf_documents": len(pdfs),
        "context_length": len(text),
        "truncated": truncated,
    })

    return AssembledContext(
        text=text,
        is_general_knowledge=general,
        budget=budget,
        truncated=truncated,
        text_documents=text_docs,
        pdf_attachments=pdfs,
    )
