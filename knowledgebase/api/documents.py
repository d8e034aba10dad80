from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from knowledgebase.core.config import Settings
from knowledgebase.core.deps import get_db, get_document_store, get_http_client, get_settings
from knowledgebase.core.security import CurrentUser, get_current_user
from knowledgebase.schemas.content import PdfContent, TextContent
from knowledgebase.schemas.document_schemas import (
    DocumentCreate,
    DocumentDeleteResponse,
    DocumentListResponse,
    DocumentResponse,
    DocumentType,
    DocumentUpdate,
)
from knowledgebase.utils.document_store import DocumentStore
from knowledgebase.utils.logger import get_logger
from knowledgebase.utils.url_extractor import extract_url_content
from knowledgebase.utils.usage_tracker import refresh_document_counts

logger = get_logger("knowledgebase.api.documents")

router = APIRouter(prefix="/documents", tags=["documents"])


# ------ List Documents -----
@router.get("", response_model=DocumentListResponse)
async def list_documents(
    type: Optional[DocumentType] = Query(None),
    store: DocumentStore = Depends(get_document_store),
    current_user: CurrentUser = Depends(get_current_user),
):
    docs = await store.list(current_user.id, doc_type=type)
    logger.info("Documents retrieved", extra={"user_id": current_user.id, "type": type, "count": len(docs)})
    return DocumentListResponse(documents=[DocumentResponse.from_document(doc) for doc in docs])


# ------ Create Document -----
@router.post("", response_model=DocumentResponse, status_code=201)
async def create_document(
    body: DocumentCreate,
    store: DocumentStore = Depends(get_document_store),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    if body.file_data is not None:
        content = PdfContent(text_content=body.content or "", file_data=body.file_data)
    else:
        content = TextContent(text=body.content or "")

    doc = await store.create(
        current_user.id,
        title=body.title.strip(),
        doc_type=body.type,
        source=body.source,
        content=content,
    )
    await refresh_document_counts(db, current_user.id)
    return DocumentResponse.from_document(doc)


# ------ Get single Document -----
@router.get("/{doc_id}", response_model=DocumentResponse)
async def get_document(
    doc_id: str,
    store: DocumentStore = Depends(get_document_store),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
    current_user: CurrentUser = Depends(get_current_user),
):
    doc = await store.get(doc_id, current_user.id)

    # Links saved without content are fetched on first view
    if doc.type == "web" and not doc.content and doc.source:
        logger.info("Backfilling web document content", extra={"doc_id": doc_id, "url": doc.source})
        page = await extract_url_content(
            doc.source,
            http_client,
            timeout=settings.URL_FETCH_TIMEOUT,
            max_chars=settings.URL_CONTENT_MAX_CHARS,
        )
        if page.failed:
            logger.warning("Backfill fetch failed; content left empty", extra={"doc_id": doc_id, "error": page.error})
        else:
            doc = await store.update(doc_id, current_user.id, content=TextContent(text=page.content))

    return DocumentResponse.from_document(doc)


# ------ Update Document -----
@router.put("/{doc_id}", response_model=DocumentResponse)
async def update_document(
    doc_id: str,
    body: DocumentUpdate,
    store: DocumentStore = Depends(get_document_store),
    current_user: CurrentUser = Depends(get_current_user),
):
    content = None
    if body.content:
        current = (await store.get(doc_id, current_user.id)).parsed_content
        if isinstance(current, PdfContent):
            # Editing a PDF's text keeps the file attached
            content = current.model_copy(update={"text_content": body.content})
        else:
            content = TextContent(text=body.content)

    doc = await store.update(doc_id, current_user.id, title=body.title, content=content)
    return DocumentResponse.from_document(doc)


# ------ Delete Document -----
@router.delete("/{doc_id}", response_model=DocumentDeleteResponse)
async def delete_document(
    doc_id: str,
    store: DocumentStore = Depends(get_document_store),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    await store.delete(doc_id, current_user.id)
    await refresh_document_counts(db, current_user.id)
    return DocumentDeleteResponse(detail="Document deleted")
