from typing import List, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from knowledgebase.core.errors import UpstreamFailure
from knowledgebase.models.document import KnowledgeDocument, utcnow
from knowledgebase.schemas.content import PdfContent, TextContent, serialize_content
from knowledgebase.utils.logger import get_logger
from knowledgebase.utils.permissions import check_document_ownership

logger = get_logger("knowledgebase.utils.document_store")


class DocumentStore:
    """CRUD over the documents table, scoped to the calling owner."""

    def __init__(self, db: AsyncSession, page_size: int = 50):
        self.db = db
        self.page_size = page_size

    async def create(
        self,
        owner_id: str,
        title: str,
        doc_type: str,
        source: str,
        content: Union[TextContent, PdfContent, None] = None,
    ) -> KnowledgeDocument:
        doc = KnowledgeDocument(
            owner_id=owner_id,
            title=title,
            type=doc_type,
            source=source,
            content=serialize_content(content),
            last_updated=utcnow(),
        )
        self.db.add(doc)
        await self._commit()
        await self.db.refresh(doc)
        logger.info("Document created", extra={"doc_id": doc.id, "user_id": owner_id, "type": doc_type})
        return doc

    async def get(self, doc_id: str, owner_id: str) -> KnowledgeDocument:
        doc = await self.db.get(KnowledgeDocument, doc_id)
        return check_document_ownership(doc, owner_id)

    async def list(self, owner_id: str, doc_type: Optional[str] = None) -> List[KnowledgeDocument]:
        stmt = select(KnowledgeDocument).where(KnowledgeDocument.owner_id == owner_id)
        if doc_type:
            stmt = stmt.where(KnowledgeDocument.type == doc_type)
        stmt = stmt.order_by(KnowledgeDocument.last_updated.desc()).limit(self.page_size)

        result = await self.db.execute(stmt)
        docs = list(result.scalars().all())
        logger.debug("Documents listed", extra={"user_id": owner_id, "type": doc_type, "count": len(docs)})
        return docs

    async def update(
        self,
        doc_id: str,
        owner_id: str,
        *,
        title: Optional[str] = None,
        content: Union[TextContent, PdfContent, None] = None,
    ) -> KnowledgeDocument:
        doc = await self.get(doc_id, owner_id)

        if title:
            doc.title = title
        if content is not None:
            serialized = serialize_content(content)
            if serialized:
                doc.content = serialized
        doc.last_updated = utcnow()

        await self._commit()
        await self.db.refresh(doc)
        logger.info("Document updated", extra={"doc_id": doc_id, "user_id": owner_id})
        return doc

    async def delete(self, doc_id: str, owner_id: str) -> KnowledgeDocument:
        doc = await self.db.get(KnowledgeDocument, doc_id)
        check_document_ownership(doc, owner_id, allow_ownerless=True)

        await self.db.delete(doc)
        await self._commit()
        logger.info("Document deleted", extra={"doc_id": doc_id, "user_id": owner_id})
        return doc

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Database commit failed", extra={"error": str(e)}, exc_info=True)
            raise UpstreamFailure("Database error") from e
