from typing import Optional

from knowledgebase.core.errors import Forbidden, NotFound
from knowledgebase.models.document import KnowledgeDocument
from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.utils.permissions")


def check_document_ownership(
        doc: Optional[KnowledgeDocument],
        owner_id: str,
        *,
        allow_ownerless: bool = False,
) -> KnowledgeDocument:
    """
    Raise NotFound for a missing row and Forbidden for someone else's row.

    Rows without an owner are refused unless ``allow_ownerless`` is set
    (only delete sets it, so stray rows can still be cleaned up).
    """
    if doc is None:
        raise NotFound("Document not found")

    if doc.owner_id is None:
        if allow_ownerless:
            logger.info("Access to ownerless document allowed", extra={"doc_id": doc.id, "user_id": owner_id})
            return doc
        logger.warning("Access to ownerless document denied", extra={"doc_id": doc.id, "user_id": owner_id})
        raise Forbidden("Forbidden")

    if doc.owner_id != owner_id:
        logger.warning("Document owner mismatch", extra={"doc_id": doc.id, "user_id": owner_id})
        raise Forbidden("Forbidden")

    return doc
