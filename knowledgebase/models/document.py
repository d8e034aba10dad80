import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime

from knowledgebase.core.database import Base
from knowledgebase.schemas.content import parse_content


def _new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KnowledgeDocument(Base):
    __tablename__ = "documents"

    id = Column(String(32), primary_key=True, default=_new_id)
    # Nullable: rows written by older clients may lack an owner
    owner_id = Column(String, index=True, nullable=True)
    title = Column(String, nullable=False)
    type = Column(String(8), nullable=False, index=True)  # "file" | "web"
    source = Column(String, nullable=False, default="")
    # Plain text or a serialized PDF envelope, see schemas/content.py
    content = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow)
    last_updated = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, index=True)

    @property
    def parsed_content(self):
        return parse_content(self.content)

    @property
    def plain_text(self) -> str:
        return self.parsed_content.plain_text
