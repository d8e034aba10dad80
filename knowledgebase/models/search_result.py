import uuid

from sqlalchemy import Column, String, Text, DateTime, JSON

from knowledgebase.core.database import Base
from knowledgebase.models.document import utcnow


class SearchResult(Base):
    __tablename__ = "search_results"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    owner_id = Column(String, index=True, nullable=False)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    sources = Column(JSON, nullable=False, default=list)  # [{id, title, type, url?}]
    tier = Column(String(16), nullable=True)
    timestamp = Column(DateTime(timezone=True), default=utcnow, index=True)
