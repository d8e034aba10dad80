import uuid

from sqlalchemy import Column, Integer, String, DateTime

from knowledgebase.core.database import Base
from knowledgebase.models.document import utcnow


class UsageStats(Base):
    __tablename__ = "usage_stats"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    owner_id = Column(String, unique=True, index=True, nullable=False)
    total_documents = Column(Integer, nullable=False, default=0)
    total_files = Column(Integer, nullable=False, default=0)
    total_links = Column(Integer, nullable=False, default=0)
    queries_this_month = Column(Integer, nullable=False, default=0)
    # Month ("YYYY-MM") that queries_this_month counts
    queries_month = Column(String(7), nullable=True)
    last_updated = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
