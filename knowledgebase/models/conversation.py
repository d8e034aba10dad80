import uuid

from sqlalchemy import Column, String, Text, DateTime, JSON

from knowledgebase.core.database import Base
from knowledgebase.models.document import utcnow


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    conversation_id = Column(String, index=True, nullable=False)
    owner_id = Column(String, index=True, nullable=False)
    messages = Column(JSON, nullable=False, default=list)  # [{role, content, timestamp}]
    query = Column(Text, nullable=False, default="")
    response = Column(Text, nullable=False, default="")
    last_updated = Column(DateTime(timezone=True), default=utcnow, index=True)
