from datetime import datetime
from typing import List, Optional

from knowledgebase.schemas.base import CamelModel
from knowledgebase.schemas.chat_schema import ChatMessage


class ConversationCreate(CamelModel):
    conversation_id: Optional[str] = None
    message: Optional[str] = None
    query: Optional[str] = None
    response: str = ""


class ConversationSaved(CamelModel):
    conversation_id: str
    success: bool = True


class ConversationSummary(CamelModel):
    conversation_id: str
    last_message: str
    last_response: str
    last_updated: Optional[datetime] = None


class ConversationList(CamelModel):
    conversations: List[ConversationSummary]


class ConversationMessages(CamelModel):
    messages: List[ChatMessage]
