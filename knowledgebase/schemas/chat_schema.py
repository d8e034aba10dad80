from datetime import datetime
from typing import List, Literal, Optional

from knowledgebase.schemas.base import CamelModel


class ChatMessage(CamelModel):
    role: str  # 'user' or 'assistant'
    content: str
    timestamp: Optional[datetime] = None


class ChatContext(CamelModel):
    title: str = "Document"
    type: Literal["file", "web"] = "file"
    content: str = ""
    source: str = ""


class ChatRequest(CamelModel):
    messages: List[ChatMessage]
    context: Optional[ChatContext] = None
    document_type: Optional[str] = None  # 'resume' | 'web' | 'file' | 'general'
    file_base64: Optional[str] = None
    file_mime: Optional[str] = None


class ChatResponse(CamelModel):
    reply: str
