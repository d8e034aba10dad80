from datetime import datetime
from typing import List, Optional

from knowledgebase.schemas.base import CamelModel


class SourceRef(CamelModel):
    id: str
    title: str
    type: str
    url: Optional[str] = None


class SearchRequest(CamelModel):
    query: str


class SearchResponse(CamelModel):
    answer: str
    sources: List[SourceRef]
    is_general_knowledge: bool = False
    is_google_search: bool = False
    tier: str


class SearchHistoryItem(CamelModel):
    id: str
    question: str
    answer: str
    sources: List[SourceRef]
    tier: Optional[str] = None
    timestamp: Optional[datetime] = None


class SearchHistoryResponse(CamelModel):
    results: List[SearchHistoryItem]
