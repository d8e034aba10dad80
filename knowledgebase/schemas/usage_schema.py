from datetime import datetime
from typing import Optional

from pydantic import Field

from knowledgebase.schemas.base import CamelModel


class UsageStatsResponse(CamelModel):
    total_documents: int = 0
    total_files: int = 0
    total_links: int = 0
    queries_this_month: int = 0
    last_updated: Optional[datetime] = None


class UsageStatsUpdate(CamelModel):
    total_documents: Optional[int] = Field(default=None, ge=0)
    total_files: Optional[int] = Field(default=None, ge=0)
    total_links: Optional[int] = Field(default=None, ge=0)
    queries_this_month: Optional[int] = Field(default=None, ge=0)
