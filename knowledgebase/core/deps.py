"""
FastAPI dependencies handing out the process-lifetime objects that the
lifespan in ``main.py`` stores on ``app.state``.
"""
from typing import AsyncIterator

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from knowledgebase.core.config import Settings
from knowledgebase.core.rate_limit import RateLimiter
from knowledgebase.llm.llm import GeminiClient
from knowledgebase.rag.pipeline import AnswerGenerator
from knowledgebase.retriever.web_search import WebSearchClient
from knowledgebase.utils.document_store import DocumentStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async for session in request.app.state.db.session():
        yield session


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_llm(request: Request) -> GeminiClient:
    return request.app.state.llm


def get_web_search(request: Request) -> WebSearchClient:
    return request.app.state.web_search


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_document_store(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> DocumentStore:
    return DocumentStore(db, page_size=settings.DOCUMENT_PAGE_SIZE)


def get_answer_generator(
    llm: GeminiClient = Depends(get_llm),
    web_search: WebSearchClient = Depends(get_web_search),
    settings: Settings = Depends(get_settings),
) -> AnswerGenerator:
    return AnswerGenerator(llm, web_search, settings)
