import dataclasses
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from knowledgebase.core.config import Settings
from knowledgebase.core.deps import get_http_client, get_rate_limiter, get_settings
from knowledgebase.core.rate_limit import RateLimiter
from knowledgebase.core.security import CurrentUser, get_current_user
from knowledgebase.schemas.upload_schema import FetchUrlResponse
from knowledgebase.utils.logger import get_logger
from knowledgebase.utils.url_extractor import extract_url_content, validate_url

logger = get_logger("knowledgebase.api.fetch_url")

router = APIRouter(tags=["fetch-url"])


@router.get("/fetch-url", response_model=FetchUrlResponse, response_model_exclude_none=True)
async def fetch_url(
    url: Optional[str] = Query(None),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    limiter: RateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Scrape a page's title and readable text.
    A page that cannot be fetched still returns a body (with ``error``) and a 500.
    """
    validate_url(url)
    limiter.check(current_user.id, "fetch-url", limit=30, window=60)

    page = await extract_url_content(
        url,
        http_client,
        timeout=settings.URL_FETCH_TIMEOUT,
        max_chars=settings.URL_CONTENT_MAX_CHARS,
    )
    body = FetchUrlResponse(**dataclasses.asdict(page))

    if page.failed:
        return JSONResponse(
            status_code=500,
            content=body.model_dump(by_alias=True, exclude_none=True),
        )
    return body
