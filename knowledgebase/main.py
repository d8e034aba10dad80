import uuid
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from knowledgebase.api import chat, conversations, debug, documents, fetch_url, search, stats, upload
from knowledgebase.core.config import Settings
from knowledgebase.core.database import Database
from knowledgebase.core.errors import KnowledgeBaseError, Unauthorized
from knowledgebase.core.rate_limit import RateLimiter
from knowledgebase.llm.llm import GeminiClient
from knowledgebase.retriever.web_search import WebSearchClient
from knowledgebase.utils.logger import clear_request_id, get_logger, init_logging, set_request_id

logger = get_logger("knowledgebase.main")


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


def create_app(
    settings: Optional[Settings] = None,
    *,
    llm_client=None,
    web_search=None,
    http_client: Optional[httpx.AsyncClient] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Build the application. Any collaborator passed in is used as-is instead
    of the one built from settings (tests pass fakes here).
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(settings.DATABASE_URL)
        await db.create_all()
        logger.info("Database tables created")

        owns_http_client = http_client is None
        client = http_client or httpx.AsyncClient(
            timeout=settings.URL_FETCH_TIMEOUT,
            max_redirects=settings.URL_FETCH_MAX_REDIRECTS,
        )

        app.state.settings = settings
        app.state.db = db
        app.state.http_client = client
        app.state.llm = llm_client or GeminiClient.from_settings(settings)
        app.state.web_search = web_search or WebSearchClient(
            client,
            settings.WEB_SEARCH_URL,
            enabled=settings.WEB_SEARCH_ENABLED,
        )
        app.state.rate_limiter = rate_limiter or RateLimiter(settings.REDIS_URL)

        if not app.state.llm.configured:
            logger.warning("GOOGLE_API_KEY is not set; answers will fall back to web search")
        logger.info("KnowledgeBase API started")

        yield

        logger.info("KnowledgeBase API shutting down")
        app.state.rate_limiter.close()
        if owns_http_client:
            await client.aclose()
        await db.dispose()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    # Available before startup so dependencies never see a missing attribute
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID middleware for request tracing
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        set_request_id(request_id)
        logger.info("Request started", extra={
            "method": request.method,
            "path": request.url.path,
        })
        try:
            response = await call_next(request)
            logger.info("Request completed", extra={"status_code": response.status_code})
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as e:
            logger.error("Request failed", extra={"error": str(e)})
            raise
        finally:
            clear_request_id()

    @app.exception_handler(KnowledgeBaseError)
    async def knowledgebase_error_handler(request: Request, exc: KnowledgeBaseError):
        if exc.status_code >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc.message}", extra={"path": request.url.path})
        else:
            logger.warning(f"{exc.__class__.__name__}: {exc.message}", extra={"path": request.url.path})
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        logger.warning("Request validation failed", extra={"path": request.url.path, "error": message})
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # Routes
    app.include_router(chat.router)
    app.include_router(search.router)
    app.include_router(documents.router)
    app.include_router(fetch_url.router)
    app.include_router(upload.router)
    app.include_router(stats.router)
    app.include_router(conversations.router)
    app.include_router(debug.router)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    return app


def build_app() -> FastAPI:
    """Entry point for ``uvicorn knowledgebase.main:app``."""
    settings = Settings()
    init_logging(level=settings.LOG_LEVEL, log_dir=settings.LOG_DIR)
    return create_app(settings)


app = build_app()
