import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from knowledgebase.core.config import Settings
from knowledgebase.core.errors import UpstreamFailure
from knowledgebase.core.rate_limit import RateLimiter
from knowledgebase.core.security import create_access_token
from knowledgebase.main import create_app
from knowledgebase.models.document import KnowledgeDocument

ARTICLE_URL = "https://example.com/article"

ARTICLE_HTML = """
<html>
  <head>
    <title>Photosynthesis Explained</title>
    <meta name="description" content="How plants turn light into sugar.">
  </head>
  <body>
    <nav>Home | About | Contact</nav>
    <div class="ads">Buy now!</div>
    <article>
      <h1>Photosynthesis Explained</h1>
      <p>Photosynthesis is the process by which green plants use sunlight to make food from carbon dioxide and water.</p>
      <p>It happens in the chloroplasts and releases oxygen as a by-product, which most life on Earth depends on.</p>
    </article>
    <footer>Copyright 2024</footer>
  </body>
</html>
"""


class FakeLLM:
    """Stands in for GeminiClient; records every prompt it is given."""

    def __init__(self, reply="Fake answer", error=None, configured=True):
        self.reply = reply
        self.error = error
        self.configured = configured
        self.calls = []

    async def generate(self, prompt, *, pdf_base64=None, pdf_mime="application/pdf"):
        self.calls.append({"prompt": prompt, "pdf_base64": pdf_base64, "pdf_mime": pdf_mime})
        if self.error is not None:
            raise self.error
        return self.reply


class FakeWebSearch:
    def __init__(self, results=None):
        self.results = results or []
        self.queries = []

    async def search(self, query, limit=5):
        self.queries.append(query)
        if not self.results:
            raise UpstreamFailure("No web search results")
        return self.results[:limit]


def mock_handler(request: httpx.Request) -> httpx.Response:
    if str(request.url) == ARTICLE_URL:
        return httpx.Response(200, text=ARTICLE_HTML, headers={"content-type": "text/html"})
    return httpx.Response(404, text="Not found")


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture
def settings(db_path):
    return Settings(
        _env_file=None,
        JWT_SECRET_KEY="test-secret",
        DATABASE_URL=f"sqlite+aiosqlite:///{db_path}",
        GOOGLE_API_KEY="test-key",
        REDIS_URL="",
        MAX_UPLOAD_MB=1,
    )


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def fake_web_search():
    return FakeWebSearch()


@pytest.fixture
def http_client():
    return httpx.AsyncClient(transport=httpx.MockTransport(mock_handler))


@pytest.fixture
def app(settings, fake_llm, fake_web_search, http_client):
    return create_app(
        settings,
        llm_client=fake_llm,
        web_search=fake_web_search,
        http_client=http_client,
        rate_limiter=RateLimiter(),
    )


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(settings):
    def make(sub="user-1", name=None):
        claims = {"sub": sub}
        if name:
            claims["name"] = name
        return {"Authorization": f"Bearer {create_access_token(claims, settings)}"}
    return make


@pytest.fixture
def insert_document(db_path):
    """Write a row straight to the database, bypassing the API (e.g. ownerless rows)."""
    def insert(**fields):
        engine = create_engine(f"sqlite:///{db_path}")
        try:
            with Session(engine) as session:
                doc = KnowledgeDocument(**fields)
                session.add(doc)
                session.commit()
                return doc.id
        finally:
            engine.dispose()
    return insert
