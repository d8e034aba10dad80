"""
Fetch a web page and pull a title and readable body text out of it.

The extractor fails soft: network errors, error statuses and unparseable
pages all come back as an ``ExtractedPage`` whose ``content`` describes the
failure, so callers can still create a document record.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from knowledgebase.core.errors import InvalidURL
from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.utils.url_extractor")

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

NOISE_TAGS = ["script", "style", "nav", "header", "footer", "aside", "noscript", "iframe"]

# Class/id tokens of ad slots, cookie banners and overlays
_NOISE_TOKEN_RE = re.compile(r"^(ads?|advert\w*|advertisement|ad[-_][\w-]+|cookie[\w-]*|popup|modal)$", re.I)

CONTENT_SELECTORS = [
    '[role="main"]',
    "main",
    "article",
    ".content",
    ".post-content",
    ".article-content",
    ".entry-content",
    ".page-content",
    "#content",
    "#main-content",
    ".main-content",
]

MIN_SELECTOR_CHARS = 100
MIN_PARAGRAPH_CHARS = 50
MIN_USEFUL_CHARS = 20
SENTENCE_CUT_MIN_CHARS = 6000


@dataclass
class ExtractedPage:
    url: str
    title: str
    content: str
    description: str = ""
    warning: Optional[str] = None
    error: Optional[str] = None
    extracted_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def failed(self) -> bool:
        return self.error is not None


def validate_url(url: Optional[str]):
    if not url or not url.strip():
        raise InvalidURL("URL is required")
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise InvalidURL("Invalid URL format")
    return parsed


def _is_noise(tag) -> bool:
    if tag.name in NOISE_TAGS:
        return True
    tokens = list(tag.get("class") or [])
    tag_id = tag.get("id")
    if tag_id:
        tokens.append(tag_id)
    return any(_NOISE_TOKEN_RE.match(token) for token in tokens)


def _strip_noise(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(_is_noise):
        # children of an already removed parent are gone too
        if not getattr(tag, "decomposed", False):
            tag.decompose()


def _meta(soup: BeautifulSoup, **attrs) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return tag["content"].strip()
    return ""


def extract_title(soup: BeautifulSoup, hostname: str) -> str:
    candidates = [
        _meta(soup, property="og:title"),
        _meta(soup, name="twitter:title"),
        soup.title.get_text() if soup.title else "",
    ]
    for heading in ("h1", "h2"):
        tag = soup.find(heading)
        candidates.append(tag.get_text() if tag else "")

    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return hostname


def extract_body_text(soup: BeautifulSoup) -> str:
    content = ""
    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is not None:
            content = element.get_text(" ")
            break

    if len(content.strip()) < MIN_SELECTOR_CHARS:
        content = "\n\n".join(p.get_text(" ") for p in soup.find_all("p"))

    if len(content.strip()) < MIN_PARAGRAPH_CHARS:
        root = soup.body or soup
        content = root.get_text(" ")

    return content


def clean_text(text: str, max_chars: int = 8000) -> str:
    text = re.sub(r"\s+", " ", text).strip()
    if len(text) > max_chars:
        text = text[:max_chars]
        last_sentence = text.rfind(".")
        if last_sentence > min(SENTENCE_CUT_MIN_CHARS, max_chars * 3 // 4):
            text = text[:last_sentence + 1]
    return text


def parse_html(html: str, url: str, *, max_chars: int = 8000) -> ExtractedPage:
    hostname = urlparse(url).hostname or url
    soup = BeautifulSoup(html, "html.parser")

    description = _meta(soup, name="description") or _meta(soup, property="og:description")
    _strip_noise(soup)

    title = extract_title(soup, hostname)
    content = clean_text(extract_body_text(soup), max_chars=max_chars)

    if len(content) < MIN_USEFUL_CHARS:
        return ExtractedPage(
            url=url,
            title=title or hostname,
            content=f"Content from {url}\n\n[Content extraction failed - please check the URL manually]",
            description=description,
            warning="Limited content could be extracted from this page",
        )

    return ExtractedPage(url=url, title=title, content=content, description=description)


async def extract_url_content(
    url: str,
    client: httpx.AsyncClient,
    *,
    timeout: float = 15.0,
    max_chars: int = 8000,
) -> ExtractedPage:
    """
    Fetch ``url`` and extract title/content.

    Raises InvalidURL for malformed input; every later failure is returned
    as a degraded page instead of raised.
    """
    parsed = validate_url(url)
    url = url.strip()
    logger.info("Fetching content from URL", extra={"url": url})

    try:
        response = await client.get(url, headers=BROWSER_HEADERS, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
        if not response.text:
            raise ValueError("No content received from URL")
        page = parse_html(response.text, url, max_chars=max_chars)
    except Exception as e:
        logger.warning("Failed to extract content from URL", extra={"url": url, "error": str(e)}, exc_info=True)
        return ExtractedPage(
            url=url,
            title=parsed.hostname,
            content=(
                f"URL: {url}\n\nFailed to extract content from this webpage.\n"
                f"Error: {e}\n\nPlease verify the URL is accessible and try again."
            ),
            error=str(e) or e.__class__.__name__,
        )

    logger.info("Extracted URL content", extra={
        "url": url,
        "title": page.title,
        "content_length": len(page.content),
        "warning": page.warning,
    })
    return page
