import html
import re
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import unquote

import httpx

from knowledgebase.core.errors import UpstreamFailure
from knowledgebase.utils.logger import get_logger
from knowledgebase.utils.url_extractor import BROWSER_HEADERS

logger = get_logger("knowledgebase.retriever.web_search")

# Results-page markup is not a stable API; these patterns break when it changes.
_RESULT_LINK_RE = re.compile(r'<a[^>]+href="(?:/url\?q=)?(https?://[^"&]+)[^"]*"[^>]*>\s*<h3[^>]*>(.*?)</h3>', re.S | re.I)
_TITLE_RE = re.compile(r"<h3[^>]*>(.*?)</h3>", re.S | re.I)
_SNIPPET_RE = re.compile(r'<div[^>]+class="[^"]*\bVwiC3b\b[^"]*"[^>]*>(.*?)</div>', re.S | re.I)
_TAG_RE = re.compile(r"<[^>]+>")


@dataclass
class WebSnippet:
    title: str
    snippet: str
    url: Optional[str] = None


def _strip_markup(fragment: str) -> str:
    text = html.unescape(_TAG_RE.sub(" ", fragment))
    return re.sub(r"\s+", " ", text).strip()


def parse_results(page: str, limit: int = 5) -> List[WebSnippet]:
    """Pull (title, snippet, url) triples out of a search results page."""
    linked = [(unquote(url), _strip_markup(title)) for url, title in _RESULT_LINK_RE.findall(page)]
    titles = [title for _, title in linked] or [_strip_markup(t) for t in _TITLE_RE.findall(page)]
    urls = [url for url, _ in linked]
    snippets = [_strip_markup(s) for s in _SNIPPET_RE.findall(page)]

    results: List[WebSnippet] = []
    for i, title in enumerate(titles):
        if not title:
            continue
        results.append(WebSnippet(
            title=title,
            snippet=snippets[i] if i < len(snippets) else "",
            url=urls[i] if i < len(urls) else None,
        ))
        if len(results) >= limit:
            break
    return results


class WebSearchClient:
    """Scrapes a public web search results page. Fragile by nature."""

    def __init__(self, http_client: httpx.AsyncClient, search_url: str, enabled: bool = True):
        self.http_client = http_client
        self.search_url = search_url
        self.enabled = enabled

    async def search(self, query: str, limit: int = 5) -> List[WebSnippet]:
        if not self.enabled:
            raise UpstreamFailure("Web search is disabled")

        logger.info("Web search started", extra={"query": query[:100], "limit": limit})
        try:
            response = await self.http_client.get(
                self.search_url,
                params={"q": query, "hl": "en"},
                headers=BROWSER_HEADERS,
                follow_redirects=True,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Web search request failed: {e}")
            raise UpstreamFailure(f"Web search failed: {e}") from e

        results = parse_results(response.text, limit=limit)
        if not results:
            logger.warning("Web search returned no parseable results")
            raise UpstreamFailure("No web search results")

        logger.info("Web search completed", extra={"result_count": len(results)})
        return results
