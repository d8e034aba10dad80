import httpx
import pytest

from knowledgebase.core.errors import UpstreamFailure
from knowledgebase.retriever.web_search import WebSearchClient, parse_results

RESULTS_PAGE = """
<html><body>
<div class="g">
  <a href="/url?q=https://en.wikipedia.org/wiki/Photosynthesis&amp;sa=U"><h3 class="LC20lb">Photosynthesis - Wikipedia</h3></a>
  <div class="VwiC3b yXK7lf">Photosynthesis is a process used by plants &amp; other organisms.</div>
</div>
<div class="g">
  <a href="https://www.britannica.com/science/photosynthesis"><h3>Photosynthesis | Britannica</h3></a>
  <div class="VwiC3b">The process by which green plants transform <em>light energy</em> into chemical energy.</div>
</div>
</body></html>
"""


def test_parse_results():
    results = parse_results(RESULTS_PAGE)

    assert [r.title for r in results] == ["Photosynthesis - Wikipedia", "Photosynthesis | Britannica"]
    assert results[0].url == "https://en.wikipedia.org/wiki/Photosynthesis"
    assert results[0].snippet == "Photosynthesis is a process used by plants & other organisms."
    assert "light energy" in results[1].snippet


def test_parse_results_respects_limit():
    assert len(parse_results(RESULTS_PAGE, limit=1)) == 1


def test_parse_results_empty_page():
    assert parse_results("<html><body>No results</body></html>") == []


@pytest.mark.asyncio
async def test_search_sends_query():
    seen = {}

    def handler(request):
        seen["q"] = request.url.params["q"]
        return httpx.Response(200, text=RESULTS_PAGE)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        results = await WebSearchClient(http, "https://search.example.com/search").search("photosynthesis")

    assert seen["q"] == "photosynthesis"
    assert len(results) == 2


@pytest.mark.asyncio
async def test_search_without_results_fails():
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html></html>"))) as http:
        with pytest.raises(UpstreamFailure):
            await WebSearchClient(http, "https://search.example.com/search").search("anything")


@pytest.mark.asyncio
async def test_disabled_search_fails():
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, text=RESULTS_PAGE))) as http:
        with pytest.raises(UpstreamFailure):
            await WebSearchClient(http, "https://search.example.com/search", enabled=False).search("anything")
