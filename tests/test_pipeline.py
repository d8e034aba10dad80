import json

import pytest

from knowledgebase.core.config import Settings
from knowledgebase.core.errors import EmptyGeneration, UpstreamFailure
from knowledgebase.models.document import KnowledgeDocument
from knowledgebase.rag.pipeline import AnswerGenerator, Answered, AnswerTier
from knowledgebase.retriever.web_search import WebSnippet

from conftest import FakeLLM, FakeWebSearch


def make_doc(doc_id, title, content, doc_type="file"):
    return KnowledgeDocument(id=doc_id, title=title, type=doc_type, source="src", content=content, owner_id="user-1")


def resume_pdf():
    return make_doc("pdf-1", "Resume", json.dumps({
        "type": "pdf",
        "textContent": "[PDF Document: resume.pdf]",
        "fileData": {"base64": "JVBERi0xLjQK", "mimeType": "application/pdf", "fileName": "resume.pdf"},
    }))


@pytest.fixture
def settings():
    return Settings(_env_file=None, GOOGLE_API_KEY="test-key")


@pytest.mark.asyncio
async def test_primary_general_knowledge(settings):
    llm = FakeLLM(reply="Photosynthesis turns light into chemical energy.")

    result = await AnswerGenerator(llm, FakeWebSearch(), settings).answer("what is photosynthesis", [])

    assert isinstance(result, Answered)
    assert result.tier is AnswerTier.PRIMARY
    assert result.is_general_knowledge
    assert result.sources == []
    assert "general-knowledge question" in llm.calls[0]["prompt"]


@pytest.mark.asyncio
async def test_primary_document_prompt_includes_context(settings):
    llm = FakeLLM(reply="You wrote about tomatoes.")
    docs = [make_doc("a", "Garden notes", "Tomatoes need six hours of sun.")]

    result = await AnswerGenerator(llm, FakeWebSearch(), settings).answer("summarize my garden notes", docs)

    assert result.tier is AnswerTier.PRIMARY
    assert not result.is_general_knowledge
    assert [s.id for s in result.sources] == ["a"]
    prompt = llm.calls[0]["prompt"]
    assert "ONLY" in prompt
    assert "Tomatoes need six hours of sun." in prompt
    assert llm.calls[0]["pdf_base64"] is None


@pytest.mark.asyncio
async def test_primary_sends_first_pdf_inline(settings):
    llm = FakeLLM(reply="Jane is a Python developer.")
    docs = [resume_pdf(), make_doc("b", "Unrelated", "Cooking pasta.")]

    result = await AnswerGenerator(llm, FakeWebSearch(), settings).answer("summarize my resume", docs)

    assert result.tier is AnswerTier.PRIMARY
    assert result.sources[0].id == "pdf-1"
    assert llm.calls[0]["pdf_base64"] == "JVBERi0xLjQK"
    assert "You are analyzing a PDF document." in llm.calls[0]["prompt"]
    assert "User Question: summarize my resume" in llm.calls[0]["prompt"]


@pytest.mark.asyncio
async def test_empty_generation_falls_back_to_web(settings):
    llm = FakeLLM(error=EmptyGeneration("The model returned an empty answer"))
    web = FakeWebSearch([WebSnippet("Photosynthesis - Wikipedia", "A process used by plants.", "https://en.wikipedia.org/wiki/Photosynthesis")])

    result = await AnswerGenerator(llm, web, settings).answer("what is photosynthesis", [])

    assert result.tier is AnswerTier.SECONDARY
    assert "Photosynthesis - Wikipedia: A process used by plants." in result.text
    assert "https://en.wikipedia.org/wiki/Photosynthesis" in result.text
    assert web.queries == ["what is photosynthesis"]


@pytest.mark.asyncio
async def test_tertiary_keyword_match(settings):
    llm = FakeLLM(error=UpstreamFailure("Missing GOOGLE_API_KEY"))
    docs = [make_doc("a", "Kubernetes notes", "pods and services"), make_doc("b", "Cooking", "pasta")]

    result = await AnswerGenerator(llm, FakeWebSearch(), settings).answer("how do kubernetes pods restart", docs)

    assert result.tier is AnswerTier.TERTIARY
    assert result.text == "I found 1 document(s) in your knowledge base that may be relevant to your question."
    assert [s.id for s in result.sources] == ["a"]


@pytest.mark.asyncio
async def test_tertiary_without_matches(settings):
    llm = FakeLLM(error=UpstreamFailure("boom"))

    result = await AnswerGenerator(llm, FakeWebSearch(), settings).answer("summarize my notes", [])

    assert result.tier is AnswerTier.TERTIARY
    assert result.text == "I could not find relevant items in your knowledge base yet."
    assert result.sources == []
