import json

from knowledgebase.models.document import KnowledgeDocument
from knowledgebase.rag.context import assemble_context
from knowledgebase.rag.sources import find_relevant_sources, keyword_match, query_terms


def make_doc(doc_id, title, content, doc_type="file", source="notes.txt"):
    return KnowledgeDocument(id=doc_id, title=title, type=doc_type, source=source, content=content, owner_id="user-1")


def pdf_doc(doc_id="pdf-1", title="Resume"):
    content = json.dumps({
        "type": "pdf",
        "textContent": "Jane Doe resume",
        "fileData": {"base64": "JVBERi0xLjQK", "mimeType": "application/pdf", "fileName": "resume.pdf"},
    })
    return make_doc(doc_id, title, content, source="resume.pdf")


def test_text_documents_get_headers():
    docs = [
        make_doc("a", "Recipes", "Bake at 200 degrees."),
        make_doc("b", "Blog", "A post about hiking.", doc_type="web", source="https://blog.example.com"),
    ]

    context = assemble_context(docs, "summarize my notes")

    assert "--- Recipes (document: notes.txt) ---\nBake at 200 degrees." in context.text
    assert "--- Blog (web page: https://blog.example.com) ---" in context.text
    assert not context.is_general_knowledge
    assert context.budget == 20000


def test_pdf_documents_are_not_inlined():
    context = assemble_context([pdf_doc(), make_doc("a", "Notes", "some text")], "summarize my resume")

    assert "JVBERi0xLjQK" not in context.text
    assert "Jane Doe resume" not in context.text
    assert [d.id for d in context.text_documents] == ["a"]
    assert context.primary_pdf.document.id == "pdf-1"


def test_general_knowledge_uses_small_budget():
    docs = [make_doc("a", "Big", "x" * 12000)]

    context = assemble_context(docs, "what is photosynthesis")

    assert context.is_general_knowledge
    assert len(context.text) == 5000
    assert context.truncated


def test_document_budget_truncates():
    docs = [make_doc(str(i), f"Doc {i}", "y" * 9000) for i in range(3)]

    context = assemble_context(docs, "summarize my documents", document_budget=20000)

    assert len(context.text) == 20000
    assert context.truncated


def test_query_terms_skip_short_and_question_words():
    assert query_terms("What is the Python GIL?") == ["python", "gil"]


def test_relevant_sources_match_title_content_or_answer():
    docs = [
        make_doc("a", "Python tips", "Use list comprehensions."),
        make_doc("b", "Garden", "Tomatoes need sun."),
        make_doc("c", "Travel log", "Trip to Rome.", doc_type="web", source="https://travel.example.com"),
    ]

    sources = find_relevant_sources("python advice", "See your Travel log for more.", docs)

    assert [s.id for s in sources] == ["a", "c"]
    assert sources[0].url is None
    assert sources[1].url == "https://travel.example.com"


def test_pinned_document_comes_first_and_sources_are_capped():
    docs = [make_doc(str(i), f"Python {i}", "python") for i in range(8)]
    pinned = pdf_doc()

    sources = find_relevant_sources("python", "", docs, pinned=[pinned])

    assert len(sources) == 5
    assert sources[0].id == "pdf-1"


def test_keyword_match():
    docs = [make_doc("a", "Kubernetes", "pods and services"), make_doc("b", "Cooking", "pasta")]
    assert [d.id for d in keyword_match("how do pods restart", docs)] == ["a"]
    assert keyword_match("what is it", docs) == []
