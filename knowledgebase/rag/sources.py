import re
from typing import Iterable, List, Sequence

from knowledgebase.models.document import KnowledgeDocument
from knowledgebase.schemas.search_schema import SourceRef

MAX_SOURCES = 5

# Question words that would otherwise match nearly every document
_IGNORED_TERMS = frozenset({
    "what", "how", "why", "who", "when", "where", "which", "the", "and",
    "does", "did", "are", "was", "were", "about", "tell", "with", "for",
    "this", "that", "you", "your", "can", "could", "please",
})


def query_terms(query: str) -> List[str]:
    terms = []
    for term in re.findall(r"\w+", (query or "").lower()):
        if len(term) > 2 and term not in _IGNORED_TERMS and term not in terms:
            terms.append(term)
    return terms


def to_source_ref(doc: KnowledgeDocument) -> SourceRef:
    return SourceRef(
        id=doc.id,
        title=doc.title,
        type=doc.type,
        url=doc.source if doc.type == "web" else None,
    )


def _dedupe(docs: Iterable[KnowledgeDocument]) -> List[KnowledgeDocument]:
    seen = set()
    unique = []
    for doc in docs:
        if doc.id not in seen:
            seen.add(doc.id)
            unique.append(doc)
    return unique


def find_relevant_sources(
    query: str,
    answer: str,
    documents: Sequence[KnowledgeDocument],
    *,
    pinned: Sequence[KnowledgeDocument] = (),
    limit: int = MAX_SOURCES,
) -> List[SourceRef]:
    """
    A document is relevant when a query term shows up in its title or text,
    or its title is echoed in the answer. No ranking; ``pinned`` documents
    (the ones sent to the model) come first.
    """
    terms = query_terms(query)
    answer_lower = (answer or "").lower()

    relevant = []
    for doc in documents:
        title = (doc.title or "").lower()
        haystack = f"{title} {doc.plain_text.lower()}"
        if any(term in haystack for term in terms) or (title and title in answer_lower):
            relevant.append(doc)

    return [to_source_ref(doc) for doc in _dedupe([*pinned, *relevant])[:limit]]


def keyword_match(query: str, documents: Sequence[KnowledgeDocument], *, limit: int = MAX_SOURCES) -> List[KnowledgeDocument]:
    """Plain substring match of query terms over titles and content."""
    terms = query_terms(query)
    if not terms:
        return []
    matches = []
    for doc in documents:
        haystack = f"{doc.title} {doc.source} {doc.plain_text}".lower()
        if any(term in haystack for term in terms):
            matches.append(doc)
    return matches[:limit]
