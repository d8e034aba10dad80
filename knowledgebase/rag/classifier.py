"""
Keyword/regex gate deciding whether a question is general knowledge
("what is photosynthesis") or about the user's own content
("summarize my resume"). Pure and deterministic.
"""
import re
from typing import Optional

_PERSONAL = r"(?!.*\b(my|me|mine|i|our|your|this|these|that)\b)"

GENERAL_KNOWLEDGE_PATTERNS = [
    re.compile(r"^(define|definition of|meaning of)\s+\w+"),
    re.compile(r"^what\s+(is|are|was|were)\s+" + _PERSONAL + r"(a\s+|an\s+|the\s+)?[\w\s'-]+\??$"),
    re.compile(r"^what\s+does\s+" + _PERSONAL + r"[\w\s'-]+\s+mean\??$"),
    re.compile(r"^how\s+(does|do|did|can)\s+" + _PERSONAL + r"[\w\s'-]+\s+work\??$"),
    re.compile(r"^tell\s+me\s+about\s+" + _PERSONAL + r"(?!.*\b(document|file|pdf|resume)\b)"),
    re.compile(r"^(explain|describe)\s+" + _PERSONAL + r"(?!.*\b(document|file|pdf|resume)\b)"),
    re.compile(r"^(why|when|where)\s+(is|are|was|were|do|does|did)\s+" + _PERSONAL),
]

GENERIC_QUESTION_PREFIXES = (
    "what", "how", "why", "who", "when", "where", "which",
    "can you explain", "could you explain", "explain", "define", "tell me",
)

PERSONAL_TERMS = frozenset({
    "my", "mine", "me", "i", "i'm", "i've", "our", "resume", "cv",
    "document", "documents", "doc", "docs", "file", "files", "pdf",
    "upload", "uploaded", "saved", "link", "links", "note", "notes",
})


def normalize_query(query: str) -> str:
    return re.sub(r"\s+", " ", (query or "").strip().lower())


def matches_general_pattern(query: str) -> bool:
    q = normalize_query(query)
    return any(pattern.search(q) for pattern in GENERAL_KNOWLEDGE_PATTERNS)


def mentions_personal_terms(query: str, owner_name: Optional[str] = None) -> bool:
    tokens = set(re.findall(r"[a-z0-9']+", normalize_query(query)))
    if tokens & PERSONAL_TERMS:
        return True
    if owner_name:
        name_tokens = {t for t in re.findall(r"[a-z0-9']+", owner_name.lower()) if len(t) > 1}
        if tokens & name_tokens:
            return True
    return False


def starts_with_generic_phrase(query: str) -> bool:
    q = normalize_query(query)
    return any(q == prefix or q.startswith(prefix + " ") for prefix in GENERIC_QUESTION_PREFIXES)


def is_general_knowledge(query: str, owner_name: Optional[str] = None) -> bool:
    """Pattern match OR (generic question phrase AND nothing personal)."""
    if matches_general_pattern(query):
        return True
    return starts_with_generic_phrase(query) and not mentions_personal_terms(query, owner_name)
