from __future__ import annotations

from docqa.chunking import normalize_whitespace

ELLIPSIS = "…"
SNIPPET_RADIUS = 120
MIN_TOKEN_LENGTH = 3
DISPLAY_LIMIT = 300


def find_anchor(text: str, question: str) -> int:
    """Index of the first question token (3+ chars, in question order) found in ``text``, else 0.

    Stops at the first hit; a later, more specific token is never considered.
    """
    lower_text = text.lower()
    for token in question.lower().split():
        if len(token) < MIN_TOKEN_LENGTH:
            continue
        index = lower_text.find(token)
        if index != -1:
            return index
    return 0


def build_snippet(text: str | None, question: str) -> str:
    normalized = normalize_whitespace(text)
    if not normalized:
        return ""

    anchor = find_anchor(normalized, question)
    start = max(0, anchor - SNIPPET_RADIUS)
    end = min(len(normalized), anchor + SNIPPET_RADIUS)
    snippet = normalized[start:end]
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(normalized):
        snippet = snippet + ELLIPSIS
    return snippet


def truncate_snippet(text: str, limit: int = DISPLAY_LIMIT) -> str:
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text
