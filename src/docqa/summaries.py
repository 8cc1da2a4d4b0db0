from __future__ import annotations

import logging

from docqa.documents import find_document, require_text
from docqa.errors import NotFound
from docqa.llm import system_and_user
from docqa.models import DocumentSummary
from docqa.runtime import Runtime, load_prompt
from docqa.snippets import ELLIPSIS

logger = logging.getLogger(__name__)

MAX_SUMMARY_INPUT_CHARS = 4000
SUMMARY_TEMPERATURE = 0.3
SUMMARY_SYSTEM_PROMPT = "You are a helpful assistant that summarizes documents."
FALLBACK_MARKER = "Fallback summary (AI unavailable):"
MAX_FALLBACK_BULLETS = 10
MAX_BULLET_CHARS = 180


def fallback_summary(text: str) -> str:
    """Extractive bullets: the first non-blank lines of ``text``, each cut to 180 characters."""
    lines = [FALLBACK_MARKER]
    for paragraph in text.splitlines():
        trimmed = paragraph.strip()
        if not trimmed:
            continue
        if len(trimmed) > MAX_BULLET_CHARS:
            trimmed = trimmed[:MAX_BULLET_CHARS] + ELLIPSIS
        lines.append(f"- {trimmed}")
        if len(lines) > MAX_FALLBACK_BULLETS:
            break
    if len(lines) == 1:
        lines.append(f"- {text[:MAX_BULLET_CHARS]}")
    return "\n".join(lines) + "\n"


def summarize(runtime: Runtime, document_id: str, user_id: str) -> str:
    document = find_document(runtime.documents, document_id, user_id)
    text = require_text(document)[:MAX_SUMMARY_INPUT_CHARS]

    prompt = load_prompt("summary_prompt.txt").format(text=text)
    result = runtime.chat.complete(
        system_and_user(SUMMARY_SYSTEM_PROMPT, prompt),
        temperature=SUMMARY_TEMPERATURE,
    )
    if result.ok and result.value is not None:
        summary_text = result.value
    else:
        logger.warning(
            "Summary for document %s degraded to extractive fallback: %s (status=%s)",
            document.id,
            result.error,
            result.status_code,
        )
        summary_text = fallback_summary(text)

    runtime.documents.add_summary(DocumentSummary(document_id=document.id, summary_text=summary_text))
    return summary_text


def latest_summary(runtime: Runtime, document_id: str, user_id: str) -> DocumentSummary:
    document = find_document(runtime.documents, document_id, user_id)
    summaries = runtime.documents.summaries_for(document.id)
    if not summaries:
        raise NotFound(f"No summary found for document {document_id}")
    return max(reversed(summaries), key=lambda s: s.created_at)
