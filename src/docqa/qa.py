from __future__ import annotations

import logging

from docqa.documents import find_document, require_text
from docqa.errors import InvalidArgument
from docqa.llm import ChatClient, system_and_user
from docqa.models import QaResult, ScoredChunk
from docqa.retriever import retrieve_chunks
from docqa.runtime import Runtime, load_prompt
from docqa.snippets import build_snippet, truncate_snippet

logger = logging.getLogger(__name__)

MAX_CONTEXT_CHARS = 6000
QA_TEMPERATURE = 0.1
QA_SYSTEM_PROMPT = "You are a careful analyst that answers strictly from the provided document."
MULTI_QA_SYSTEM_PROMPT = "You are a careful analyst that answers strictly from the provided documents."
UNAVAILABLE_ANSWER = "AI temporarily unavailable. Unable to answer the question."


def _require_question(question: str | None) -> str:
    if question is None or not question.strip():
        raise InvalidArgument("Question must not be empty.")
    return question.strip()


def _build_context(chunks: list[ScoredChunk]) -> str:
    return "\n\n".join(scored.chunk.text for scored in chunks)


def _snippet_from_chunks(chunks: list[ScoredChunk]) -> str:
    if not chunks:
        return ""
    return truncate_snippet(chunks[0].chunk.text)


def _ask(chat: ChatClient, system_prompt: str, prompt: str) -> str:
    result = chat.complete(system_and_user(system_prompt, prompt), temperature=QA_TEMPERATURE)
    if not result.ok or result.value is None:
        logger.warning(
            "Answer degraded: provider %s (status=%s, %s)",
            result.status.value,
            result.status_code,
            result.error,
        )
        return UNAVAILABLE_ANSWER
    return result.value


def answer_question(runtime: Runtime, document_id: str, question: str, user_id: str) -> QaResult:
    """Answer ``question`` from one document.

    Uses the top-K chunks when the document has been embedded and the whole
    extracted text otherwise. Provider failures produce a fixed "unavailable"
    answer instead of an error.
    """
    question = _require_question(question)
    document = find_document(runtime.documents, document_id, user_id)
    raw_text = require_text(document)

    top_chunks = retrieve_chunks(
        document_id=document.id,
        question=question,
        chunk_store=runtime.chunks,
        embedder=runtime.embedder,
        k=runtime.settings.top_k,
    )
    if top_chunks:
        context = _build_context(top_chunks)
        snippet = _snippet_from_chunks(top_chunks)
    else:
        logger.info("No chunks for document %s; answering from full text", document.id)
        context = raw_text
        snippet = build_snippet(raw_text, question)

    template = load_prompt("qa_prompt.txt")
    prompt = template.format(context=context[:MAX_CONTEXT_CHARS], question=question)
    answer = _ask(runtime.chat, QA_SYSTEM_PROMPT, prompt)

    return QaResult(
        document_ids=[document.id],
        document_names=[document.display_name],
        question=question,
        answer=answer,
        source_snippet=snippet,
    )


def _build_multi_context(texts: list[str], names: list[str]) -> str:
    share = max(1, MAX_CONTEXT_CHARS // len(texts))
    parts: list[str] = []
    for i, (name, text) in enumerate(zip(names, texts), start=1):
        parts.append(f"Document {i}: {name}\n{text[:share]}")
    return "\n\n".join(parts)


def answer_question_multi(
    runtime: Runtime,
    document_ids: list[str],
    question: str,
    user_id: str,
) -> QaResult:
    """Answer ``question`` across several documents using each document's full text."""
    question = _require_question(question)
    if not document_ids:
        raise InvalidArgument("At least one document ID must be provided.")

    documents = [find_document(runtime.documents, doc_id, user_id) for doc_id in document_ids]
    texts = [require_text(doc) for doc in documents]
    names = [doc.display_name for doc in documents]

    template = load_prompt("multi_qa_prompt.txt")
    prompt = template.format(context=_build_multi_context(texts, names), question=question)
    answer = _ask(runtime.chat, MULTI_QA_SYSTEM_PROMPT, prompt)

    return QaResult(
        document_ids=[doc.id for doc in documents],
        document_names=names,
        question=question,
        answer=answer,
        source_snippet=build_snippet(texts[0], question),
    )
