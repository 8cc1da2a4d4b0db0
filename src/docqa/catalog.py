from __future__ import annotations

from docqa.documents import find_document, require_text
from docqa.errors import InvalidArgument
from docqa.models import Document, DocumentSearchResult
from docqa.runtime import Runtime
from docqa.snippets import build_snippet


def list_documents(runtime: Runtime, user_id: str) -> list[Document]:
    return sorted(runtime.documents.list_for_user(user_id), key=lambda d: d.uploaded_at)


def document_text(runtime: Runtime, document_id: str, user_id: str) -> str:
    return require_text(find_document(runtime.documents, document_id, user_id))


def search_documents(runtime: Runtime, query: str, user_id: str) -> list[DocumentSearchResult]:
    """Case-insensitive substring search over the user's extracted texts, one snippet per hit."""
    if query is None or not query.strip():
        raise InvalidArgument("Search query must not be empty.")
    needle = query.strip().lower()

    results: list[DocumentSearchResult] = []
    for document in list_documents(runtime, user_id):
        if not document.has_text or needle not in (document.raw_text or "").lower():
            continue
        results.append(
            DocumentSearchResult(
                document_id=document.id,
                document_name=document.display_name,
                snippet=build_snippet(document.raw_text, query),
            )
        )
    return results
