from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from docqa.chunk_store import write_json_atomic
from docqa.errors import NotFound, PreconditionFailed
from docqa.models import Document, DocumentStatus, DocumentSummary

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    def get(self, document_id: str) -> Document | None: ...

    def save(self, document: Document) -> Document: ...

    def list_for_user(self, user_id: str) -> list[Document]: ...

    def add_summary(self, summary: DocumentSummary) -> DocumentSummary: ...

    def summaries_for(self, document_id: str) -> list[DocumentSummary]: ...


class InMemoryDocumentStore:
    def __init__(self, documents: list[Document] | None = None) -> None:
        self._documents: dict[str, Document] = {d.id: d for d in documents or []}
        self._summaries: dict[str, list[DocumentSummary]] = {}

    def get(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    def save(self, document: Document) -> Document:
        self._documents[document.id] = document
        return document

    def list_for_user(self, user_id: str) -> list[Document]:
        return [d for d in self._documents.values() if d.user_id == user_id]

    def add_summary(self, summary: DocumentSummary) -> DocumentSummary:
        self._summaries.setdefault(summary.document_id, []).append(summary)
        return summary

    def summaries_for(self, document_id: str) -> list[DocumentSummary]:
        return list(self._summaries.get(document_id, []))


def _document_to_record(document: Document) -> dict[str, Any]:
    return {
        "id": document.id,
        "user_id": document.user_id,
        "original_file_name": document.original_file_name,
        "stored_file_path": document.stored_file_path,
        "mime_type": document.mime_type,
        "size_in_bytes": document.size_in_bytes,
        "uploaded_at": document.uploaded_at.isoformat(),
        "status": document.status.value,
        "raw_text": document.raw_text,
    }


def _record_to_document(record: dict[str, Any]) -> Document:
    return Document(
        id=str(record["id"]),
        user_id=str(record["user_id"]),
        original_file_name=record.get("original_file_name"),
        stored_file_path=record.get("stored_file_path"),
        mime_type=record.get("mime_type"),
        size_in_bytes=int(record.get("size_in_bytes") or 0),
        uploaded_at=datetime.fromisoformat(record["uploaded_at"]),
        status=DocumentStatus(record.get("status", DocumentStatus.UPLOADED.value)),
        raw_text=record.get("raw_text"),
    )


def _empty_index() -> dict[str, Any]:
    return {"version": 1, "documents": {}, "summaries": {}}


class JsonDocumentStore:
    """Documents and summaries kept in a single JSON index file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return _empty_index()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.error("Document index %s is corrupt; starting empty", self.path)
            return _empty_index()
        if not isinstance(data, dict):
            return _empty_index()
        data.setdefault("version", 1)
        data.setdefault("documents", {})
        data.setdefault("summaries", {})
        return data

    def get(self, document_id: str) -> Document | None:
        record = self._load()["documents"].get(document_id)
        return _record_to_document(record) if record else None

    def save(self, document: Document) -> Document:
        with self._lock:
            index = self._load()
            index["documents"][document.id] = _document_to_record(document)
            write_json_atomic(self.path, index)
        return document

    def list_for_user(self, user_id: str) -> list[Document]:
        records = self._load()["documents"].values()
        return [_record_to_document(r) for r in records if str(r.get("user_id")) == user_id]

    def add_summary(self, summary: DocumentSummary) -> DocumentSummary:
        with self._lock:
            index = self._load()
            index["summaries"].setdefault(summary.document_id, []).append(
                {
                    "document_id": summary.document_id,
                    "summary_text": summary.summary_text,
                    "created_at": summary.created_at.isoformat(),
                }
            )
            write_json_atomic(self.path, index)
        return summary

    def summaries_for(self, document_id: str) -> list[DocumentSummary]:
        records = self._load()["summaries"].get(document_id, [])
        return [
            DocumentSummary(
                document_id=str(r["document_id"]),
                summary_text=str(r["summary_text"]),
                created_at=datetime.fromisoformat(r["created_at"]),
            )
            for r in records
        ]


def find_document(store: DocumentStore, document_id: str, user_id: str) -> Document:
    """Fetch a document owned by ``user_id``; someone else's document is reported as missing."""
    document = store.get(document_id)
    if document is None or document.user_id != user_id:
        raise NotFound(f"Document not found: {document_id}")
    return document


def require_text(document: Document) -> str:
    if not document.has_text:
        raise PreconditionFailed(f"Text has not been extracted for document {document.id}")
    return document.raw_text or ""
