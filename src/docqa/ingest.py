from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from docqa.chunking import split_into_chunks
from docqa.documents import find_document, require_text
from docqa.errors import DocQAError, InvalidArgument, PreconditionFailed
from docqa.models import Chunk, Document, DocumentStatus, utc_now
from docqa.runtime import Runtime
from docqa.vectors import serialize_vector

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


def _read_pdf_text(pdf_path: Path) -> str:
    reader = PdfReader(str(pdf_path))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def register_upload(runtime: Runtime, source: Path, user_id: str) -> Document:
    """Copy a PDF into the upload directory and record it as UPLOADED."""
    if not source.is_file():
        raise InvalidArgument(f"File does not exist: {source}")
    if source.suffix.lower() != ".pdf":
        raise InvalidArgument(f"Only PDF files are supported, got: {source.name}")

    upload_dir = runtime.settings.upload_dir
    upload_dir.mkdir(parents=True, exist_ok=True)
    document_id = uuid.uuid4().hex
    target = upload_dir / f"{document_id}{source.suffix.lower()}"
    shutil.copyfile(source, target)

    document = Document(
        id=document_id,
        user_id=user_id,
        original_file_name=source.name,
        stored_file_path=str(target),
        mime_type=PDF_MIME_TYPE,
        size_in_bytes=target.stat().st_size,
        uploaded_at=utc_now(),
        status=DocumentStatus.UPLOADED,
    )
    logger.info("Registered upload %s as document %s", source.name, document_id)
    return runtime.documents.save(document)


def extract_text(runtime: Runtime, document_id: str, user_id: str) -> Document:
    """Extract the stored PDF's text, then try to (re)create embeddings.

    An embedding failure is logged and does not fail the extraction.
    """
    document = find_document(runtime.documents, document_id, user_id)
    if not document.stored_file_path or not Path(document.stored_file_path).is_file():
        raise PreconditionFailed(f"Stored file is missing on disk for document {document_id}")

    try:
        document.raw_text = _read_pdf_text(Path(document.stored_file_path))
    except PyPdfError as exc:
        raise PreconditionFailed(f"Unable to extract text from document {document_id}") from exc
    document.status = DocumentStatus.TEXT_EXTRACTED
    saved = runtime.documents.save(document)

    try:
        create_embeddings(runtime, saved.id, user_id)
    except DocQAError as exc:
        logger.warning("Skipped embeddings for document %s: %s", saved.id, exc)
    except Exception:  # noqa: BLE001
        logger.exception("Failed to create embeddings for document %s; extraction kept", saved.id)
    return saved


def build_chunks(runtime: Runtime, document_id: str, text: str) -> list[Chunk]:
    created_at = utc_now()
    chunks: list[Chunk] = []
    for chunk_text in split_into_chunks(text, runtime.settings.chunk_size):
        vector = runtime.embedder.embed(chunk_text)
        chunks.append(
            Chunk(
                document_id=document_id,
                index=len(chunks),
                text=chunk_text,
                embedding=serialize_vector(vector),
                created_at=created_at,
            )
        )
    return chunks


def create_embeddings(runtime: Runtime, document_id: str, user_id: str) -> int:
    """Chunk and embed the document's text, replacing any previous chunks. Returns the chunk count."""
    document = find_document(runtime.documents, document_id, user_id)
    text = require_text(document)
    chunks = build_chunks(runtime, document.id, text)
    runtime.chunks.replace_chunks(document.id, chunks)
    logger.info("Created %d chunks for document %s", len(chunks), document.id)
    return len(chunks)


def get_chunk_count(runtime: Runtime, document_id: str, user_id: str) -> int:
    document = find_document(runtime.documents, document_id, user_id)
    return runtime.chunks.count_for(document.id)
