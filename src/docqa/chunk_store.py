from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from docqa.models import Chunk

logger = logging.getLogger(__name__)


class ChunkStore(Protocol):
    def replace_chunks(self, document_id: str, chunks: Sequence[Chunk]) -> None: ...

    def chunks_for(self, document_id: str) -> list[Chunk]: ...

    def count_for(self, document_id: str) -> int: ...

    def delete_for(self, document_id: str) -> None: ...


def _check_contiguous(document_id: str, chunks: Sequence[Chunk]) -> list[Chunk]:
    ordered = sorted(chunks, key=lambda c: c.index)
    for expected, chunk in enumerate(ordered):
        if chunk.document_id != document_id:
            raise ValueError(f"chunk belongs to {chunk.document_id}, not {document_id}")
        if chunk.index != expected:
            raise ValueError(f"chunk indices for {document_id} must be 0..{len(ordered) - 1}")
    return ordered


class _DocumentLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = defaultdict(threading.Lock)

    def __call__(self, document_id: str) -> threading.Lock:
        with self._guard:
            return self._locks[document_id]


class InMemoryChunkStore:
    """Chunks held in a dict; replacement swaps the whole tuple for a document."""

    def __init__(self) -> None:
        self._chunks: dict[str, tuple[Chunk, ...]] = {}
        self._lock_for = _DocumentLocks()

    def replace_chunks(self, document_id: str, chunks: Sequence[Chunk]) -> None:
        ordered = tuple(_check_contiguous(document_id, chunks))
        with self._lock_for(document_id):
            self._chunks[document_id] = ordered

    def chunks_for(self, document_id: str) -> list[Chunk]:
        return list(self._chunks.get(document_id, ()))

    def count_for(self, document_id: str) -> int:
        return len(self._chunks.get(document_id, ()))

    def delete_for(self, document_id: str) -> None:
        with self._lock_for(document_id):
            self._chunks.pop(document_id, None)


def _chunk_to_record(chunk: Chunk) -> dict[str, Any]:
    return {
        "document_id": chunk.document_id,
        "index": chunk.index,
        "text": chunk.text,
        "embedding": chunk.embedding,
        "created_at": chunk.created_at.isoformat(),
    }


def _record_to_chunk(record: dict[str, Any]) -> Chunk:
    return Chunk(
        document_id=str(record["document_id"]),
        index=int(record["index"]),
        text=str(record["text"]),
        embedding=str(record.get("embedding", "[]")),
        created_at=datetime.fromisoformat(record["created_at"]),
    )


def write_json_atomic(path: Path, payload: Any) -> None:
    """Write JSON to a temp file in the same directory, then rename over ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class JsonChunkStore:
    """One JSON file per document under ``root``.

    Files are replaced with ``os.replace`` so a reader sees either the previous
    chunk set or the new one, never a partial write.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self._lock_for = _DocumentLocks()

    def _path(self, document_id: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in document_id)
        return self.root / f"{safe}.json"

    def replace_chunks(self, document_id: str, chunks: Sequence[Chunk]) -> None:
        ordered = _check_contiguous(document_id, chunks)
        payload = {
            "version": 1,
            "document_id": document_id,
            "chunks": [_chunk_to_record(c) for c in ordered],
        }
        with self._lock_for(document_id):
            write_json_atomic(self._path(document_id), payload)
        logger.debug("Stored %d chunks for document %s", len(ordered), document_id)

    def _load(self, document_id: str) -> list[Chunk]:
        path = self._path(document_id)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.error("Chunk file %s is corrupt; treating document %s as unchunked", path, document_id)
            return []
        records = data.get("chunks") if isinstance(data, dict) else None
        if not isinstance(records, list):
            return []
        return sorted((_record_to_chunk(r) for r in records), key=lambda c: c.index)

    def chunks_for(self, document_id: str) -> list[Chunk]:
        return self._load(document_id)

    def count_for(self, document_id: str) -> int:
        return len(self._load(document_id))

    def delete_for(self, document_id: str) -> None:
        with self._lock_for(document_id):
            self._path(document_id).unlink(missing_ok=True)
