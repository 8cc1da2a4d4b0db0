from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from docqa.chunk_store import ChunkStore, JsonChunkStore
from docqa.config import Settings
from docqa.documents import DocumentStore, JsonDocumentStore
from docqa.embeddings import Embedder, build_embedder
from docqa.llm import ChatClient, build_chat_client

PROMPTS_DIR = Path(__file__).parent / "prompts"


def load_prompt(name: str) -> str:
    return (PROMPTS_DIR / name).read_text(encoding="utf-8")


@dataclass(frozen=True)
class Runtime:
    """Collaborators shared by the core operations of one process."""

    settings: Settings
    documents: DocumentStore
    chunks: ChunkStore
    embedder: Embedder
    chat: ChatClient


def build_runtime(settings: Settings) -> Runtime:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return Runtime(
        settings=settings,
        documents=JsonDocumentStore(settings.documents_path),
        chunks=JsonChunkStore(settings.chunks_dir),
        embedder=build_embedder(settings),
        chat=build_chat_client(settings),
    )

