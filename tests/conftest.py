from __future__ import annotations

import logging
from pathlib import Path

import pytest
from langchain_core.messages import BaseMessage

from docqa.chunk_store import InMemoryChunkStore
from docqa.config import Settings, load_settings
from docqa.documents import InMemoryDocumentStore
from docqa.embeddings import DeterministicFallbackEmbedder, EmbeddingGateway
from docqa.models import Document, DocumentStatus, ProviderResult
from docqa.runtime import Runtime

ENV_KEYS = (
    "EMBEDDING_API_KEY",
    "JINA_API_KEY",
    "EMBEDDING_API_URL",
    "EMBEDDING_MODEL",
    "EMBEDDING_DIMENSION",
    "LLM_API_KEY",
    "GROQ_API_KEY",
    "LLM_BASE_URL",
    "LLM_MODEL",
    "CHUNK_SIZE",
    "TOP_K",
    "PROVIDER_TIMEOUT_SECONDS",
    "LOG_LEVEL",
    "DOCQA_DATA_DIR",
)


class FakeChat:
    def __init__(self, result: ProviderResult[str] | None = None) -> None:
        self.result = result or ProviderResult.success("fake answer")
        self.calls: list[tuple[list[BaseMessage], float]] = []

    def complete(self, messages: list[BaseMessage], temperature: float) -> ProviderResult[str]:
        self.calls.append((messages, temperature))
        return self.result

    @property
    def last_prompt(self) -> str:
        messages, _ = self.calls[-1]
        return str(messages[-1].content)


@pytest.fixture(autouse=True)
def restore_logging():
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return load_settings(data_dir=tmp_path / "data")


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def runtime(settings: Settings, chat: FakeChat) -> Runtime:
    return Runtime(
        settings=settings,
        documents=InMemoryDocumentStore(),
        chunks=InMemoryChunkStore(),
        embedder=EmbeddingGateway(fallback=DeterministicFallbackEmbedder(dimension=32)),
        chat=chat,
    )


def make_document(
    document_id: str = "doc-1",
    raw_text: str | None = "Cats are mammals. Dogs are mammals too. Fish are not mammals.",
    user_id: str = "alice",
    name: str | None = "animals.pdf",
) -> Document:
    return Document(
        id=document_id,
        user_id=user_id,
        original_file_name=name,
        raw_text=raw_text,
        status=DocumentStatus.TEXT_EXTRACTED if raw_text else DocumentStatus.UPLOADED,
    )
