from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Generic, TypeVar

from docqa.errors import ProviderUnavailable

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(UTC)


class DocumentStatus(str, Enum):
    UPLOADED = "UPLOADED"
    TEXT_EXTRACTED = "TEXT_EXTRACTED"


@dataclass
class Document:
    id: str
    user_id: str
    original_file_name: str | None = None
    stored_file_path: str | None = None
    mime_type: str | None = None
    size_in_bytes: int = 0
    uploaded_at: datetime = field(default_factory=utc_now)
    status: DocumentStatus = DocumentStatus.UPLOADED
    raw_text: str | None = None

    @property
    def display_name(self) -> str:
        return self.original_file_name or f"Document #{self.id}"

    @property
    def has_text(self) -> bool:
        return bool(self.raw_text and self.raw_text.strip())


@dataclass(frozen=True)
class Chunk:
    document_id: str
    index: int
    text: str
    embedding: str
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ScoredChunk:
    chunk: Chunk
    score: float


@dataclass(frozen=True)
class QaResult:
    document_ids: list[str]
    document_names: list[str]
    question: str
    answer: str
    source_snippet: str


@dataclass(frozen=True)
class DocumentSearchResult:
    document_id: str
    document_name: str
    snippet: str


@dataclass(frozen=True)
class DocumentSummary:
    document_id: str
    summary_text: str
    created_at: datetime = field(default_factory=utc_now)


class ProviderStatus(str, Enum):
    OK = "ok"
    UNAVAILABLE = "unavailable"
    INVALID_RESPONSE = "invalid_response"


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    """Outcome of one remote provider call."""

    status: ProviderStatus
    value: T | None = None
    status_code: int | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status is ProviderStatus.OK

    @classmethod
    def success(cls, value: T) -> ProviderResult[T]:
        return cls(status=ProviderStatus.OK, value=value)

    @classmethod
    def unavailable(cls, error: str, status_code: int | None = None) -> ProviderResult[T]:
        return cls(status=ProviderStatus.UNAVAILABLE, status_code=status_code, error=error)

    @classmethod
    def invalid(cls, error: str) -> ProviderResult[T]:
        return cls(status=ProviderStatus.INVALID_RESPONSE, error=error)

    def unwrap(self) -> T:
        if not self.ok or self.value is None:
            raise ProviderUnavailable(f"{self.status.value}: {self.error}")
        return self.value
