from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


class ConfigError(ValueError):
    """Raised when required config is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    embedding_api_key: str | None
    embedding_api_url: str
    embedding_model: str
    embedding_dimension: int
    llm_api_key: str | None
    llm_base_url: str
    llm_model: str
    chunk_size: int
    top_k: int
    provider_timeout_s: int
    log_level: str
    data_dir: Path

    @property
    def upload_dir(self) -> Path:
        return self.data_dir / "uploads"

    @property
    def chunks_dir(self) -> Path:
        return self.data_dir / "chunks"

    @property
    def documents_path(self) -> Path:
        return self.data_dir / "documents.json"


def _get_int_env(key: str, default: int) -> int:
    raw = os.getenv(key, str(default))
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got: {raw}") from exc


def _get_secret(*keys: str) -> str | None:
    for key in keys:
        value = os.getenv(key, "").strip()
        if value:
            return value
    return None


def load_settings(data_dir: Path | None = None) -> Settings:
    load_dotenv()
    settings = Settings(
        embedding_api_key=_get_secret("EMBEDDING_API_KEY", "JINA_API_KEY"),
        embedding_api_url=os.getenv("EMBEDDING_API_URL", "https://api.jina.ai/v1/embeddings"),
        embedding_model=os.getenv("EMBEDDING_MODEL", "jina-embeddings-v2-base-en"),
        embedding_dimension=_get_int_env("EMBEDDING_DIMENSION", 768),
        llm_api_key=_get_secret("LLM_API_KEY", "GROQ_API_KEY"),
        llm_base_url=os.getenv("LLM_BASE_URL", "https://api.groq.com/openai/v1"),
        llm_model=os.getenv("LLM_MODEL", "llama-3.1-8b-instant"),
        chunk_size=_get_int_env("CHUNK_SIZE", 800),
        top_k=_get_int_env("TOP_K", 5),
        provider_timeout_s=_get_int_env("PROVIDER_TIMEOUT_SECONDS", 30),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        data_dir=(data_dir or Path(os.getenv("DOCQA_DATA_DIR", "data"))).resolve(),
    )
    validate_settings(settings)
    return settings


def validate_settings(settings: Settings) -> None:
    if settings.chunk_size <= 0:
        raise ConfigError("CHUNK_SIZE must be > 0")
    if settings.top_k <= 0:
        raise ConfigError("TOP_K must be > 0")
    if settings.embedding_dimension <= 0:
        raise ConfigError("EMBEDDING_DIMENSION must be > 0")
    if settings.provider_timeout_s <= 0:
        raise ConfigError("PROVIDER_TIMEOUT_SECONDS must be > 0")


def mask_secret(value: str | None) -> str:
    if not value:
        return "unset"
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}...{value[-4:]}"
