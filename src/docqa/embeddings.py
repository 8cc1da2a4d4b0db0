from __future__ import annotations

import hashlib
import logging
from abc import abstractmethod

import httpx
from langchain_core.embeddings import Embeddings

from docqa.config import Settings, mask_secret
from docqa.models import ProviderResult
from docqa.vectors import zero_vector

logger = logging.getLogger(__name__)

MAX_INPUT_CHARS = 8000


class Embedder(Embeddings):
    """Text to fixed-dimension vector. Also usable wherever LangChain expects ``Embeddings``."""

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        ...

    @abstractmethod
    def dimension(self) -> int:
        ...

    def embed_query(self, text: str) -> list[float]:
        return self.embed(text)

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed(text) for text in texts]


class DeterministicFallbackEmbedder(Embedder):
    """Reproducible stand-in vectors built from a text hash and simple lexical counts.

    Not semantically meaningful. Identical text always gives the identical vector,
    across processes, which keeps degraded operation and tests deterministic.
    """

    def __init__(self, dimension: int = 768) -> None:
        self._dimension = dimension

    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            return zero_vector(self._dimension)

        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
        lower = text.lower()
        length = len(text)
        word_count = len(text.split())

        vector: list[float] = []
        for i in range(self._dimension):
            bucket = (seed + i * 31) % 1000
            value = (bucket / 1000.0) * 2.0 - 1.0
            if i < 10:
                letter = chr(ord("a") + i)
                value += (lower.count(letter) / length) * 0.1
            elif i < 20:
                value += word_count / 100.0
            vector.append(max(-1.0, min(1.0, value)))
        return vector


class RemoteApiEmbedder(Embedder):
    """Client for an embeddings endpoint speaking ``{model, input}`` -> ``{data: [{embedding}]}``.

    ``embed`` raises ProviderUnavailable on failure; EmbeddingGateway uses
    ``request_embedding`` to fall back instead.
    """

    def __init__(
        self,
        api_key: str,
        url: str,
        model: str,
        timeout_s: float = 30.0,
        client: httpx.Client | None = None,
        dimension: int = 768,
    ) -> None:
        self.api_key = api_key
        self.url = url
        self.model = model
        self.timeout_s = timeout_s
        self._client = client
        self._dimension = dimension

    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> list[float]:
        return self.request_embedding(text).unwrap()

    def request_embedding(self, text: str) -> ProviderResult[list[float]]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        body = {"model": self.model, "input": [text]}
        client = self._client or httpx.Client(timeout=self.timeout_s)
        try:
            response = client.post(self.url, json=body, headers=headers, timeout=self.timeout_s)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            return ProviderResult.unavailable(
                f"HTTP {exc.response.status_code}: {exc.response.text[:200]}",
                status_code=exc.response.status_code,
            )
        except httpx.TimeoutException:
            return ProviderResult.unavailable(f"timed out after {self.timeout_s}s")
        except httpx.HTTPError as exc:
            return ProviderResult.unavailable(f"{type(exc).__name__}: {exc}")
        except ValueError as exc:
            return ProviderResult.invalid(f"response is not JSON: {exc}")
        finally:
            if self._client is None:
                client.close()

        return _parse_embedding_payload(payload)


def _parse_embedding_payload(payload: object) -> ProviderResult[list[float]]:
    if not isinstance(payload, dict):
        return ProviderResult.invalid("response is not an object")
    data = payload.get("data")
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return ProviderResult.invalid("missing or empty 'data'")
    embedding = data[0].get("embedding")
    if not isinstance(embedding, list) or not embedding:
        return ProviderResult.invalid("missing or empty 'embedding'")
    try:
        return ProviderResult.success([float(x) for x in embedding])
    except (TypeError, ValueError):
        return ProviderResult.invalid("non-numeric embedding values")


class EmbeddingGateway(Embedder):
    """Remote embeddings with a deterministic local fallback.

    Never raises for provider problems: any failed or malformed remote call is
    logged and answered by the fallback embedder instead.
    """

    def __init__(
        self,
        fallback: DeterministicFallbackEmbedder,
        remote: RemoteApiEmbedder | None = None,
        max_chars: int = MAX_INPUT_CHARS,
    ) -> None:
        self.fallback = fallback
        self.remote = remote
        self.max_chars = max_chars

    def dimension(self) -> int:
        return self.fallback.dimension()

    def embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            return zero_vector(self.dimension())

        truncated = text[: self.max_chars]
        if self.remote is None:
            return self.fallback.embed(truncated)

        result = self.remote.request_embedding(truncated)
        if not result.ok or result.value is None:
            logger.warning(
                "Embedding provider %s (%s); using fallback embedding",
                result.status.value,
                result.error,
            )
            return self.fallback.embed(truncated)
        if len(result.value) != self.dimension():
            logger.warning(
                "Embedding provider returned %d dimensions, expected %d; using fallback embedding",
                len(result.value),
                self.dimension(),
            )
            return self.fallback.embed(truncated)
        return result.value


def build_embedder(settings: Settings, client: httpx.Client | None = None) -> EmbeddingGateway:
    fallback = DeterministicFallbackEmbedder(dimension=settings.embedding_dimension)
    if not settings.embedding_api_key:
        logger.warning("Embedding API key not configured; embeddings will use fallback mode")
        return EmbeddingGateway(fallback=fallback)

    logger.info(
        "Embedding provider %s model=%s key=%s",
        settings.embedding_api_url,
        settings.embedding_model,
        mask_secret(settings.embedding_api_key),
    )
    remote = RemoteApiEmbedder(
        api_key=settings.embedding_api_key,
        url=settings.embedding_api_url,
        model=settings.embedding_model,
        timeout_s=settings.provider_timeout_s,
        client=client,
        dimension=settings.embedding_dimension,
    )
    return EmbeddingGateway(fallback=fallback, remote=remote)
