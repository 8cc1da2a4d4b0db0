from __future__ import annotations

import logging

import httpx
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from docqa.config import Settings, mask_secret
from docqa.models import ProviderResult

logger = logging.getLogger(__name__)

AUTH_OR_QUOTA_STATUSES = frozenset({401, 403, 429})

_ROLES = {"system": "system", "human": "user", "ai": "assistant"}


def _to_wire(message: BaseMessage) -> dict[str, str]:
    return {"role": _ROLES.get(message.type, "user"), "content": str(message.content)}


def _parse_completion(payload: object) -> ProviderResult[str]:
    if not isinstance(payload, dict):
        return ProviderResult.invalid("response is not an object")
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ProviderResult.invalid("missing or empty 'choices'")
    message = choices[0].get("message")
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str) or not content.strip():
        return ProviderResult.invalid("missing or empty message content")
    return ProviderResult.success(content.strip())


class ChatClient:
    """Chat-completions client for OpenAI-compatible endpoints (Groq by default)."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        model: str,
        timeout_s: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_s = timeout_s
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def complete(self, messages: list[BaseMessage], temperature: float) -> ProviderResult[str]:
        if not self.api_key:
            return ProviderResult.unavailable("LLM API key is not configured")

        body = {
            "model": self.model,
            "temperature": temperature,
            "messages": [_to_wire(m) for m in messages],
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        client = self._client or httpx.Client(timeout=self.timeout_s)
        try:
            response = client.post(
                f"{self.base_url}/chat/completions",
                json=body,
                headers=headers,
                timeout=self.timeout_s,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error("LLM call failed with status %d: %s", status, exc.response.text[:500])
            if status in AUTH_OR_QUOTA_STATUSES:
                logger.error("Authentication/quota problem; check the API key, billing and usage limits")
            return ProviderResult.unavailable(f"HTTP {status}", status_code=status)
        except httpx.TimeoutException:
            logger.error("LLM call timed out after %ss", self.timeout_s)
            return ProviderResult.unavailable(f"timed out after {self.timeout_s}s")
        except httpx.HTTPError as exc:
            logger.error("Failed to reach LLM provider: %s - %s", type(exc).__name__, exc)
            return ProviderResult.unavailable(f"{type(exc).__name__}: {exc}")
        except ValueError as exc:
            return ProviderResult.invalid(f"response is not JSON: {exc}")
        finally:
            if self._client is None:
                client.close()

        return _parse_completion(payload)


def build_chat_client(settings: Settings, client: httpx.Client | None = None) -> ChatClient:
    if settings.llm_api_key:
        logger.info(
            "LLM provider %s model=%s key=%s",
            settings.llm_base_url,
            settings.llm_model,
            mask_secret(settings.llm_api_key),
        )
    else:
        logger.warning("LLM API key is not configured; answers and summaries will use fallbacks")
    return ChatClient(
        api_key=settings.llm_api_key,
        base_url=settings.llm_base_url,
        model=settings.llm_model,
        timeout_s=settings.provider_timeout_s,
        client=client,
    )


def system_and_user(system: str, user: str) -> list[BaseMessage]:
    return [SystemMessage(content=system), HumanMessage(content=user)]
