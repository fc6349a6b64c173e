"""
Live provider for OpenAI-compatible embedding and chat completion endpoints.

Failures are classified once, here:

- 429 and 5xx responses, timeouts and connection errors are transient and
  retried by the RetryPolicy.
- 402/403 responses and bodies mentioning quota or billing raise
  BillingError (never retried; the gateway may fall back to mock mode).
- Any other 4xx raises ProviderError immediately.
"""

import threading
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from stackrag.config import DEFAULT_CHAT_MODEL, DEFAULT_EMBEDDING_MODEL
from stackrag.errors import BillingError, ProviderError, TransientProviderError
from stackrag.providers.base import EmbeddingProvider, Message
from stackrag.providers.retry import RetryPolicy

BILLING_MARKERS = ("insufficient_quota", "billing")
BILLING_STATUS_CODES = (402, 403)


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header given in seconds or as an HTTP date."""
    if not value:
        return None
    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def classify_response(
    response: httpx.Response, provider: str = "openai"
) -> ProviderError:
    status = response.status_code
    body = response.text or ""
    message = f"{provider} API error {status}: {body[:500] or response.reason_phrase}"

    lowered = body.lower()
    if status < 500 and (
        status in BILLING_STATUS_CODES or any(m in lowered for m in BILLING_MARKERS)
    ):
        return BillingError(message, status_code=status, provider=provider)

    if status == 429 or status >= 500:
        return TransientProviderError(
            message,
            status_code=status,
            provider=provider,
            retry_after=parse_retry_after(response.headers.get("Retry-After")),
        )

    return ProviderError(message, status_code=status, provider=provider)


class OpenAIProvider(EmbeddingProvider):
    name = "openai"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        embedding_model: str = DEFAULT_EMBEDDING_MODEL,
        chat_model: str = DEFAULT_CHAT_MODEL,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.embedding_model = embedding_model
        self.chat_model = chat_model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.retry_policy = retry_policy or RetryPolicy()
        self.client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self.client.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.client.post(path, json=payload)
        except httpx.TransportError as e:
            raise TransientProviderError(
                f"{self.name} request to {path} failed: {e}", provider=self.name
            ) from e

        if response.status_code >= 400:
            raise classify_response(response, self.name)

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(
                f"{self.name} returned invalid JSON from {path}",
                status_code=response.status_code,
                provider=self.name,
            ) from e

    def embed(
        self, text: str, cancel: Optional[threading.Event] = None
    ) -> List[float]:
        payload = {"input": text, "model": self.embedding_model}
        data = self.retry_policy.call(self._post, "/embeddings", payload, cancel=cancel)
        try:
            return [float(value) for value in data["data"][0]["embedding"]]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(
                f"Unexpected embeddings response shape: {e}", provider=self.name
            ) from e

    def chat_complete(
        self, messages: List[Message], cancel: Optional[threading.Event] = None
    ) -> str:
        payload = {
            "model": self.chat_model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        data = self.retry_policy.call(
            self._post, "/chat/completions", payload, cancel=cancel
        )
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(
                f"Unexpected chat completion response shape: {e}", provider=self.name
            ) from e
        logger.debug("Chat completion returned {} characters", len(content or ""))
        return content or ""

    def close(self) -> None:
        self.client.close()
