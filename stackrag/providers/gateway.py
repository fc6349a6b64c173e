"""
Embedding Gateway

Single entry point for embedding and completion calls. The provider is chosen
once, at construction: the offline MockProvider in mock mode, the live
OpenAIProvider otherwise. With ``fallback_on_billing_error`` enabled, a quota
or billing failure permanently switches the gateway to the mock provider and
the failed call is replayed there. The switch is logged for operators and not
reported to callers.
"""

import threading
from typing import Callable, List, Optional, TypeVar

import httpx
from loguru import logger

from stackrag.config import Settings, mask_key
from stackrag.errors import BillingError, ConfigError
from stackrag.providers.base import EmbeddingProvider, Message
from stackrag.providers.mock_provider import MockProvider
from stackrag.providers.openai_provider import OpenAIProvider
from stackrag.providers.retry import RetryPolicy

T = TypeVar("T")


class EmbeddingGateway:
    def __init__(
        self,
        provider: EmbeddingProvider,
        fallback_on_billing_error: bool = False,
        fallback_provider: Optional[EmbeddingProvider] = None,
    ):
        self.provider = provider
        self.fallback_on_billing_error = fallback_on_billing_error
        self.fallback_provider = fallback_provider
        self._switch_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls, settings: Settings, client: Optional[httpx.Client] = None
    ) -> "EmbeddingGateway":
        mock = MockProvider(dimension=settings.embedding_dimension)
        if settings.mock_mode:
            logger.info("Embedding gateway running in offline mock mode")
            return cls(mock)

        if not settings.openai_api_key:
            raise ConfigError(
                "OPENAI_API_KEY is not configured. Set it, or enable "
                "STACKRAG_MOCK_MODE for offline operation."
            )

        retry_policy = RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
            jitter=settings.retry_jitter,
            max_retry_after=settings.retry_max_retry_after,
        )
        provider = OpenAIProvider(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            embedding_model=settings.embedding_model_name,
            chat_model=settings.chat_model_name,
            temperature=settings.chat_temperature,
            max_tokens=settings.chat_max_tokens,
            timeout=settings.request_timeout,
            retry_policy=retry_policy,
            client=client,
        )
        logger.info(
            "Embedding gateway using {} (key {})",
            provider.name,
            mask_key(settings.openai_api_key),
        )
        return cls(
            provider,
            fallback_on_billing_error=settings.fallback_to_mock_on_billing_error,
            fallback_provider=mock,
        )

    @property
    def is_mock(self) -> bool:
        return self.provider.is_mock

    def embed(self, text: str, cancel: Optional[threading.Event] = None) -> List[float]:
        return self._call(lambda provider: provider.embed(text, cancel=cancel))

    def chat_complete(
        self, messages: List[Message], cancel: Optional[threading.Event] = None
    ) -> str:
        return self._call(
            lambda provider: provider.chat_complete(messages, cancel=cancel)
        )

    def _call(self, operation: Callable[[EmbeddingProvider], T]) -> T:
        provider = self.provider
        try:
            return operation(provider)
        except BillingError as e:
            if not self.fallback_on_billing_error:
                raise
            self._switch_to_fallback(provider, e)
            return operation(self.provider)

    def _switch_to_fallback(
        self, failed: EmbeddingProvider, error: BillingError
    ) -> None:
        with self._switch_lock:
            if self.provider is not failed:
                return
            if self.fallback_provider is None:
                self.fallback_provider = MockProvider()
            logger.warning(
                "Provider {} reported a billing/quota error ({}); "
                "switching to offline mock mode",
                failed.name,
                error.message,
            )
            self.provider = self.fallback_provider

    def close(self) -> None:
        self.provider.close()
