from .base import EmbeddingProvider, Message
from .retry import RetryPolicy, is_transient
from .mock_provider import MockProvider, OFFLINE_MARKER, deterministic_embedding
from .openai_provider import OpenAIProvider, classify_response, parse_retry_after
from .gateway import EmbeddingGateway

__all__ = [
    "EmbeddingProvider",
    "Message",
    "RetryPolicy",
    "is_transient",
    "MockProvider",
    "OFFLINE_MARKER",
    "deterministic_embedding",
    "OpenAIProvider",
    "classify_response",
    "parse_retry_after",
    "EmbeddingGateway",
]
