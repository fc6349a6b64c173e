"""
Exceptions raised by StackRAG.

Every error carries the HTTP status the API layer should answer with, so the
routes can translate them without knowing the pipeline internals.
"""

from typing import Optional


class StackRAGError(Exception):
    http_status = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigError(StackRAGError):
    pass


class ProviderError(StackRAGError):
    """A call to the embedding or completion provider failed."""

    http_status = 502

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        provider: Optional[str] = None,
    ):
        self.status_code = status_code
        self.provider = provider
        super().__init__(message)


class TransientProviderError(ProviderError):
    """Rate limiting, server errors and network failures. Safe to retry."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        provider: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        self.retry_after = retry_after
        super().__init__(message, status_code=status_code, provider=provider)


class BillingError(ProviderError):
    """Quota exhausted or billing not set up on the provider account."""


class OperationCancelled(StackRAGError):
    http_status = 499


class InvalidQueryError(StackRAGError, ValueError):
    http_status = 400


class ExtractionError(StackRAGError):
    http_status = 422


class UnsupportedFileTypeError(ExtractionError):
    http_status = 400


class BatchTooLargeError(StackRAGError):
    http_status = 413
