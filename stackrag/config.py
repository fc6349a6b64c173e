"""
Configuration for StackRAG.

Settings are read from the environment (prefix ``STACKRAG_``) and an optional
``.env`` file. The OpenAI key is also picked up from the conventional
``OPENAI_API_KEY`` variable.
"""

import sys
from typing import Optional, Tuple

from loguru import logger
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_CHAT_MODEL = "gpt-4o-mini"
DEFAULT_EMBEDDING_DIMENSION = 1536


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STACKRAG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Provider selection
    mock_mode: bool = Field(default=False)
    fallback_to_mock_on_billing_error: bool = Field(default=False)
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("STACKRAG_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    embedding_model_name: str = Field(default=DEFAULT_EMBEDDING_MODEL)
    chat_model_name: str = Field(default=DEFAULT_CHAT_MODEL)
    embedding_dimension: int = Field(default=DEFAULT_EMBEDDING_DIMENSION, ge=1)
    chat_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    chat_max_tokens: int = Field(default=1000, ge=1)
    request_timeout: float = Field(default=30.0, gt=0)

    # Retry policy for provider calls
    retry_max_attempts: int = Field(default=5, ge=1)
    retry_base_delay: float = Field(default=0.5, ge=0)
    retry_max_delay: float = Field(default=8.0, ge=0)
    retry_jitter: float = Field(default=0.2, ge=0)
    retry_max_retry_after: float = Field(default=30.0, ge=0)

    # Generation
    allow_general_knowledge: bool = Field(default=False)

    # Ingestion
    chunk_size: int = Field(default=800, ge=1)
    chunk_overlap: int = Field(default=200, ge=0)
    include_section_chunks: bool = Field(default=True)
    max_file_mb: float = Field(default=50, gt=0)
    max_batch_mb: float = Field(default=100, gt=0)
    min_text_chars: int = Field(default=20, ge=0)

    # Retrieval
    max_results: int = Field(default=5, ge=1)
    similarity_threshold: float = Field(default=0.7)
    fallback_thresholds: Tuple[float, ...] = Field(default=(0.3, 0.0))

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def max_file_bytes(self) -> int:
        return int(self.max_file_mb * 1024 * 1024)

    @property
    def max_batch_bytes(self) -> int:
        return int(self.max_batch_mb * 1024 * 1024)


def mask_key(value: Optional[str]) -> str:
    """Return a masked representation of an API key for safe logging."""
    if not value:
        return "<missing>"
    if len(value) <= 8:
        return value[0:1] + "*" * (len(value) - 1)
    return value[0:4] + "*" * (len(value) - 8) + value[-4:]


def configure_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def log_settings(settings: Settings) -> None:
    logger.info("StackRAG configuration loaded")
    logger.info("  mock mode: {}", settings.mock_mode)
    logger.info(
        "  billing fallback to mock: {}", settings.fallback_to_mock_on_billing_error
    )
    logger.info("  embedding model: {}", settings.embedding_model_name)
    logger.info("  chat model: {}", settings.chat_model_name)
    logger.debug("  OPENAI_API_KEY: {}", mask_key(settings.openai_api_key))
