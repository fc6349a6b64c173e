"""
StackRAG - Retrieval-Augmented Generation over an in-memory vector store
version: 0.1.0
"""

from .config import Settings, configure_logging
from .errors import (
    StackRAGError,
    ConfigError,
    ProviderError,
    TransientProviderError,
    BillingError,
    OperationCancelled,
    InvalidQueryError,
    ExtractionError,
    UnsupportedFileTypeError,
    BatchTooLargeError,
)
from .models import (
    Chunk,
    ChunkDraft,
    ChunkMetadata,
    Document,
    Section,
    AnswerResult,
    ChunkPreview,
    IngestionStats,
    RetrievalResult,
    SourceRef,
)
from .indexes import BaseIndex, FlatIndex, cosine_similarity
from .store import VectorStore
from .providers import EmbeddingGateway, MockProvider, OpenAIProvider, RetryPolicy
from .retrieval import RetrievalPolicy
from .generation import GenerationAdapter
from .extraction import ExtractorRegistry, TextExtractor
from .service import RAGService

__all__ = [
    # Configuration
    "Settings",
    "configure_logging",
    # Errors
    "StackRAGError",
    "ConfigError",
    "ProviderError",
    "TransientProviderError",
    "BillingError",
    "OperationCancelled",
    "InvalidQueryError",
    "ExtractionError",
    "UnsupportedFileTypeError",
    "BatchTooLargeError",
    # Models
    "Chunk",
    "ChunkDraft",
    "ChunkMetadata",
    "Document",
    "Section",
    "AnswerResult",
    "ChunkPreview",
    "IngestionStats",
    "RetrievalResult",
    "SourceRef",
    # Storage
    "BaseIndex",
    "FlatIndex",
    "cosine_similarity",
    "VectorStore",
    # Providers
    "EmbeddingGateway",
    "MockProvider",
    "OpenAIProvider",
    "RetryPolicy",
    # Pipeline
    "RetrievalPolicy",
    "GenerationAdapter",
    "ExtractorRegistry",
    "TextExtractor",
    "RAGService",
]

__version__ = "0.1.0"
