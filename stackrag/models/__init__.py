"""
StackRAG Models Package

- Chunk: text piece with embedding and typed metadata
- Document: transient, ingestion-time view of one source file
- Results: structured outputs of ingestion, retrieval and answering
"""

from .chunk import Chunk, ChunkDraft, ChunkMetadata, UPLOADED_SOURCE
from .document import Document, Section
from .results import (
    AnswerResult,
    ChunkPreview,
    ExtractionPreview,
    IngestionStats,
    RetrievalResult,
    SourceRef,
)

__all__ = [
    "Chunk",
    "ChunkDraft",
    "ChunkMetadata",
    "UPLOADED_SOURCE",
    "Document",
    "Section",
    "AnswerResult",
    "ChunkPreview",
    "ExtractionPreview",
    "IngestionStats",
    "RetrievalResult",
    "SourceRef",
]
