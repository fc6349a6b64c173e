"""
Result Models

Structured results returned by the ingestion, query and inspection
entrypoints.
"""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from .chunk import Chunk

RetrievalStrategy = Literal["uploaded", "threshold", "forced", "empty"]
AnswerStatus = Literal["answered", "empty_knowledge_base", "no_matching_content"]
IngestionStatus = Literal["ok", "partial", "failed"]


class SourceRef(BaseModel):
    title: str
    url: Optional[str] = Field(default=None)
    section: Optional[str] = Field(default=None)
    relevance_score: float = Field(default=0.0)


class RetrievalResult(BaseModel):
    chunks: List[Chunk] = Field(default_factory=list)
    scores: List[float] = Field(default_factory=list)
    sources: List[SourceRef] = Field(default_factory=list)
    context: str = Field(default="")
    domain_label: Optional[str] = Field(default=None)
    threshold_used: Optional[float] = Field(default=None)
    strategy: RetrievalStrategy = Field(default="empty")
    elapsed_ms: float = Field(default=0.0)

    @property
    def is_empty(self) -> bool:
        return len(self.chunks) == 0


class AnswerResult(BaseModel):
    answer_text: str
    sources: List[SourceRef] = Field(default_factory=list)
    retrieved_chunk_count: int = Field(default=0, ge=0)
    elapsed_ms: float = Field(default=0.0)
    status: AnswerStatus = Field(default="answered")
    store_chunk_count: int = Field(default=0, ge=0)


class ExtractionPreview(BaseModel):
    file: str
    preview: str


class IngestionStats(BaseModel):
    files_processed: int = Field(default=0)
    total_chunks: int = Field(default=0)
    successful_chunks: int = Field(default=0)
    failed_chunks: int = Field(default=0)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    extraction_previews: List[ExtractionPreview] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = Field(default=None)

    @property
    def elapsed_ms(self) -> float:
        end = self.finished_at or datetime.now()
        return (end - self.started_at).total_seconds() * 1000.0

    @property
    def status(self) -> IngestionStatus:
        if self.errors and self.successful_chunks == 0:
            return "failed"
        if self.errors or self.failed_chunks:
            return "partial"
        return "ok"

    def finish(self) -> "IngestionStats":
        self.finished_at = datetime.now()
        return self


class ChunkPreview(BaseModel):
    id: str
    title: str
    source: str
    namespace: Optional[str] = Field(default=None)
    content_preview: str
