"""
Chunk Model

A chunk is a span of document text stored with its embedding and metadata.
It is the unit of retrieval and is never modified once it is in a store.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

UPLOADED_SOURCE = "uploaded"


class ChunkMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str = Field(min_length=1)
    title: str
    url: Optional[str] = Field(default=None)
    section: Optional[str] = Field(default=None)
    namespace: Optional[str] = Field(default=None)

    @property
    def is_main_content(self) -> bool:
        return self.section is None

    @property
    def display_name(self) -> str:
        if self.section:
            return f"{self.title} - {self.section}"
        return self.title


class Chunk(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    content: str = Field(min_length=1)
    embedding: List[float] = Field(min_length=1)
    metadata: ChunkMetadata


class ChunkDraft(BaseModel):
    """A chunk produced by ingestion that has not been embedded yet."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    content: str = Field(min_length=1)
    metadata: ChunkMetadata

    def to_chunk(self, embedding: List[float]) -> Chunk:
        return Chunk(
            id=self.id,
            content=self.content,
            embedding=embedding,
            metadata=self.metadata,
        )
