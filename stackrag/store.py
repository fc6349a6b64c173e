"""
Vector Store

Holds every chunk in memory and answers cosine-similarity searches with a
linear scan. The store is created by the service that owns it (there is no
module-level instance), so tests can build isolated stores freely.

Chunks are immutable and only ever appended or removed wholesale. Readers
share a lock; add/clear operations take it exclusively.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Dict, Optional, Any, Tuple, Sequence
import uuid
from datetime import datetime
from loguru import logger
from stackrag.indexes import BaseIndex, FlatIndex
from stackrag.lock import store_read_lock, store_write_lock
from stackrag.models.chunk import Chunk
from stackrag.models.results import ChunkPreview

PREVIEW_CHARS = 100


def _clean_namespace(namespace: Optional[str]) -> Optional[str]:
    if namespace is None:
        return None
    namespace = namespace.strip()
    return namespace or None


class VectorStore(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = Field(default="default", min_length=1)
    metadata: Optional[Dict[str, Any]] = Field(default_factory=dict)
    index: BaseIndex = Field(default=None)
    created_at: Optional[datetime] = Field(default_factory=datetime.now)

    def __init__(self, **data):
        super().__init__(**data)

        if self.index is None:
            self.index = FlatIndex()

    """
    Write Methods
    """

    def add(self, chunk: Chunk) -> None:
        self.add_many([chunk])

    @store_write_lock
    def add_many(self, chunks: List[Chunk]) -> None:
        chunks = list(chunks)
        if not chunks:
            return
        self.index.add_vectors(chunks)
        logger.debug("Store {} now holds {} chunks", self.name, len(self.index.chunks))

    @store_write_lock
    def clear(self) -> int:
        removed = self.index.get_vector_count()
        self.index.clear()
        logger.info("Cleared store {} ({} chunks removed)", self.name, removed)
        return removed

    @store_write_lock
    def clear_namespace(self, namespace: str) -> int:
        target = namespace.strip()
        removed = self.index.remove_vectors(
            lambda chunk: chunk.metadata.namespace is not None
            and chunk.metadata.namespace == target
        )
        logger.info(
            "Cleared namespace '{}' from store {} ({} chunks removed)",
            target,
            self.name,
            removed,
        )
        return removed

    """
    Read Methods
    """

    @store_read_lock
    def similarity_search(
        self,
        query: Sequence[float],
        k: int = 5,
        threshold: float = 0.7,
        namespace: Optional[str] = None,
    ) -> List[Tuple[Chunk, float]]:
        return self.index.search(
            query, k=k, threshold=threshold, namespace=_clean_namespace(namespace)
        )

    def rank(
        self, query: Sequence[float], chunks: List[Chunk], k: int
    ) -> List[Tuple[Chunk, float]]:
        return self.index.rank(query, chunks, k)

    @store_read_lock
    def get_all(self, namespace: Optional[str] = None) -> List[Chunk]:
        namespace = _clean_namespace(namespace)
        if namespace is None:
            return list(self.index.chunks)
        return [
            chunk
            for chunk in self.index.chunks
            if chunk.metadata.namespace == namespace
        ]

    @store_read_lock
    def get_by_source(self, source: str) -> List[Chunk]:
        return [chunk for chunk in self.index.chunks if chunk.metadata.source == source]

    @store_read_lock
    def has_source(self, source: str) -> bool:
        return any(chunk.metadata.source == source for chunk in self.index.chunks)

    def count(self, namespace: Optional[str] = None) -> int:
        if _clean_namespace(namespace) is None:
            return self.index.get_vector_count()
        return len(self.get_all(namespace))

    def preview(
        self, namespace: Optional[str] = None, limit: int = 5
    ) -> List[ChunkPreview]:
        chunks = self.get_all(namespace)[: max(limit, 0)]
        return [
            ChunkPreview(
                id=chunk.id,
                title=chunk.metadata.title,
                source=chunk.metadata.source,
                namespace=chunk.metadata.namespace,
                content_preview=chunk.content[:PREVIEW_CHARS] + "...",
            )
            for chunk in chunks
        ]

    def get_info(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "metadata": self.metadata,
            "index": self.index.get_info(),
            "created_at": self.created_at.isoformat(),
        }
