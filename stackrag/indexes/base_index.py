"""
Abstract base class that defines the interface for all vector index implementations.

Indexes are not thread-safe on their own; VectorStore serializes writers.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Tuple, Optional, Dict, Any, Sequence
from loguru import logger
from stackrag.models.chunk import Chunk


class BaseIndex(ABC):
    def __init__(self):
        self.dimension: Optional[int] = None
        self.chunks: List[Chunk] = []
        self.chunk_ids: set = set()

    def _verify_add_chunks(self, chunks: List[Chunk]) -> bool:
        for chunk in chunks:
            if not isinstance(chunk, Chunk):
                raise TypeError(f"Expected Chunk, got {type(chunk).__name__}")

        for chunk in chunks:
            if self.dimension is None:
                self.dimension = len(chunk.embedding)
            elif len(chunk.embedding) != self.dimension:
                logger.warning(
                    "Chunk {} has dimension {} but the index holds dimension {}; "
                    "it will score 0.0 against other-sized queries",
                    chunk.id,
                    len(chunk.embedding),
                    self.dimension,
                )
            if chunk.id in self.chunk_ids:
                logger.warning("Chunk id {} is already present in the index", chunk.id)

        return True

    @abstractmethod
    def add_vectors(self, chunks: List[Chunk]) -> None:
        pass

    @abstractmethod
    def remove_vectors(self, predicate: Callable[[Chunk], bool]) -> int:
        """Remove every chunk matching ``predicate``; return how many were removed."""
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    def search(
        self,
        query: Sequence[float],
        k: int = 10,
        threshold: Optional[float] = None,
        namespace: Optional[str] = None,
    ) -> List[Tuple[Chunk, float]]:
        """
        query: query vector to compare against every candidate
        threshold: minimum cosine similarity to keep a candidate, None keeps all
        namespace: restrict candidates to chunks tagged with this namespace
        """
        pass

    @abstractmethod
    def rank(
        self, query: Sequence[float], chunks: List[Chunk], k: int
    ) -> List[Tuple[Chunk, float]]:
        """Rank an explicit candidate list by similarity, highest first."""
        pass

    @abstractmethod
    def get_info(self) -> Dict[str, Any]:
        pass

    def get_vector_count(self) -> int:
        return len(self.chunks)

    def get_dimension(self) -> Optional[int]:
        return self.dimension
