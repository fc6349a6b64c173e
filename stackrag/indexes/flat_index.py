"""
Flat Index Implementation

It's a brute-force approach that calculates the cosine similarity between the
query vector and every candidate vector in the index.

n = number of vectors
d = dimension of the vectors

Build time complexity: O(n*d), done lazily on the first search after a write
Search time complexity: O(n*d)
Memory usage: O(n*d)
"""

import numpy as np
from typing import Callable, List, Tuple, Dict, Any, Optional, Sequence
from stackrag.indexes.base_index import BaseIndex
from stackrag.indexes.similarity import cosine_similarities, cosine_similarity
from stackrag.models.chunk import Chunk


class FlatIndex(BaseIndex):
    def __init__(self):
        super().__init__()
        # dimension -> (positions into self.chunks, stacked vectors)
        self._matrices: Dict[int, Tuple[np.ndarray, np.ndarray]] = {}

    def add_vectors(self, chunks: List[Chunk]) -> None:
        self._verify_add_chunks(chunks)
        self.chunks.extend(chunks)
        self.chunk_ids.update(chunk.id for chunk in chunks)
        self._matrices = {}

    def remove_vectors(self, predicate: Callable[[Chunk], bool]) -> int:
        kept = [chunk for chunk in self.chunks if not predicate(chunk)]
        removed = len(self.chunks) - len(kept)
        if removed:
            self.chunks = kept
            self.chunk_ids = {chunk.id for chunk in kept}
            self._matrices = {}
            if not kept:
                self.dimension = None
        return removed

    def clear(self) -> None:
        self.chunks = []
        self.chunk_ids = set()
        self.dimension = None
        self._matrices = {}

    def _matrix_for(self, dimension: int) -> Tuple[np.ndarray, np.ndarray]:
        cached = self._matrices.get(dimension)
        if cached is None:
            positions = [
                idx
                for idx, chunk in enumerate(self.chunks)
                if len(chunk.embedding) == dimension
            ]
            vectors = np.array(
                [self.chunks[idx].embedding for idx in positions], dtype=np.float64
            ).reshape(len(positions), dimension)
            cached = (np.array(positions, dtype=np.int64), vectors)
            self._matrices[dimension] = cached
        return cached

    def _score_all(self, query: Sequence[float]) -> np.ndarray:
        scores = np.zeros(len(self.chunks), dtype=np.float64)
        if len(query) == 0 or not self.chunks:
            return scores

        positions, vectors = self._matrix_for(len(query))
        if positions.shape[0]:
            query_array = np.asarray(query, dtype=np.float64)
            scores[positions] = cosine_similarities(query_array, vectors)
        return scores

    def search(
        self,
        query: Sequence[float],
        k: int = 10,
        threshold: Optional[float] = None,
        namespace: Optional[str] = None,
    ) -> List[Tuple[Chunk, float]]:
        if k <= 0 or not self.chunks:
            return []

        scores = self._score_all(query)

        if namespace is not None:
            candidates = np.array(
                [
                    idx
                    for idx, chunk in enumerate(self.chunks)
                    if chunk.metadata.namespace == namespace
                ],
                dtype=np.int64,
            )
        else:
            candidates = np.arange(len(self.chunks))

        if candidates.shape[0] == 0:
            return []

        candidate_scores = scores[candidates]
        if threshold is not None:
            keep = candidate_scores >= threshold
            candidates = candidates[keep]
            candidate_scores = candidate_scores[keep]

        order = np.argsort(-candidate_scores, kind="stable")[:k]

        return [
            (self.chunks[int(candidates[idx])], float(candidate_scores[idx]))
            for idx in order
        ]

    def rank(
        self, query: Sequence[float], chunks: List[Chunk], k: int
    ) -> List[Tuple[Chunk, float]]:
        scored = [
            (chunk, cosine_similarity(query, chunk.embedding)) for chunk in chunks
        ]
        scored.sort(key=lambda item: item[1], reverse=True)
        return scored[: max(k, 0)]

    def get_info(self) -> Dict[str, Any]:
        return {
            "type": "flat",
            "dimension": self.dimension,
            "vector_count": self.get_vector_count(),
        }
