"""
Cosine similarity.

Similarity is 0.0 when the vectors have different lengths, are empty, or
either has zero norm. These functions never raise for such inputs, so a store
that mixes embedding models keeps answering queries.
"""

import numpy as np
from typing import Sequence


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) == 0 or len(a) != len(b):
        return 0.0

    a_array = np.asarray(a, dtype=np.float64)
    b_array = np.asarray(b, dtype=np.float64)
    norm_product = float(np.linalg.norm(a_array) * np.linalg.norm(b_array))
    if norm_product == 0.0 or not np.isfinite(norm_product):
        return 0.0

    return float(np.dot(a_array, b_array) / norm_product)


def cosine_similarities(query: np.ndarray, vectors: np.ndarray) -> np.ndarray:
    """Similarity of ``query`` against every row of ``vectors`` (same width)."""
    if vectors.shape[0] == 0:
        return np.empty(0, dtype=np.float64)

    query_norm = np.linalg.norm(query)
    row_norms = np.linalg.norm(vectors, axis=1)
    denominators = row_norms * query_norm

    scores = np.zeros(vectors.shape[0], dtype=np.float64)
    valid = denominators > 0
    scores[valid] = (vectors[valid] @ query) / denominators[valid]
    return scores
