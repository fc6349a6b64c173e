"""
Retrieval Policy

Decides which chunks feed the generation step for a question:

1. The question is embedded. In mock mode the similarity threshold is forced
   to 0.0, since synthetic embeddings have no meaningful similarity scale.
2. If the store holds any uploaded chunks, only those are considered, ranked
   by similarity and cut to ``max_results``. The namespace is not applied on
   this path.
3. Otherwise a namespace-scoped search is tried with each threshold of the
   ladder ``[similarity_threshold, *fallback_thresholds]`` until one returns
   results. If none does, the first ``max_results`` chunks of the pool are
   used anyway: the policy never returns nothing while the pool has chunks.
4. An empty pool gives an empty result, which is not an error.

Each call is independent and reads the store as it is at that moment.
"""

import threading
import time
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from stackrag.errors import InvalidQueryError
from stackrag.indexes.similarity import cosine_similarity
from stackrag.models.chunk import Chunk, UPLOADED_SOURCE
from stackrag.models.results import RetrievalResult, SourceRef
from stackrag.providers.gateway import EmbeddingGateway
from stackrag.store import VectorStore

DEFAULT_FALLBACK_THRESHOLDS = (0.3, 0.0)
CONTEXT_SEPARATOR = "\n---\n\n"


def threshold_ladder(
    similarity_threshold: float, fallback_thresholds: Sequence[float]
) -> List[float]:
    ladder: List[float] = []
    for value in (similarity_threshold, *fallback_thresholds):
        if 0.0 <= value <= 1.0 and value not in ladder:
            ladder.append(value)
    return ladder


def format_context(chunks: List[Chunk]) -> str:
    blocks = [
        f"[Source {i}: {chunk.metadata.display_name}]\n{chunk.content}\n"
        for i, chunk in enumerate(chunks, start=1)
    ]
    return CONTEXT_SEPARATOR.join(blocks)


def extract_sources(chunks: List[Chunk], scores: List[float]) -> List[SourceRef]:
    sources = {}
    for chunk, score in zip(chunks, scores):
        key = (chunk.metadata.title, chunk.metadata.section or "main")
        if key not in sources:
            sources[key] = SourceRef(
                title=chunk.metadata.title,
                url=chunk.metadata.url,
                section=chunk.metadata.section,
                relevance_score=score,
            )
    return list(sources.values())


def validate_question(question) -> str:
    if not isinstance(question, str):
        raise InvalidQueryError("Question is required and must be a string")
    question = question.strip()
    if not question:
        raise InvalidQueryError("Question must not be empty")
    return question


class RetrievalPolicy:
    def __init__(
        self,
        store: VectorStore,
        gateway: EmbeddingGateway,
        fallback_thresholds: Sequence[float] = DEFAULT_FALLBACK_THRESHOLDS,
    ):
        self.store = store
        self.gateway = gateway
        self.fallback_thresholds = tuple(fallback_thresholds)

    def retrieve(
        self,
        question: str,
        max_results: int = 5,
        similarity_threshold: float = 0.7,
        namespace: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> RetrievalResult:
        start = time.perf_counter()
        question = validate_question(question)
        if max_results < 1:
            raise InvalidQueryError("max_results must be at least 1")

        query_vector = self.gateway.embed(question, cancel=cancel)

        if self.gateway.is_mock:
            similarity_threshold = 0.0

        threshold_used: Optional[float] = None
        uploaded = self.store.get_by_source(UPLOADED_SOURCE)
        if uploaded:
            strategy = "uploaded"
            scored = self.store.rank(query_vector, uploaded, max_results)
        else:
            strategy, threshold_used, scored = self._search_with_fallback(
                query_vector, max_results, similarity_threshold, namespace
            )

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        if not scored:
            logger.info("Retrieval found an empty pool ({:.1f}ms)", elapsed_ms)
            return RetrievalResult(strategy="empty", elapsed_ms=elapsed_ms)

        chunks = [chunk for chunk, _ in scored]
        scores = [score for _, score in scored]
        result = RetrievalResult(
            chunks=chunks,
            scores=scores,
            sources=extract_sources(chunks, scores),
            context=format_context(chunks),
            domain_label=chunks[0].metadata.source,
            threshold_used=threshold_used,
            strategy=strategy,
            elapsed_ms=elapsed_ms,
        )
        logger.info(
            "Retrieved {} chunks via {} strategy (threshold={}, {:.1f}ms)",
            len(chunks),
            strategy,
            threshold_used,
            elapsed_ms,
        )
        return result

    def _search_with_fallback(
        self,
        query_vector: List[float],
        max_results: int,
        similarity_threshold: float,
        namespace: Optional[str],
    ) -> Tuple[str, Optional[float], List[Tuple[Chunk, float]]]:
        ladder = threshold_ladder(similarity_threshold, self.fallback_thresholds)
        for threshold in ladder:
            results = self.store.similarity_search(
                query_vector, k=max_results, threshold=threshold, namespace=namespace
            )
            if results:
                return "threshold", threshold, results
            logger.debug("No chunks above threshold {}", threshold)

        pool = self.store.get_all(namespace)[:max_results]
        if not pool:
            return "empty", None, []

        logger.info(
            "No chunk passed any threshold; using the first {} chunks", len(pool)
        )
        return (
            "forced",
            None,
            [
                (chunk, cosine_similarity(query_vector, chunk.embedding))
                for chunk in pool
            ],
        )
