"""
RAG Service

Composition root: owns the vector store, the embedding gateway, the retrieval
policy and the generation adapter, and exposes the ingestion, query and
inspection entrypoints.

Ingestion is sequential: files in order, then chunks in order, each embedding
awaited before the next. A failing file or chunk is recorded in the returned
IngestionStats and never aborts the batch. Setup failures (for example a
missing API key without mock mode) are raised before any work starts.
"""

import threading
import time
from typing import Iterable, List, Optional, Tuple
from urllib.parse import quote

from loguru import logger

from stackrag.config import Settings
from stackrag.errors import (
    BatchTooLargeError,
    ExtractionError,
    OperationCancelled,
    ProviderError,
)
from stackrag.extraction import ExtractorRegistry, file_stem
from stackrag.generation import GenerationAdapter
from stackrag.models.chunk import Chunk, ChunkDraft, UPLOADED_SOURCE
from stackrag.models.results import (
    AnswerResult,
    ChunkPreview,
    ExtractionPreview,
    IngestionStats,
)
from stackrag.processing.pipeline import build_document, process_document
from stackrag.providers.gateway import EmbeddingGateway
from stackrag.retrieval import RetrievalPolicy, validate_question
from stackrag.samples import SAMPLE_PAGES, SAMPLE_SOURCE
from stackrag.store import VectorStore

EMPTY_KNOWLEDGE_BASE_ANSWER = (
    "The knowledge base is empty. Please ingest documents (upload files or load "
    "the sample documentation) before asking questions."
)
NO_MATCHING_CONTENT_ANSWER = (
    "No documents were found for this namespace. Upload documents to it, or ask "
    "without a namespace to search the whole knowledge base."
)
EXTRACTION_PREVIEW_CHARS = 300

UploadedFile = Tuple[str, bytes]


def _check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelled("Operation cancelled")


class RAGService:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[VectorStore] = None,
        gateway: Optional[EmbeddingGateway] = None,
        extractors: Optional[ExtractorRegistry] = None,
    ):
        self.settings = settings or Settings()
        self.store = store if store is not None else VectorStore(name="knowledge-base")
        self.gateway = gateway or EmbeddingGateway.from_settings(self.settings)
        self.extractors = extractors or ExtractorRegistry()
        self.retrieval = RetrievalPolicy(
            self.store,
            self.gateway,
            fallback_thresholds=self.settings.fallback_thresholds,
        )
        self.generator = GenerationAdapter(
            self.gateway,
            allow_general_knowledge=self.settings.allow_general_knowledge,
        )

    """
    Ingestion
    """

    def _chunk_document(
        self,
        title: str,
        text: str,
        url: Optional[str],
        source: str,
        namespace: Optional[str],
    ) -> List[ChunkDraft]:
        document = build_document(title, text, url=url)
        return process_document(
            document,
            chunk_size=self.settings.chunk_size,
            chunk_overlap=self.settings.chunk_overlap,
            source=source,
            namespace=namespace,
            include_sections=self.settings.include_section_chunks,
        )

    def _embed_and_store(
        self,
        drafts: List[ChunkDraft],
        label: str,
        stats: IngestionStats,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        stats.total_chunks += len(drafts)
        for i, draft in enumerate(drafts):
            _check_cancel(cancel)
            logger.debug("  Embedding chunk {}/{} of {}", i + 1, len(drafts), label)
            try:
                embedding = self.gateway.embed(draft.content, cancel=cancel)
            except ProviderError as e:
                stats.failed_chunks += 1
                message = f"Failed to embed chunk {i} of {label}: {e}"
                logger.error(message)
                stats.errors.append(message)
                continue
            self.store.add(draft.to_chunk(embedding))
            stats.successful_chunks += 1

    def ingest_text(
        self,
        title: str,
        text: str,
        url: Optional[str] = None,
        source: str = UPLOADED_SOURCE,
        namespace: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> IngestionStats:
        stats = IngestionStats()
        drafts = self._chunk_document(title, text, url, source, namespace)
        if not drafts:
            warning = f"No text to index in '{title}'"
            logger.warning(warning)
            stats.warnings.append(warning)
        self._embed_and_store(drafts, title, stats, cancel)
        stats.files_processed = 1
        stats.finish()
        logger.info(
            "Ingested '{}': {}/{} chunks stored",
            title,
            stats.successful_chunks,
            stats.total_chunks,
        )
        return stats

    def _check_batch_size(self, files: List[UploadedFile]) -> None:
        max_file = self.settings.max_file_bytes
        max_batch = self.settings.max_batch_bytes
        batch_bytes = 0
        for filename, data in files:
            if len(data) > max_file:
                raise BatchTooLargeError(
                    f"File {filename} exceeds {self.settings.max_file_mb:g}MB limit"
                )
            batch_bytes += len(data)
        if batch_bytes > max_batch:
            raise BatchTooLargeError(
                f"Batch exceeds {self.settings.max_batch_mb:g}MB total limit"
            )

    def ingest_files(
        self,
        files: Iterable[UploadedFile],
        namespace: Optional[str] = None,
        clear_namespace: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> IngestionStats:
        files = list(files)
        self._check_batch_size(files)
        namespace = namespace.strip() if namespace else None
        namespace = namespace or None

        if clear_namespace:
            self.clear(namespace)

        stats = IngestionStats()
        logger.info("Ingesting {} files (namespace={})", len(files), namespace)

        for filename, data in files:
            _check_cancel(cancel)
            try:
                extracted = self.extractors.extract(filename, data)
            except ExtractionError as e:
                message = f"Failed to process {filename}: {e}"
                logger.error(message)
                stats.errors.append(message)
                continue

            text = extracted.text
            stats.files_processed += 1
            if len(text.strip()) < self.settings.min_text_chars:
                warning = (
                    f"No extractable text found in {filename}. If this is a scanned "
                    "or secured document, convert it to .txt or .md and upload again."
                )
                logger.warning(warning)
                stats.warnings.append(warning)
                continue

            stats.extraction_previews.append(
                ExtractionPreview(
                    file=filename, preview=text[:EXTRACTION_PREVIEW_CHARS]
                )
            )
            url = "local://upload/" + quote(filename, safe="")
            drafts = self._chunk_document(
                file_stem(filename), text, url, UPLOADED_SOURCE, namespace
            )
            self._embed_and_store(drafts, filename, stats, cancel)

        stats.finish()
        logger.info(
            "Ingestion finished in {:.0f}ms: {} files, {}/{} chunks stored, {} errors",
            stats.elapsed_ms,
            stats.files_processed,
            stats.successful_chunks,
            stats.total_chunks,
            len(stats.errors),
        )
        return stats

    def ingest_samples(
        self, cancel: Optional[threading.Event] = None
    ) -> IngestionStats:
        """Replace the store contents with the bundled sample documentation."""
        self.store.clear()
        stats = IngestionStats()
        for page in SAMPLE_PAGES:
            _check_cancel(cancel)
            drafts = self._chunk_document(
                page.title, page.content, page.url, SAMPLE_SOURCE, None
            )
            self._embed_and_store(drafts, page.title, stats, cancel)
            stats.files_processed += 1
        stats.finish()
        logger.info(
            "Loaded sample documentation: {}/{} chunks stored",
            stats.successful_chunks,
            stats.total_chunks,
        )
        return stats

    """
    Query
    """

    def answer(
        self,
        question: str,
        namespace: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> AnswerResult:
        start = time.perf_counter()
        question = validate_question(question)

        store_count = self.store.count()
        if store_count == 0:
            return AnswerResult(
                answer_text=EMPTY_KNOWLEDGE_BASE_ANSWER,
                status="empty_knowledge_base",
                elapsed_ms=(time.perf_counter() - start) * 1000.0,
            )

        retrieved = self.retrieval.retrieve(
            question,
            max_results=self.settings.max_results,
            similarity_threshold=self.settings.similarity_threshold,
            namespace=namespace,
            cancel=cancel,
        )
        if retrieved.is_empty:
            return AnswerResult(
                answer_text=NO_MATCHING_CONTENT_ANSWER,
                status="no_matching_content",
                store_chunk_count=store_count,
                elapsed_ms=(time.perf_counter() - start) * 1000.0,
            )

        answer_text = self.generator.generate(
            question, retrieved.context, retrieved.domain_label, cancel=cancel
        )
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        logger.info(
            "Answered question with {} chunks in {:.1f}ms",
            len(retrieved.chunks),
            elapsed_ms,
        )
        return AnswerResult(
            answer_text=answer_text,
            sources=retrieved.sources,
            retrieved_chunk_count=len(retrieved.chunks),
            elapsed_ms=elapsed_ms,
            status="answered",
            store_chunk_count=store_count,
        )

    """
    Inspection
    """

    def count(self, namespace: Optional[str] = None) -> int:
        return self.store.count(namespace)

    def preview(
        self, namespace: Optional[str] = None, limit: int = 5
    ) -> List[ChunkPreview]:
        return self.store.preview(namespace, limit)

    def chunks(self, namespace: Optional[str] = None) -> List[Chunk]:
        return self.store.get_all(namespace)

    def clear(self, namespace: Optional[str] = None) -> int:
        if namespace and namespace.strip():
            return self.store.clear_namespace(namespace)
        return self.store.clear()

    def close(self) -> None:
        self.gateway.close()
