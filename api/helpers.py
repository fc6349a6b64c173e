from api.models import (
    ChatMetadata,
    ChatResponse,
    ChunkPreviewResponse,
    IngestionResponse,
    SourceResponse,
    VectorStoreResponse,
)
from stackrag.models import AnswerResult, ChunkPreview, IngestionStats
from typing import List


def get_chat_response(result: AnswerResult) -> ChatResponse:
    return ChatResponse(
        response=result.answer_text,
        sources=[SourceResponse(**source.model_dump()) for source in result.sources],
        metadata=ChatMetadata(
            retrieved_chunks=result.retrieved_chunk_count,
            processing_time_ms=round(result.elapsed_ms, 2),
            vector_store_documents=result.store_chunk_count,
            status=result.status,
        ),
    )


def get_ingestion_response(stats: IngestionStats) -> IngestionResponse:
    return IngestionResponse(
        success=stats.status != "failed",
        status=stats.status,
        files_processed=stats.files_processed,
        total_chunks=stats.total_chunks,
        successful_chunks=stats.successful_chunks,
        failed_chunks=stats.failed_chunks,
        errors=stats.errors,
        warnings=stats.warnings,
        extraction_previews=[
            preview.model_dump() for preview in stats.extraction_previews
        ],
        elapsed_ms=round(stats.elapsed_ms, 2),
    )


def get_vector_store_response(
    count: int, previews: List[ChunkPreview]
) -> VectorStoreResponse:
    return VectorStoreResponse(
        count=count,
        documents=[
            ChunkPreviewResponse(**preview.model_dump()) for preview in previews
        ],
    )
