import base64
import binascii
from fastapi import APIRouter, Depends, HTTPException, status
from api.dependencies import get_service
from api.helpers import get_ingestion_response
from api.models import IngestRequest, IngestionResponse, UploadRequest
from stackrag import RAGService, IngestionStats

router = APIRouter(prefix="/ingest")


@router.post("", response_model=IngestionResponse)
def ingest_documents(
    request: IngestRequest, service: RAGService = Depends(get_service)
):
    combined = IngestionStats()
    for document in request.documents:
        stats = service.ingest_text(
            document.title,
            document.text,
            url=document.url,
            namespace=request.namespace,
        )
        combined.files_processed += stats.files_processed
        combined.total_chunks += stats.total_chunks
        combined.successful_chunks += stats.successful_chunks
        combined.failed_chunks += stats.failed_chunks
        combined.errors.extend(stats.errors)
        combined.warnings.extend(stats.warnings)
        combined.extraction_previews.extend(stats.extraction_previews)
    return get_ingestion_response(combined.finish())


@router.post("/files", response_model=IngestionResponse)
def upload_files(request: UploadRequest, service: RAGService = Depends(get_service)):
    files = []
    for upload in request.files:
        try:
            data = base64.b64decode(upload.content_base64, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File {upload.filename} is not valid base64",
            )
        files.append((upload.filename, data))

    stats = service.ingest_files(
        files,
        namespace=request.namespace,
        clear_namespace=request.clear_namespace,
    )
    return get_ingestion_response(stats)


@router.post("/samples", response_model=IngestionResponse)
def ingest_samples(service: RAGService = Depends(get_service)):
    return get_ingestion_response(service.ingest_samples())
