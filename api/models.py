from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any

MAX_QUESTION_LENGTH = 10000
MAX_NAMESPACE_LENGTH = 255


class BaseResponse(BaseModel):
    success: bool
    message: str


# Chat endpoints
class ChatRequest(BaseModel):
    message: Optional[Any] = Field(None)
    namespace: Optional[str] = Field(None, max_length=MAX_NAMESPACE_LENGTH)


class SourceResponse(BaseModel):
    title: str
    url: Optional[str] = None
    section: Optional[str] = None
    relevance_score: float


class ChatMetadata(BaseModel):
    retrieved_chunks: int
    processing_time_ms: float
    vector_store_documents: int
    status: str


class ChatResponse(BaseModel):
    response: str
    sources: List[SourceResponse]
    metadata: ChatMetadata


# Ingestion endpoints
class DocumentIngest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    text: str
    url: Optional[str] = Field(None)


class IngestRequest(BaseModel):
    documents: List[DocumentIngest] = Field(min_length=1)
    namespace: Optional[str] = Field(None, max_length=MAX_NAMESPACE_LENGTH)


class FileUpload(BaseModel):
    filename: str = Field(min_length=1, max_length=255)
    content_base64: str


class UploadRequest(BaseModel):
    files: List[FileUpload] = Field(min_length=1)
    namespace: Optional[str] = Field(None, max_length=MAX_NAMESPACE_LENGTH)
    clear_namespace: bool = Field(default=False)


class IngestionResponse(BaseModel):
    success: bool
    status: str
    files_processed: int
    total_chunks: int
    successful_chunks: int
    failed_chunks: int
    errors: List[str]
    warnings: List[str]
    extraction_previews: List[Dict[str, str]]
    elapsed_ms: float


# Vector store endpoints
class ChunkPreviewResponse(BaseModel):
    id: str
    title: str
    source: str
    namespace: Optional[str] = None
    content_preview: str


class VectorStoreResponse(BaseModel):
    count: int
    documents: List[ChunkPreviewResponse]


class ClearResponse(BaseResponse):
    removed: int
