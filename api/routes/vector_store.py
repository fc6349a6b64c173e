from fastapi import APIRouter, Depends, Query
from typing import Optional
from api.dependencies import get_service
from api.helpers import get_vector_store_response
from api.models import ClearResponse, VectorStoreResponse
from stackrag import RAGService

router = APIRouter(prefix="/vector-store")


@router.get("", response_model=VectorStoreResponse)
def inspect_vector_store(
    namespace: Optional[str] = Query(None),
    limit: int = Query(5, ge=0, le=100),
    service: RAGService = Depends(get_service),
):
    return get_vector_store_response(
        service.count(namespace), service.preview(namespace, limit)
    )


@router.delete("", response_model=ClearResponse)
def clear_vector_store(
    namespace: Optional[str] = Query(None),
    service: RAGService = Depends(get_service),
):
    removed = service.clear(namespace)
    scope = (
        f"namespace {namespace.strip()}"
        if namespace and namespace.strip()
        else "store"
    )
    return ClearResponse(
        success=True,
        message=f"Cleared {scope}",
        removed=removed,
    )
