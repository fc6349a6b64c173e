from fastapi import HTTPException, Request, status
from stackrag import RAGService


def get_service(request: Request) -> RAGService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="RAG service is not initialized",
        )
    return service
