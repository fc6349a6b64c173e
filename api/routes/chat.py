from fastapi import APIRouter, Depends, HTTPException, status
from api.dependencies import get_service
from api.helpers import get_chat_response
from api.models import ChatRequest, ChatResponse, MAX_QUESTION_LENGTH
from stackrag import RAGService

router = APIRouter(prefix="/chat")


@router.post("", response_model=ChatResponse)
def chat(request: ChatRequest, service: RAGService = Depends(get_service)):
    if isinstance(request.message, str) and len(request.message) > MAX_QUESTION_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Message must be at most {MAX_QUESTION_LENGTH} characters",
        )
    result = service.answer(request.message, namespace=request.namespace)
    return get_chat_response(result)
