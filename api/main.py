from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from typing import Optional
from loguru import logger
import uvicorn
import argparse

from api.routes import chat, ingest, vector_store
from stackrag import RAGService, Settings, StackRAGError, configure_logging


def create_app(service: Optional[RAGService] = None) -> FastAPI:
    app = FastAPI(
        title="StackRAG",
        description=(
            "Retrieval-augmented question answering over an in-memory vector store"
        ),
        version="0.1.0",
    )

    if service is None:
        settings = Settings()
        configure_logging(settings.log_level)
        service = RAGService(settings)
    app.state.service = service

    @app.exception_handler(StackRAGError)
    async def stackrag_error_handler(request: Request, exc: StackRAGError):
        if exc.http_status >= 500:
            logger.error("{} {} failed: {}", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.http_status, content={"detail": exc.message}
        )

    @app.get("/")
    def root():
        service = app.state.service
        return {
            "message": "StackRAG API is running",
            "total_chunks": service.count(),
            "mock_mode": service.gateway.is_mock,
        }

    app.include_router(chat.router)
    app.include_router(ingest.router)
    app.include_router(vector_store.router)

    return app


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="StackRAG API")
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind the server to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind the server to (default: 8000)",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use deterministic offline embeddings and completions",
    )

    args = parser.parse_args()

    settings = Settings(mock_mode=True) if args.mock else Settings()
    configure_logging(settings.log_level)
    app = create_app(RAGService(settings))

    logger.info("Starting server on {}:{}", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)
