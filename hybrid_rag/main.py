"""FastAPI application entry point."""

import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import Depends, FastAPI, File, Header, HTTPException, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hybrid_rag.config import get_settings
from hybrid_rag.errors import (
    AnswerGenerationError,
    DocumentMetadataWriteError,
    DocumentNotFoundError,
    DocumentProcessingError,
    EmbeddingProviderError,
    FileValidationError,
    SearchExecutionError,
    VectorStoreError,
)
from hybrid_rag.logging_config import clear_request_id, get_logger, set_request_id, setup_logging
from hybrid_rag.models.document import (
    DocumentListResponse,
    DocumentRecord,
    DocumentUploadResponse,
)
from hybrid_rag.models.error import ErrorResponse
from hybrid_rag.models.query import QueryRequest, QueryResponse
from hybrid_rag.services.document_service import DocumentService
from hybrid_rag.services.query_service import QueryService

# Setup logging configuration
setup_logging()
logger = get_logger(__name__)

settings = get_settings()

# Global service instances
document_service: DocumentService | None = None
query_service: QueryService | None = None

# Client-facing detail per error type; provider error text is only logged
ERROR_DETAILS: dict[type[Exception], tuple[int, str, str]] = {
    DocumentMetadataWriteError: (500, "Document Processing Error", "Failed to save document metadata"),
    DocumentProcessingError: (500, "Document Processing Error", "Failed to process PDF upload"),
    SearchExecutionError: (500, "Query Error", "Failed to search documents"),
    AnswerGenerationError: (500, "Query Error", "Failed to generate answer"),
    EmbeddingProviderError: (500, "Provider Error", "Embedding provider request failed"),
    VectorStoreError: (500, "Provider Error", "Vector store request failed"),
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    global document_service, query_service

    logger.info("Starting Hybrid RAG service...")
    logger.info(
        f"Configuration: chunk_size={settings.chunk_size}, chunk_overlap={settings.chunk_overlap}, "
        f"vector_store={settings.vector_store_provider}, index='{settings.pinecone_index_name}'"
    )

    document_service = DocumentService()
    query_service = QueryService(document_service=document_service)

    logger.info("Hybrid RAG service started successfully")

    yield

    logger.info("Shutting down Hybrid RAG service...")
    if document_service:
        await document_service.close()
    logger.info("Hybrid RAG service shut down successfully")


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="Question answering over uploaded legal PDFs with hybrid retrieval",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(request: Request, status_code: int, error: str, detail: str) -> JSONResponse:
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            detail=detail,
            timestamp=datetime.now(UTC),
            request_id=request_id,
        ).model_dump(mode="json"),
    )


# Request ID and error handling middleware
@app.middleware("http")
async def request_middleware(request: Request, call_next):
    """Add request ID tracking and a last-resort error handler."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    set_request_id(request_id)

    try:
        logger.info(f"Request started: {request.method} {request.url.path}")
        response = await call_next(request)
        logger.info(
            f"Request completed: {request.method} {request.url.path} - Status: {response.status_code}"
        )
        return response
    except Exception as e:
        logger.error(
            f"Unhandled exception: {str(e)}",
            exc_info=True,
            extra={"path": request.url.path},
        )
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal Server Error",
            "An unexpected error occurred",
        )
    finally:
        clear_request_id()


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append(f"{field}: {error['msg']}")
    detail = "; ".join(errors)

    logger.warning(f"Validation error: {detail}", extra={"path": request.url.path})
    return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation Error", detail)


@app.exception_handler(FileValidationError)
async def file_validation_exception_handler(request: Request, exc: FileValidationError):
    """Handle rejected uploads."""
    logger.warning(f"File validation error: {str(exc)}")
    return _error_response(request, status.HTTP_400_BAD_REQUEST, "File Validation Error", str(exc))


@app.exception_handler(DocumentNotFoundError)
async def not_found_exception_handler(request: Request, exc: DocumentNotFoundError):
    """Handle lookups of documents the caller does not own."""
    logger.warning(f"Document not found: {str(exc)}")
    return _error_response(request, status.HTTP_404_NOT_FOUND, "Not Found", str(exc))


async def pipeline_exception_handler(request: Request, exc: Exception):
    """Handle pipeline and provider failures with a generic detail."""
    for error_type, (status_code, error, detail) in ERROR_DETAILS.items():
        if isinstance(exc, error_type):
            break
    else:
        status_code, error, detail = 500, "Internal Server Error", "An unexpected error occurred"

    logger.error(f"{error}: {str(exc)}", extra={"path": request.url.path})
    return _error_response(request, status_code, error, detail)


for _error_type in ERROR_DETAILS:
    app.add_exception_handler(_error_type, pipeline_exception_handler)


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Caller identity, set by the upstream identity provider."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id.strip()


def require_document_service() -> DocumentService:
    if not document_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Document service not initialized",
        )
    return document_service


def require_query_service() -> QueryService:
    if not query_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Query service not initialized",
        )
    return query_service


# API Endpoints


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": settings.api_version,
        "vector_store": settings.vector_store_provider,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.post(
    "/upload",
    response_model=DocumentUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload and index a PDF document",
)
async def upload_document(
    file: UploadFile = File(..., description="PDF file to upload"),
    user_id: str = Depends(get_user_id),
) -> DocumentUploadResponse:
    """Chunk, embed and index a PDF in the caller's namespace."""
    service = require_document_service()

    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filename is required",
        )

    file_content = await file.read()
    logger.info(f"Processing upload request for '{file.filename}'")

    result = await service.process_document(
        user_id=user_id,
        file_content=file_content,
        filename=file.filename,
        content_type=file.content_type,
    )
    logger.info(f"Document '{file.filename}' uploaded ({result.chunks_processed} chunks)")
    return result


@app.post(
    "/query",
    response_model=QueryResponse,
    summary="Ask a question about the uploaded documents",
)
async def query_documents(
    request: QueryRequest,
    user_id: str = Depends(get_user_id),
) -> QueryResponse:
    """Answer a question from the caller's documents with page citations."""
    service = require_query_service()
    response = await service.query(user_id, request)
    logger.info(
        f"Query completed in {response.processing_time:.2f}s with {len(response.sources)} sources"
    )
    return response


@app.get("/documents", response_model=DocumentListResponse, summary="List documents")
async def list_documents(user_id: str = Depends(get_user_id)) -> DocumentListResponse:
    """List the caller's documents, newest first."""
    service = require_document_service()
    documents = await service.list_documents(user_id)
    return DocumentListResponse(documents=documents, total=len(documents))


@app.get("/documents/{document_name}", response_model=DocumentRecord, summary="Get a document")
async def get_document(document_name: str, user_id: str = Depends(get_user_id)) -> DocumentRecord:
    service = require_document_service()
    return await service.get_document(user_id, document_name)


@app.delete(
    "/documents/{document_name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a document and its vectors",
)
async def delete_document(document_name: str, user_id: str = Depends(get_user_id)):
    service = require_document_service()
    await service.delete_document(user_id, document_name)
    return None


@app.delete(
    "/documents",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete all of the caller's documents and vectors",
)
async def delete_all_documents(user_id: str = Depends(get_user_id)):
    service = require_document_service()
    await service.delete_all(user_id)
    return None
