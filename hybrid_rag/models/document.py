"""Document-related Pydantic models."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class DocumentRecord(BaseModel):
    """Persisted record of a successfully indexed document."""

    document_name: str = Field(min_length=1)
    page_count: int = Field(ge=0, description="Highest page number among the chunks")
    chunk_count: int = Field(ge=0)
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    file_size: int = Field(ge=0, description="File size in bytes")
    user_id: str = Field(min_length=1)


class DocumentUploadResponse(BaseModel):
    """Response after document upload."""

    document: DocumentRecord
    chunks_processed: int = Field(ge=0)
    total_tokens: int = Field(ge=0)
    status: str = "completed"
    message: str = "Document processed successfully"


class DocumentListResponse(BaseModel):
    """A user's documents, newest first."""

    documents: list[DocumentRecord]
    total: int = Field(ge=0)
