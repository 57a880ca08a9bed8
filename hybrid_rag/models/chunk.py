"""Chunk-related Pydantic models."""

from pydantic import BaseModel, Field


class ChunkMetadata(BaseModel):
    """Where a chunk came from, kept for retrieval and citation."""

    document_name: str
    page_number: int = Field(ge=1, description="1-based page number")
    section_heading: str = Field(default="", description="Detected heading or empty string")
    chunk_index: int = Field(ge=0, description="Sequential index within the page")


class DocumentChunk(BaseModel):
    """Token-bounded slice of a page."""

    text: str
    metadata: ChunkMetadata

    @property
    def vector_id(self) -> str:
        """Stable compound key used for idempotent re-upserts."""
        return build_vector_id(
            self.metadata.document_name,
            self.metadata.page_number,
            self.metadata.chunk_index,
        )


class PageText(BaseModel):
    """Text attributed to a single page of a document."""

    page_number: int = Field(ge=1)
    text: str
    section_heading: str = ""


def build_vector_id(document_name: str, page_number: int, chunk_index: int) -> str:
    """Build the ``{documentName}:{pageNumber}:{chunkIndex}`` vector ID."""
    return f"{document_name}:{page_number}:{chunk_index}"
