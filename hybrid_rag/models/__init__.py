"""Pydantic models for the hybrid RAG pipeline."""

from hybrid_rag.models.chunk import ChunkMetadata, DocumentChunk, PageText, build_vector_id
from hybrid_rag.models.document import (
    DocumentListResponse,
    DocumentRecord,
    DocumentUploadResponse,
)
from hybrid_rag.models.embedding import (
    DenseEmbedding,
    EmbeddingBatch,
    HybridEmbedding,
    SparseEmbedding,
    VectorRecord,
)
from hybrid_rag.models.error import ErrorResponse
from hybrid_rag.models.query import (
    NOT_FOUND_ANSWER,
    AnswerResponse,
    QueryRequest,
    QueryResponse,
    SourceCitation,
)
from hybrid_rag.models.search import SearchAnalysis, SearchConfig, SearchResult

__all__ = [
    # Chunk models
    "ChunkMetadata",
    "DocumentChunk",
    "PageText",
    "build_vector_id",
    # Embedding models
    "DenseEmbedding",
    "SparseEmbedding",
    "HybridEmbedding",
    "EmbeddingBatch",
    "VectorRecord",
    # Search models
    "SearchResult",
    "SearchConfig",
    "SearchAnalysis",
    # Document models
    "DocumentRecord",
    "DocumentUploadResponse",
    "DocumentListResponse",
    # Query models
    "QueryRequest",
    "QueryResponse",
    "AnswerResponse",
    "SourceCitation",
    "NOT_FOUND_ANSWER",
    # Error models
    "ErrorResponse",
]
