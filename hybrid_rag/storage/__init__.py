"""Storage layer: vector stores, document metadata and uploaded files."""

from hybrid_rag.storage.chroma_store import ChromaVectorStore
from hybrid_rag.storage.file_storage import FileStorageService, StoredFile
from hybrid_rag.storage.metadata_store import DocumentMetadataStore
from hybrid_rag.storage.vector_store import PineconeVectorStore, VectorStore

__all__ = [
    "VectorStore",
    "PineconeVectorStore",
    "ChromaVectorStore",
    "DocumentMetadataStore",
    "FileStorageService",
    "StoredFile",
]
