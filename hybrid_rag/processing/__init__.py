"""Chunking and embedding of document text."""

from hybrid_rag.processing.chunker import PDFChunker
from hybrid_rag.processing.embedder import HybridEmbedder
from hybrid_rag.processing.sparse import normalize_sparse_embedding
from hybrid_rag.processing.tokenizer import TiktokenTokenizer, Tokenizer

__all__ = [
    "HybridEmbedder",
    "PDFChunker",
    "TiktokenTokenizer",
    "Tokenizer",
    "normalize_sparse_embedding",
]
