"""Hybrid (dense + sparse) embedding of text and document chunks."""

import asyncio
import math
from typing import Any

from hybrid_rag.clients.openai_client import OpenAIClient
from hybrid_rag.clients.pinecone_client import PineconeClient
from hybrid_rag.errors import EmbeddingProviderError
from hybrid_rag.logging_config import get_logger, log_progress
from hybrid_rag.models.chunk import DocumentChunk
from hybrid_rag.models.embedding import (
    DenseEmbedding,
    EmbeddingBatch,
    HybridEmbedding,
    SparseEmbedding,
    VectorRecord,
)
from hybrid_rag.processing.sparse import normalize_sparse_embedding
from hybrid_rag.storage.vector_store import VectorStore

logger = get_logger(__name__)

HEALTH_CHECK_TEXT = "Embedding service health check."


def estimate_tokens(text: str) -> int:
    """Approximate token count at four characters per token."""
    return math.ceil(len(text) / 4)


class HybridEmbedder:
    """Produces paired dense and sparse vectors and hands them to storage.

    Dense vectors come from OpenAI, sparse vectors from Pinecone's hosted
    sparse model. The two requests for the same input are always issued
    concurrently.
    """

    def __init__(
        self,
        openai_client: OpenAIClient,
        pinecone_client: PineconeClient,
        vector_store: VectorStore | None = None,
        batch_size: int = 100,
        batch_delay: float = 0.1,
    ):
        """Initialize embedder.

        Args:
            openai_client: Dense embedding provider
            pinecone_client: Sparse embedding provider
            vector_store: Target of ``upsert_vectors``
            batch_size: Chunks per batch in ``embed_chunks``
            batch_delay: Seconds to wait between batches (static, not adaptive
                to provider rate-limit headers)
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.openai_client = openai_client
        self.pinecone_client = pinecone_client
        self.vector_store = vector_store
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    async def embed_dense(self, text: str) -> DenseEmbedding:
        """Embed one text with the dense model.

        Raises:
            EmbeddingProviderError: If the dense provider fails
        """
        vectors = await self.openai_client.embed([text])
        return DenseEmbedding.from_values(vectors[0])

    async def embed_dense_batch(self, texts: list[str]) -> list[DenseEmbedding]:
        """Embed many texts with one dense request; results keep input order.

        Raises:
            EmbeddingProviderError: If the dense provider fails
        """
        if not texts:
            return []

        vectors = await self.openai_client.embed(texts)
        return [DenseEmbedding.from_values(v) for v in vectors]

    async def embed_sparse(self, text: str, input_type: str = "passage") -> SparseEmbedding:
        """Embed one text with the sparse model."""
        embeddings = await self.embed_sparse_batch([text], input_type=input_type)
        return embeddings[0]

    async def embed_sparse_batch(
        self, texts: list[str], input_type: str = "passage"
    ) -> list[SparseEmbedding]:
        """Embed many texts with one sparse request, normalizing each item.

        Raises:
            UnexpectedEmbeddingShapeError: If an item matches no known shape
            EmbeddingProviderError: If the request fails
        """
        if not texts:
            return []

        try:
            items = await self.pinecone_client.embed_sparse(texts, input_type=input_type)
        except Exception as e:
            logger.error(f"Sparse embedding of {len(texts)} texts failed: {e}", exc_info=True)
            raise EmbeddingProviderError("Sparse embedding request failed") from e

        if len(items) != len(texts):
            raise EmbeddingProviderError(
                f"Sparse provider returned {len(items)} embeddings for {len(texts)} texts"
            )
        return [normalize_sparse_embedding(item) for item in items]

    async def embed_hybrid(
        self,
        text: str,
        metadata: dict[str, Any] | None = None,
        input_type: str = "passage",
    ) -> HybridEmbedding:
        """Embed one text with both models concurrently."""
        dense, sparse = await asyncio.gather(
            self.embed_dense(text),
            self.embed_sparse(text, input_type=input_type),
        )
        return HybridEmbedding(dense=dense, sparse=sparse, text=text, metadata=metadata or {})

    async def embed_hybrid_batch(
        self,
        texts: list[str],
        metadata_array: list[dict[str, Any]] | None = None,
    ) -> list[HybridEmbedding]:
        """Embed many texts with both models concurrently.

        Items without a corresponding entry in ``metadata_array`` get empty
        metadata.
        """
        if not texts:
            return []

        metadata_array = metadata_array or []
        dense, sparse = await asyncio.gather(
            self.embed_dense_batch(texts),
            self.embed_sparse_batch(texts),
        )

        return [
            HybridEmbedding(
                dense=dense[i],
                sparse=sparse[i],
                text=text,
                metadata=metadata_array[i] if i < len(metadata_array) else {},
            )
            for i, text in enumerate(texts)
        ]

    async def embed_query(self, query: str) -> HybridEmbedding:
        """Embed a search query (sparse side uses the ``query`` input type)."""
        return await self.embed_hybrid(query, input_type="query")

    async def embed_chunks(self, chunks: list[DocumentChunk]) -> EmbeddingBatch:
        """Embed all chunks of a document in sequential batches.

        Any failing batch aborts the whole operation; nothing is returned
        for the batches that did succeed.

        Raises:
            EmbeddingProviderError: Naming the starting index of the failed batch
        """
        embeddings: list[HybridEmbedding] = []
        total_tokens = 0
        total = len(chunks)

        for start in range(0, total, self.batch_size):
            batch = chunks[start : start + self.batch_size]
            texts = [chunk.text for chunk in batch]
            metadata = [chunk.metadata.model_dump() for chunk in batch]

            try:
                embeddings.extend(await self.embed_hybrid_batch(texts, metadata))
            except Exception as e:
                logger.error(f"Embedding batch at index {start} failed: {e}", exc_info=True)
                raise EmbeddingProviderError(
                    f"Failed to embed chunk batch starting at index {start}"
                ) from e

            total_tokens += sum(estimate_tokens(text) for text in texts)
            log_progress(
                logger,
                "Embedding chunks",
                min(start + self.batch_size, total),
                total,
                tokens=total_tokens,
            )

            if start + self.batch_size < total and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

        return EmbeddingBatch(embeddings=embeddings, total_tokens=total_tokens)

    async def upsert_vectors(
        self, index_name: str, namespace: str, records: list[VectorRecord]
    ) -> int:
        """Write records to the configured vector store under ``namespace``.

        Raises:
            VectorStoreWriteError: If the store rejects the write
        """
        if self.vector_store is None:
            raise ValueError("No vector store configured for upserts")
        return await self.vector_store.upsert(index_name, namespace, records)

    async def validate_embeddings(self) -> bool:
        """Embed a fixed sentence and check both vectors are usable."""
        try:
            embedding = await self.embed_hybrid(HEALTH_CHECK_TEXT)
        except EmbeddingProviderError as e:
            logger.error(f"Embedding validation failed: {e}")
            return False

        valid = embedding.dense.dimension > 0 and len(embedding.sparse.indices) == len(
            embedding.sparse.values
        )
        if not valid:
            logger.error("Embedding validation returned an empty dense vector")
        return valid
