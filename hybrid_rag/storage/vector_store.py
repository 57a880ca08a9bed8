"""Vector store adapters.

Every read and write is scoped to a namespace; the namespace is the owning
user's ID and is the only tenant isolation the pipeline relies on.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from pinecone import Pinecone

from hybrid_rag.errors import VectorStoreQueryError, VectorStoreWriteError
from hybrid_rag.logging_config import get_logger
from hybrid_rag.models.embedding import SparseEmbedding, VectorRecord
from hybrid_rag.models.search import SearchResult

logger = get_logger(__name__)


class VectorStore(ABC):
    """Namespace-scoped hybrid vector index."""

    def __init__(self, expose_errors: bool = False):
        """Initialize the adapter.

        Args:
            expose_errors: Append the provider's error text to wrapped
                errors. The full error is always logged.
        """
        self.expose_errors = expose_errors

    def _error_message(self, message: str, error: Exception) -> str:
        if self.expose_errors:
            return f"{message}: {error}"
        return message

    @abstractmethod
    async def upsert(self, index_name: str, namespace: str, records: list[VectorRecord]) -> int:
        """Insert or replace records; returns the number written."""

    @abstractmethod
    async def query(
        self,
        index_name: str,
        namespace: str,
        dense: list[float],
        sparse: SparseEmbedding | None,
        top_k: int,
    ) -> list[SearchResult]:
        """Return up to ``top_k`` matches by combined dense + sparse score, best first."""

    @abstractmethod
    async def delete_document_vectors(
        self, index_name: str, namespace: str, document_name: str
    ) -> int:
        """Remove every vector of one document; returns the number removed."""

    @abstractmethod
    async def delete_namespace(self, index_name: str, namespace: str) -> None:
        """Remove every vector in a namespace."""

    @abstractmethod
    async def count_vectors(self, index_name: str, namespace: str) -> int:
        """Count vectors in a namespace."""

    @abstractmethod
    async def validate_connection(self, index_name: str) -> bool:
        """Check that the index is reachable."""


class PineconeVectorStore(VectorStore):
    """Hybrid (dotproduct) Pinecone index.

    The SDK is synchronous; calls run in a worker thread.
    """

    def __init__(
        self,
        client: Pinecone,
        upsert_batch_size: int = 100,
        expose_errors: bool = False,
    ):
        """Initialize Pinecone vector store.

        Args:
            client: Pinecone SDK handle
            upsert_batch_size: Records per upsert request
            expose_errors: See ``VectorStore``
        """
        super().__init__(expose_errors=expose_errors)
        self._client = client
        self.upsert_batch_size = upsert_batch_size
        self._indexes: dict[str, Any] = {}

    def _index(self, index_name: str) -> Any:
        if index_name not in self._indexes:
            self._indexes[index_name] = self._client.Index(index_name)
        return self._indexes[index_name]

    @staticmethod
    def _to_vector(record: VectorRecord) -> dict[str, Any]:
        vector: dict[str, Any] = {"id": record.id, "values": record.values}
        if record.sparse_values is not None:
            vector["sparse_values"] = {
                "indices": record.sparse_values.indices,
                "values": record.sparse_values.values,
            }
        if record.metadata:
            vector["metadata"] = {k: v for k, v in record.metadata.items() if v is not None}
        return vector

    async def upsert(self, index_name: str, namespace: str, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        index = self._index(index_name)
        vectors = [self._to_vector(record) for record in records]

        try:
            for start in range(0, len(vectors), self.upsert_batch_size):
                batch = vectors[start : start + self.upsert_batch_size]
                await asyncio.to_thread(index.upsert, vectors=batch, namespace=namespace)
        except Exception as e:
            logger.error(
                f"Upsert of {len(vectors)} vectors to '{index_name}' failed: {e}",
                exc_info=True,
                extra={"namespace": namespace},
            )
            raise VectorStoreWriteError(self._error_message("Failed to upsert vectors", e)) from e

        logger.info(f"Upserted {len(vectors)} vectors into '{index_name}'")
        return len(vectors)

    async def query(
        self,
        index_name: str,
        namespace: str,
        dense: list[float],
        sparse: SparseEmbedding | None,
        top_k: int,
    ) -> list[SearchResult]:
        if top_k < 1:
            raise ValueError("top_k must be at least 1")

        request: dict[str, Any] = {
            "vector": dense,
            "top_k": top_k,
            "namespace": namespace,
            "include_metadata": True,
            "include_values": False,
        }
        if sparse is not None and sparse.indices:
            request["sparse_vector"] = {"indices": sparse.indices, "values": sparse.values}

        try:
            response = await asyncio.to_thread(self._index(index_name).query, **request)
        except Exception as e:
            logger.error(f"Query against '{index_name}' failed: {e}", exc_info=True)
            raise VectorStoreQueryError(self._error_message("Vector store query failed", e)) from e

        matches = _get(response, "matches") or []
        results = [
            SearchResult.from_metadata(
                id=_get(match, "id"),
                score=_get(match, "score"),
                metadata=_get(match, "metadata"),
            )
            for match in matches
        ]

        logger.info(f"Query returned {len(results)} matches (requested top_k={top_k})")
        return results

    async def delete_document_vectors(
        self, index_name: str, namespace: str, document_name: str
    ) -> int:
        index = self._index(index_name)

        def _delete() -> int:
            deleted = 0
            for id_batch in index.list(prefix=f"{document_name}:", namespace=namespace):
                ids = list(id_batch)
                if ids:
                    index.delete(ids=ids, namespace=namespace)
                    deleted += len(ids)
            return deleted

        try:
            deleted = await asyncio.to_thread(_delete)
        except Exception as e:
            logger.error(f"Failed to delete vectors for '{document_name}': {e}", exc_info=True)
            raise VectorStoreWriteError(
                self._error_message(f"Failed to delete vectors for '{document_name}'", e)
            ) from e

        logger.info(f"Deleted {deleted} vectors for document '{document_name}'")
        return deleted

    async def delete_namespace(self, index_name: str, namespace: str) -> None:
        try:
            await asyncio.to_thread(
                self._index(index_name).delete, delete_all=True, namespace=namespace
            )
        except Exception as e:
            logger.error(f"Failed to delete namespace: {e}", exc_info=True)
            raise VectorStoreWriteError(self._error_message("Failed to delete namespace", e)) from e

        logger.warning(f"Deleted all vectors in a namespace of '{index_name}'")

    async def count_vectors(self, index_name: str, namespace: str) -> int:
        try:
            stats = await asyncio.to_thread(self._index(index_name).describe_index_stats)
        except Exception as e:
            logger.error(f"Failed to read index stats: {e}", exc_info=True)
            raise VectorStoreQueryError(self._error_message("Failed to read index stats", e)) from e

        namespaces = _get(stats, "namespaces") or {}
        summary = namespaces.get(namespace)
        if summary is None:
            return 0
        return int(_get(summary, "vector_count") or 0)

    async def validate_connection(self, index_name: str) -> bool:
        try:
            await asyncio.to_thread(self._index(index_name).describe_index_stats)
            return True
        except Exception as e:
            logger.error(f"Vector index '{index_name}' is not reachable: {e}")
            return False


def _get(obj: Any, name: str) -> Any:
    """Read a response field from either an SDK object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)
