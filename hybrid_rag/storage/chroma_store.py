"""Local vector store using ChromaDB."""

import json
from typing import Any

from hybrid_rag.errors import VectorStoreQueryError, VectorStoreWriteError
from hybrid_rag.logging_config import get_logger
from hybrid_rag.models.embedding import SparseEmbedding, VectorRecord
from hybrid_rag.models.search import SearchResult
from hybrid_rag.storage.vector_store import VectorStore

logger = get_logger(__name__)

NAMESPACE_KEY = "namespace"
VECTOR_ID_KEY = "vector_id"
SPARSE_INDICES_KEY = "sparse_indices"
SPARSE_VALUES_KEY = "sparse_values"

# Dense candidates fetched per requested result before sparse re-scoring
CANDIDATE_MULTIPLIER = 2


def sparse_dot(a: SparseEmbedding, b: SparseEmbedding) -> float:
    """Dot product of two sparse vectors."""
    weights = dict(zip(a.indices, a.values))
    return sum(weights.get(i, 0.0) * v for i, v in zip(b.indices, b.values))


class ChromaVectorStore(VectorStore):
    """Hybrid vector store on a persistent ChromaDB.

    One collection per index name, using inner-product distance. Namespaces
    are a metadata field on every record. Sparse vectors are kept in the
    record metadata and scored against the query after the dense lookup, so
    a match's score is ``dense dot product + sparse dot product``.
    """

    def __init__(
        self,
        persist_directory: str = "./data/vectordb",
        expose_errors: bool = False,
    ):
        """Initialize Chroma vector store.

        Args:
            persist_directory: Directory for persistent storage
            expose_errors: See ``VectorStore``
        """
        import chromadb
        from chromadb.config import Settings as ChromaSettings

        super().__init__(expose_errors=expose_errors)
        self.persist_directory = persist_directory
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=ChromaSettings(
                anonymized_telemetry=False,
                allow_reset=True,
            ),
        )
        self._collections: dict[str, Any] = {}

        logger.info(f"Initialized ChromaVectorStore at '{persist_directory}'")

    def _collection(self, index_name: str) -> Any:
        if index_name not in self._collections:
            # Embeddings always come from the providers, so no embedding function
            self._collections[index_name] = self._client.get_or_create_collection(
                name=index_name,
                metadata={"hnsw:space": "ip"},
                embedding_function=None,
            )
        return self._collections[index_name]

    @staticmethod
    def _storage_id(namespace: str, vector_id: str) -> str:
        return f"{namespace}::{vector_id}"

    @staticmethod
    def _to_metadata(namespace: str, record: VectorRecord) -> dict[str, Any]:
        # ChromaDB only accepts str, int, float, bool (not None)
        metadata: dict[str, Any] = {NAMESPACE_KEY: namespace, VECTOR_ID_KEY: record.id}
        for key, value in (record.metadata or {}).items():
            if value is None:
                continue
            elif isinstance(value, (str, int, float, bool)):
                metadata[key] = value
            else:
                metadata[key] = str(value)

        if record.sparse_values is not None:
            metadata[SPARSE_INDICES_KEY] = json.dumps(record.sparse_values.indices)
            metadata[SPARSE_VALUES_KEY] = json.dumps(record.sparse_values.values)

        return metadata

    @staticmethod
    def _stored_sparse(metadata: dict[str, Any]) -> SparseEmbedding | None:
        if SPARSE_INDICES_KEY not in metadata:
            return None
        return SparseEmbedding(
            indices=json.loads(metadata[SPARSE_INDICES_KEY]),
            values=json.loads(metadata[SPARSE_VALUES_KEY]),
        )

    async def upsert(self, index_name: str, namespace: str, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        try:
            self._collection(index_name).upsert(
                ids=[self._storage_id(namespace, r.id) for r in records],
                embeddings=[r.values for r in records],
                documents=[str((r.metadata or {}).get("text", "")) for r in records],
                metadatas=[self._to_metadata(namespace, r) for r in records],
            )
        except Exception as e:
            logger.error(f"Upsert of {len(records)} vectors failed: {e}", exc_info=True)
            raise VectorStoreWriteError(self._error_message("Failed to upsert vectors", e)) from e

        logger.info(f"Upserted {len(records)} vectors into '{index_name}'")
        return len(records)

    async def query(
        self,
        index_name: str,
        namespace: str,
        dense: list[float],
        sparse: SparseEmbedding | None,
        top_k: int,
    ) -> list[SearchResult]:
        if not dense:
            raise ValueError("Query embedding cannot be empty")
        if top_k < 1:
            raise ValueError("top_k must be at least 1")

        try:
            collection = self._collection(index_name)
            available = len(collection.get(where={NAMESPACE_KEY: namespace}, include=[])["ids"])
            if available == 0:
                return []

            results = collection.query(
                query_embeddings=[dense],
                n_results=min(top_k * CANDIDATE_MULTIPLIER, available),
                where={NAMESPACE_KEY: namespace},
                include=["metadatas", "distances"],
            )
        except Exception as e:
            logger.error(f"Query against '{index_name}' failed: {e}", exc_info=True)
            raise VectorStoreQueryError(self._error_message("Vector store query failed", e)) from e

        search_results = []
        if results["ids"] and results["ids"][0]:
            for i in range(len(results["ids"][0])):
                metadata = results["metadatas"][0][i]
                # Inner-product distance is 1 - dot product
                score = 1.0 - results["distances"][0][i]
                stored_sparse = self._stored_sparse(metadata)
                if sparse is not None and stored_sparse is not None:
                    score += sparse_dot(sparse, stored_sparse)

                search_results.append(
                    SearchResult.from_metadata(
                        id=metadata.get(VECTOR_ID_KEY, ""),
                        score=score,
                        metadata=metadata,
                    )
                )

        search_results.sort(key=lambda r: r.score, reverse=True)
        search_results = search_results[:top_k]

        logger.info(f"Query returned {len(search_results)} matches (requested top_k={top_k})")
        return search_results

    async def delete_document_vectors(
        self, index_name: str, namespace: str, document_name: str
    ) -> int:
        where = {"$and": [{NAMESPACE_KEY: namespace}, {"document_name": document_name}]}
        try:
            collection = self._collection(index_name)
            ids = collection.get(where=where, include=[])["ids"]
            if ids:
                collection.delete(ids=ids)
        except Exception as e:
            logger.error(f"Failed to delete vectors for '{document_name}': {e}", exc_info=True)
            raise VectorStoreWriteError(
                self._error_message(f"Failed to delete vectors for '{document_name}'", e)
            ) from e

        logger.info(f"Deleted {len(ids)} vectors for document '{document_name}'")
        return len(ids)

    async def delete_namespace(self, index_name: str, namespace: str) -> None:
        try:
            collection = self._collection(index_name)
            ids = collection.get(where={NAMESPACE_KEY: namespace}, include=[])["ids"]
            if ids:
                collection.delete(ids=ids)
        except Exception as e:
            logger.error(f"Failed to delete namespace: {e}", exc_info=True)
            raise VectorStoreWriteError(self._error_message("Failed to delete namespace", e)) from e

        logger.warning(f"Deleted {len(ids)} vectors in a namespace of '{index_name}'")

    async def count_vectors(self, index_name: str, namespace: str) -> int:
        try:
            ids = self._collection(index_name).get(where={NAMESPACE_KEY: namespace}, include=[])
        except Exception as e:
            logger.error(f"Failed to count vectors: {e}", exc_info=True)
            raise VectorStoreQueryError(self._error_message("Failed to count vectors", e)) from e
        return len(ids["ids"])

    async def validate_connection(self, index_name: str) -> bool:
        try:
            self._client.heartbeat()
            self._collection(index_name)
            return True
        except Exception as e:
            logger.error(f"Chroma index '{index_name}' is not reachable: {e}")
            return False

    def reset(self) -> None:
        """Delete all data (tests only)."""
        self._client.reset()
        self._collections.clear()
        logger.warning(f"Reset ChromaDB at '{self.persist_directory}'")
