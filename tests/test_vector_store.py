"""Tests for the Pinecone vector store adapter."""

from unittest.mock import MagicMock

import pytest

from hybrid_rag.errors import VectorStoreQueryError, VectorStoreWriteError
from hybrid_rag.models.embedding import SparseEmbedding, VectorRecord
from hybrid_rag.storage.vector_store import PineconeVectorStore


@pytest.fixture
def index():
    index = MagicMock()
    index.query.return_value = {
        "matches": [
            {
                "id": "act.pdf:2:0",
                "score": 0.91,
                "metadata": {
                    "text": "Liability is limited.",
                    "document_name": "act.pdf",
                    "page_number": 2.0,
                    "section_heading": "ARTICLE 3",
                    "chunk_index": 0.0,
                },
            },
            {"id": "act.pdf:3:1", "score": 0.5, "metadata": None},
        ]
    }
    return index


@pytest.fixture
def client(index):
    client = MagicMock()
    client.Index.return_value = index
    return client


def _records(n: int) -> list[VectorRecord]:
    return [
        VectorRecord(
            id=f"act.pdf:1:{i}",
            values=[0.1, 0.2],
            sparse_values=SparseEmbedding(indices=[i], values=[1.0]),
            metadata={"text": f"chunk {i}", "section_heading": "", "missing": None},
        )
        for i in range(n)
    ]


class TestUpsert:
    @pytest.mark.asyncio
    async def test_upsert_in_batches_into_namespace(self, client, index):
        store = PineconeVectorStore(client, upsert_batch_size=2)

        written = await store.upsert("law", "user-1", _records(5))

        assert written == 5
        assert index.upsert.call_count == 3
        first = index.upsert.call_args_list[0].kwargs
        assert first["namespace"] == "user-1"
        vector = first["vectors"][0]
        assert vector["id"] == "act.pdf:1:0"
        assert vector["sparse_values"] == {"indices": [0], "values": [1.0]}
        assert "missing" not in vector["metadata"]
        client.Index.assert_called_once_with("law")

    @pytest.mark.asyncio
    async def test_upsert_nothing(self, client, index):
        store = PineconeVectorStore(client)

        assert await store.upsert("law", "user-1", []) == 0
        index.upsert.assert_not_called()

    @pytest.mark.asyncio
    async def test_upsert_failure_message_is_generic_by_default(self, client, index):
        index.upsert.side_effect = RuntimeError("api key sk-secret rejected")
        store = PineconeVectorStore(client)

        with pytest.raises(VectorStoreWriteError) as exc_info:
            await store.upsert("law", "user-1", _records(1))

        assert str(exc_info.value) == "Failed to upsert vectors"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_upsert_failure_message_can_expose_provider_error(self, client, index):
        index.upsert.side_effect = RuntimeError("dimension mismatch")
        store = PineconeVectorStore(client, expose_errors=True)

        with pytest.raises(VectorStoreWriteError, match="dimension mismatch"):
            await store.upsert("law", "user-1", _records(1))


class TestQuery:
    @pytest.mark.asyncio
    async def test_query_request_and_results(self, client, index):
        store = PineconeVectorStore(client)

        results = await store.query(
            "law", "user-1", [0.1, 0.2], SparseEmbedding(indices=[4], values=[0.3]), top_k=12
        )

        kwargs = index.query.call_args.kwargs
        assert kwargs["namespace"] == "user-1"
        assert kwargs["top_k"] == 12
        assert kwargs["include_metadata"] is True
        assert kwargs["include_values"] is False
        assert kwargs["sparse_vector"] == {"indices": [4], "values": [0.3]}

        assert results[0].document_name == "act.pdf"
        assert results[0].page_number == 2
        assert results[0].section_heading == "ARTICLE 3"
        assert results[1].text == ""
        assert results[1].page_number == 0

    @pytest.mark.asyncio
    async def test_query_without_sparse_vector(self, client, index):
        store = PineconeVectorStore(client)

        await store.query("law", "user-1", [0.1], None, top_k=3)

        assert "sparse_vector" not in index.query.call_args.kwargs

    @pytest.mark.asyncio
    async def test_empty_namespace_returns_empty_list(self, client, index):
        index.query.return_value = {"matches": []}
        store = PineconeVectorStore(client)

        assert await store.query("law", "nobody", [0.1], None, top_k=3) == []

    @pytest.mark.asyncio
    async def test_query_failure(self, client, index):
        index.query.side_effect = RuntimeError("timeout")
        store = PineconeVectorStore(client)

        with pytest.raises(VectorStoreQueryError):
            await store.query("law", "user-1", [0.1], None, top_k=3)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_delete_document_vectors_by_prefix(self, client, index):
        index.list.return_value = iter([["act.pdf:1:0", "act.pdf:1:1"], ["act.pdf:2:0"]])
        store = PineconeVectorStore(client)

        deleted = await store.delete_document_vectors("law", "user-1", "act.pdf")

        assert deleted == 3
        index.list.assert_called_once_with(prefix="act.pdf:", namespace="user-1")
        assert index.delete.call_count == 2

    @pytest.mark.asyncio
    async def test_delete_namespace(self, client, index):
        store = PineconeVectorStore(client)

        await store.delete_namespace("law", "user-1")

        index.delete.assert_called_once_with(delete_all=True, namespace="user-1")

    @pytest.mark.asyncio
    async def test_count_vectors(self, client, index):
        index.describe_index_stats.return_value = {
            "namespaces": {"user-1": {"vector_count": 42}}
        }
        store = PineconeVectorStore(client)

        assert await store.count_vectors("law", "user-1") == 42
        assert await store.count_vectors("law", "user-2") == 0

    @pytest.mark.asyncio
    async def test_validate_connection(self, client, index):
        store = PineconeVectorStore(client)
        assert await store.validate_connection("law") is True

        index.describe_index_stats.side_effect = RuntimeError("unreachable")
        assert await store.validate_connection("law") is False
