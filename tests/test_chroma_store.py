"""Tests for the local ChromaDB vector store."""

import pytest

from hybrid_rag.errors import VectorStoreQueryError
from hybrid_rag.models.embedding import SparseEmbedding, VectorRecord
from hybrid_rag.storage.chroma_store import ChromaVectorStore, sparse_dot

INDEX = "test-index"


@pytest.fixture
def store(tmp_path):
    """Create a temporary vector store for testing."""
    store = ChromaVectorStore(persist_directory=str(tmp_path / "vectordb"))
    yield store
    store.reset()


def _record(document: str, page: int, index: int, values, sparse=None, text="text"):
    return VectorRecord(
        id=f"{document}:{page}:{index}",
        values=values,
        sparse_values=sparse,
        metadata={
            "document_name": document,
            "page_number": page,
            "section_heading": "",
            "chunk_index": index,
            "text": text,
            "user_id": "user-1",
        },
    )


def test_sparse_dot():
    a = SparseEmbedding(indices=[1, 2, 3], values=[1.0, 2.0, 3.0])
    b = SparseEmbedding(indices=[3, 4, 1], values=[0.5, 9.0, 2.0])

    assert sparse_dot(a, b) == pytest.approx(3.0 * 0.5 + 1.0 * 2.0)


@pytest.mark.asyncio
async def test_upsert_and_query(store):
    await store.upsert(
        INDEX,
        "user-1",
        [
            _record("a.pdf", 1, 0, [1.0, 0.0], text="first"),
            _record("a.pdf", 2, 0, [0.0, 1.0], text="second"),
        ],
    )

    results = await store.query(INDEX, "user-1", [1.0, 0.0], None, top_k=1)

    assert len(results) == 1
    assert results[0].id == "a.pdf:1:0"
    assert results[0].text == "first"
    assert results[0].page_number == 1
    assert results[0].score == pytest.approx(1.0, abs=1e-4)


@pytest.mark.asyncio
async def test_sparse_scores_reorder_dense_ties(store):
    await store.upsert(
        INDEX,
        "user-1",
        [
            _record("a.pdf", 1, 0, [1.0, 0.0], SparseEmbedding(indices=[7], values=[0.1])),
            _record("a.pdf", 1, 1, [1.0, 0.0], SparseEmbedding(indices=[9], values=[2.0])),
        ],
    )

    results = await store.query(
        INDEX, "user-1", [1.0, 0.0], SparseEmbedding(indices=[9], values=[1.0]), top_k=2
    )

    assert [r.id for r in results] == ["a.pdf:1:1", "a.pdf:1:0"]
    assert results[0].score == pytest.approx(3.0, abs=1e-4)


@pytest.mark.asyncio
async def test_namespaces_are_isolated(store):
    await store.upsert(INDEX, "user-1", [_record("a.pdf", 1, 0, [1.0, 0.0])])
    await store.upsert(INDEX, "user-2", [_record("a.pdf", 1, 0, [1.0, 0.0])])

    assert await store.count_vectors(INDEX, "user-1") == 1
    assert await store.count_vectors(INDEX, "user-2") == 1
    assert await store.query(INDEX, "user-3", [1.0, 0.0], None, top_k=5) == []


@pytest.mark.asyncio
async def test_upsert_same_id_replaces(store):
    await store.upsert(INDEX, "user-1", [_record("a.pdf", 1, 0, [1.0, 0.0], text="old")])
    await store.upsert(INDEX, "user-1", [_record("a.pdf", 1, 0, [1.0, 0.0], text="new")])

    results = await store.query(INDEX, "user-1", [1.0, 0.0], None, top_k=5)

    assert [r.text for r in results] == ["new"]


@pytest.mark.asyncio
async def test_delete_document_vectors(store):
    await store.upsert(
        INDEX,
        "user-1",
        [
            _record("a.pdf", 1, 0, [1.0, 0.0]),
            _record("a.pdf", 2, 0, [1.0, 0.0]),
            _record("b.pdf", 1, 0, [1.0, 0.0]),
        ],
    )
    await store.upsert(INDEX, "user-2", [_record("a.pdf", 1, 0, [1.0, 0.0])])

    deleted = await store.delete_document_vectors(INDEX, "user-1", "a.pdf")

    assert deleted == 2
    assert await store.count_vectors(INDEX, "user-1") == 1
    assert await store.count_vectors(INDEX, "user-2") == 1


@pytest.mark.asyncio
async def test_delete_namespace(store):
    await store.upsert(INDEX, "user-1", [_record("a.pdf", 1, 0, [1.0, 0.0])])
    await store.upsert(INDEX, "user-2", [_record("a.pdf", 1, 0, [1.0, 0.0])])

    await store.delete_namespace(INDEX, "user-1")

    assert await store.count_vectors(INDEX, "user-1") == 0
    assert await store.count_vectors(INDEX, "user-2") == 1


@pytest.mark.asyncio
async def test_query_dimension_mismatch_raises(store):
    await store.upsert(INDEX, "user-1", [_record("a.pdf", 1, 0, [1.0, 0.0])])

    with pytest.raises(VectorStoreQueryError):
        await store.query(INDEX, "user-1", [1.0, 0.0, 0.0], None, top_k=1)


@pytest.mark.asyncio
async def test_validate_connection(store):
    assert await store.validate_connection(INDEX) is True
