"""Pytest configuration and shared fixtures."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from hybrid_rag.models.search import SearchResult
from hybrid_rag.processing.embedder import HybridEmbedder


class WordTokenizer:
    """Whitespace tokenizer: one token per word, IDs assigned on first sight."""

    def __init__(self):
        self.vocab: dict[str, int] = {}
        self.words: list[str] = []

    def encode(self, text: str) -> list[int]:
        ids = []
        for word in text.split():
            if word not in self.vocab:
                self.vocab[word] = len(self.words)
                self.words.append(word)
            ids.append(self.vocab[word])
        return ids

    def decode(self, tokens: list[int]) -> str:
        return " ".join(self.words[t] for t in tokens)


def make_result(
    id: str = "doc.pdf:1:0",
    score: float = 0.9,
    text: str = "sample text",
    document_name: str = "doc.pdf",
    page_number: int = 1,
    section_heading: str = "",
    chunk_index: int = 0,
) -> SearchResult:
    return SearchResult(
        id=id,
        score=score,
        text=text,
        document_name=document_name,
        page_number=page_number,
        section_heading=section_heading,
        chunk_index=chunk_index,
    )


def sparse_item(indices=(1, 5), values=(0.5, 0.25)):
    """Sparse provider item in the attribute shape of the Pinecone SDK."""
    return SimpleNamespace(vector_type="sparse", sparse_indices=list(indices), sparse_values=list(values))


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Settings built from a clean environment for every test."""
    from hybrid_rag import config

    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("PINECONE_API_KEY", raising=False)
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(config, "_settings", config.Settings(_env_file=None))
    yield
    monkeypatch.setattr(config, "_settings", None)


@pytest.fixture
def tokenizer():
    return WordTokenizer()


@pytest.fixture
def openai_client():
    """Dense provider double returning 3-dimensional vectors."""
    client = MagicMock()
    client.embed = AsyncMock(
        side_effect=lambda texts, model=None: [[0.1, 0.2, float(i)] for i in range(len(texts))]
    )
    client.generate = AsyncMock(return_value="Not in the document.")
    client.close = AsyncMock()
    return client


@pytest.fixture
def pinecone_client():
    """Sparse provider double returning one item per input text."""
    client = MagicMock()
    client.embed_sparse = AsyncMock(
        side_effect=lambda texts, input_type="passage": [sparse_item() for _ in texts]
    )
    return client


@pytest.fixture
def vector_store():
    store = MagicMock()
    store.upsert = AsyncMock(side_effect=lambda index, namespace, records: len(records))
    store.query = AsyncMock(return_value=[])
    store.delete_document_vectors = AsyncMock(return_value=0)
    store.delete_namespace = AsyncMock()
    store.count_vectors = AsyncMock(return_value=0)
    return store


@pytest.fixture
def embedder(openai_client, pinecone_client, vector_store):
    return HybridEmbedder(
        openai_client=openai_client,
        pinecone_client=pinecone_client,
        vector_store=vector_store,
        batch_size=2,
        batch_delay=0,
    )


@pytest.fixture(name="make_result")
def make_result_fixture():
    return make_result


@pytest.fixture(name="sparse_item")
def sparse_item_fixture():
    return sparse_item
