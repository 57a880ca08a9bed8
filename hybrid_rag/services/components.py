"""Construction of the long-lived provider clients from settings."""

from pinecone import Pinecone

from hybrid_rag.clients.openai_client import OpenAIClient
from hybrid_rag.clients.pinecone_client import PineconeClient
from hybrid_rag.config import Settings
from hybrid_rag.processing.chunker import PDFChunker
from hybrid_rag.processing.embedder import HybridEmbedder
from hybrid_rag.processing.tokenizer import TiktokenTokenizer
from hybrid_rag.storage.chroma_store import ChromaVectorStore
from hybrid_rag.storage.vector_store import PineconeVectorStore, VectorStore


def build_openai_client(settings: Settings) -> OpenAIClient:
    return OpenAIClient(
        api_key=(
            settings.openai_api_key.get_secret_value() if settings.openai_api_key else ""
        ),
        model=settings.openai_chat_model,
        embedding_model=settings.openai_embedding_model,
        timeout=settings.openai_timeout,
        max_retries=settings.openai_max_retries,
        expose_errors=settings.expose_provider_errors,
    )


def build_pinecone(settings: Settings) -> Pinecone:
    if settings.pinecone_api_key is None:
        raise ValueError("PINECONE_API_KEY is required for sparse embeddings")
    return Pinecone(api_key=settings.pinecone_api_key.get_secret_value())


def build_vector_store(settings: Settings, pinecone: Pinecone | None = None) -> VectorStore:
    if settings.vector_store_provider == "chroma":
        return ChromaVectorStore(
            persist_directory=settings.chroma_path,
            expose_errors=settings.expose_provider_errors,
        )
    return PineconeVectorStore(
        client=pinecone or build_pinecone(settings),
        expose_errors=settings.expose_provider_errors,
    )


def build_embedder(settings: Settings, vector_store: VectorStore | None = None) -> HybridEmbedder:
    """Build the embedder; the Pinecone handle is shared with the Pinecone store."""
    pinecone = build_pinecone(settings)
    return HybridEmbedder(
        openai_client=build_openai_client(settings),
        pinecone_client=PineconeClient(
            api_key=settings.pinecone_api_key.get_secret_value(),
            sparse_model=settings.sparse_embedding_model,
            client=pinecone,
        ),
        vector_store=vector_store or build_vector_store(settings, pinecone),
        batch_size=settings.embedding_batch_size,
        batch_delay=settings.embedding_batch_delay,
    )


def build_chunker(settings: Settings) -> PDFChunker:
    return PDFChunker(
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        tokenizer=TiktokenTokenizer(settings.tokenizer_encoding),
    )
