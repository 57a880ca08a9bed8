"""Embedding and completion provider clients."""

from hybrid_rag.clients.openai_client import OpenAIClient
from hybrid_rag.clients.pinecone_client import PineconeClient

__all__ = ["OpenAIClient", "PineconeClient"]
