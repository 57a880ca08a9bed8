"""Pinecone client for hosted sparse embeddings."""

import asyncio
import logging
from typing import Any

from pinecone import Pinecone

logger = logging.getLogger(__name__)


class PineconeClient:
    """Thin async wrapper around the Pinecone SDK.

    The SDK is synchronous, so calls run in a worker thread to keep the
    event loop free while waiting on the network. The underlying
    ``Pinecone`` handle is shared with the Pinecone vector store.
    """

    def __init__(
        self,
        api_key: str,
        sparse_model: str = "pinecone-sparse-english-v0",
        client: Pinecone | None = None,
    ):
        """Initialize Pinecone client.

        Args:
            api_key: Pinecone API key
            sparse_model: Hosted sparse embedding model
            client: Existing SDK handle to reuse
        """
        self.client = client or Pinecone(api_key=api_key)
        self.sparse_model = sparse_model

    async def embed_sparse(
        self,
        texts: list[str],
        input_type: str = "passage",
        truncate: str = "END",
    ) -> list[Any]:
        """Embed texts with the hosted sparse model.

        Args:
            texts: Texts to embed
            input_type: ``passage`` for documents, ``query`` for questions
            truncate: Truncation policy for over-long inputs

        Returns:
            Raw response items, one per input text; their shape depends on
            the SDK version
        """
        if not texts:
            return []

        def _embed():
            return self.client.inference.embed(
                model=self.sparse_model,
                inputs=texts,
                parameters={"input_type": input_type, "truncate": truncate},
            )

        response = await asyncio.to_thread(_embed)
        data = getattr(response, "data", response)
        logger.debug(f"Sparse embedding returned {len(data)} items for {len(texts)} texts")
        return list(data)
