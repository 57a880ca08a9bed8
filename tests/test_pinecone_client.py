"""Unit tests for the Pinecone sparse embedding client."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from hybrid_rag.clients.pinecone_client import PineconeClient


@pytest.fixture
def sdk():
    sdk = MagicMock()
    sdk.inference.embed.return_value = SimpleNamespace(
        data=[SimpleNamespace(sparse_indices=[1], sparse_values=[0.5])]
    )
    return sdk


@pytest.mark.asyncio
async def test_embed_sparse_calls_inference(sdk):
    client = PineconeClient(api_key="pc-test", client=sdk)

    items = await client.embed_sparse(["some text"], input_type="query")

    assert len(items) == 1
    sdk.inference.embed.assert_called_once_with(
        model="pinecone-sparse-english-v0",
        inputs=["some text"],
        parameters={"input_type": "query", "truncate": "END"},
    )


@pytest.mark.asyncio
async def test_embed_sparse_empty_input(sdk):
    client = PineconeClient(api_key="pc-test", client=sdk)

    assert await client.embed_sparse([]) == []
    sdk.inference.embed.assert_not_called()


@pytest.mark.asyncio
async def test_embed_sparse_propagates_sdk_errors(sdk):
    sdk.inference.embed.side_effect = RuntimeError("quota exceeded")
    client = PineconeClient(api_key="pc-test", client=sdk)

    with pytest.raises(RuntimeError):
        await client.embed_sparse(["text"])
