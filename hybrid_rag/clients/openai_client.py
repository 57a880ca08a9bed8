"""OpenAI provider for dense embeddings and answer completions."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from openai import (
    APIConnectionError,
    AsyncOpenAI,
    InternalServerError,
    OpenAIError,
    RateLimitError,
)

from hybrid_rag.errors import AnswerGenerationError, EmbeddingProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Worth another attempt; anything else (bad request, auth) fails at once.
# APITimeoutError is a subclass of APIConnectionError.
TRANSIENT_ERRORS = (RateLimitError, APIConnectionError, InternalServerError)


class OpenAIClient:
    """Dense embedding and chat completion provider.

    Transient failures are retried with exponential backoff. Once a call
    gives up, the SDK error is logged in full and re-raised as
    ``EmbeddingProviderError`` (embeddings) or ``AnswerGenerationError``
    (completions). With ``expose_errors`` off the raised message names only
    the failed operation.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4",
        embedding_model: str = "text-embedding-3-large",
        timeout: float = 30.0,
        max_retries: int = 3,
        expose_errors: bool = False,
    ):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key
            model: Chat model used for answers
            embedding_model: Default dense embedding model
            timeout: Request timeout in seconds
            max_retries: Attempts per call, including the first
            expose_errors: Include the provider's error text in raised errors
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model
        self.embedding_model = embedding_model
        self.max_retries = max_retries
        self.expose_errors = expose_errors

    def _failure_message(self, operation: str, error: Exception) -> str:
        if self.expose_errors:
            return f"{operation} failed: {type(error).__name__}: {error}"
        return f"{operation} failed"

    async def _call(
        self,
        operation: str,
        request: Callable[[], Awaitable[T]],
        error_type: type[Exception],
    ) -> T:
        """Run ``request`` with backoff (1s, 2s, 4s, ...) on transient errors."""
        attempt = 1
        while True:
            try:
                return await request()
            except TRANSIENT_ERRORS as e:
                if attempt == self.max_retries:
                    logger.error(
                        f"{operation} failed after {attempt} attempts: {type(e).__name__}: {e}"
                    )
                    raise error_type(self._failure_message(operation, e)) from e
                delay = 2 ** (attempt - 1)
                logger.warning(
                    f"{operation} failed (attempt {attempt}/{self.max_retries}): "
                    f"{type(e).__name__}. Retrying in {delay}s"
                )
                await asyncio.sleep(delay)
                attempt += 1
            except OpenAIError as e:
                logger.error(f"{operation} rejected: {type(e).__name__}: {e}")
                raise error_type(self._failure_message(operation, e)) from e

    async def embed(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        """Embed texts with one request.

        Args:
            texts: Texts to embed
            model: Embedding model; defaults to ``embedding_model``

        Returns:
            One vector per text, in input order

        Raises:
            EmbeddingProviderError: If the request fails or the response does
                not hold one vector per text
        """
        if not texts:
            return []

        async def _request() -> Any:
            return await self.client.embeddings.create(
                model=model or self.embedding_model,
                input=texts,
                encoding_format="float",
            )

        response = await self._call("Dense embedding request", _request, EmbeddingProviderError)

        if len(response.data) != len(texts):
            raise EmbeddingProviderError(
                f"Dense provider returned {len(response.data)} embeddings for {len(texts)} texts"
            )
        return [item.embedding for item in sorted(response.data, key=lambda item: item.index)]

    async def generate(
        self,
        prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 1000,
        system_message: str | None = None,
    ) -> str:
        """Complete a chat turn and return the reply text ('' if none).

        Raises:
            AnswerGenerationError: If the completion fails
        """
        messages = [{"role": "user", "content": prompt}]
        if system_message:
            messages.insert(0, {"role": "system", "content": system_message})

        async def _request() -> Any:
            return await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )

        response = await self._call("Answer completion", _request, AnswerGenerationError)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def close(self):
        await self.client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
