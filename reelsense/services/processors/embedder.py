"""
Embedding Service

This module turns text into embedding vectors using the OpenAI embeddings
API.

Model: text-embedding-3-small (configurable)
- 1536 dimensions
- Cosine-ready (pgvector ``<=>``)

Features:
---------
- Single and batched embedding calls
- Input truncation (EMBEDDING_MAX_INPUT_CHARS) before every call
- Bounded timeout on every call (PROVIDER_TIMEOUT_SECONDS)
- SDK errors translated into ProviderError
- "Not configured" is a state, not a crash: callers check is_configured
"""

import asyncio
import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from reelsense.core.config import settings
from reelsense.core.exceptions import ProviderError, ProviderNotConfiguredError


logger = logging.getLogger(__name__)

PROVIDER_NAME = "openai"


class EmbeddingService:
    """
    Embedding provider backed by OpenAI.

    Usage:
    ------
    embedder = get_embedding_service()

    if embedder.is_configured:
        vector = await embedder.embed("cooking pasta at home")
        vectors = await embedder.embed_many(["Text 1", "Text 2"])
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_input_chars: Optional[int] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize the embedding service.

        Args:
            api_key: OpenAI API key (default from settings; None disables the provider)
            model: Embedding model name (default from settings)
            timeout: Per-call timeout in seconds (default from settings)
            max_input_chars: Truncation length for inputs (default from settings)
            client: Pre-built client (tests)
        """
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_EMBEDDING_MODEL
        self.timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS
        self.max_input_chars = max_input_chars or settings.EMBEDDING_MAX_INPUT_CHARS

        self.client = client
        if self.client is None and self.api_key:
            self.client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)

        if self.client is None:
            logger.warning("OpenAI API key not set; embedding provider disabled")

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def _prepare(self, text: str) -> str:
        return text[: self.max_input_chars]

    async def embed(self, text: str) -> list[float]:
        """
        Embed a single text.

        Raises:
            ProviderNotConfiguredError: No API key
            ProviderError: SDK error, timeout, or empty response
        """
        vectors = await self.embed_many([text])
        return vectors[0]

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """
        Embed several texts in one provider call.

        Returns vectors in input order. The number of vectors is checked
        against the number of inputs.

        Raises:
            ProviderNotConfiguredError: No API key
            ProviderError: SDK error, timeout, or wrong vector count
        """
        if not self.is_configured:
            raise ProviderNotConfiguredError(PROVIDER_NAME)

        if not texts:
            return []

        inputs = [self._prepare(text) for text in texts]

        try:
            response = await asyncio.wait_for(
                self.client.embeddings.create(model=self.model, input=inputs),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(PROVIDER_NAME, f"embedding call timed out after {self.timeout}s") from e
        except OpenAIError as e:
            logger.error(f"Error generating embeddings: {e}")
            raise ProviderError(PROVIDER_NAME, str(e)) from e

        data = sorted(response.data, key=lambda entry: entry.index)
        if len(data) != len(inputs):
            raise ProviderError(
                PROVIDER_NAME,
                f"expected {len(inputs)} embeddings, got {len(data)}",
            )

        return [list(entry.embedding) for entry in data]


# ========================================
# Global Instance Management
# ========================================

_embedding_service: Optional[EmbeddingService] = None


def get_embedding_service() -> EmbeddingService:
    """
    Get or create the global embedding service instance.

    Returns:
        EmbeddingService (possibly unconfigured)
    """
    global _embedding_service

    if _embedding_service is None:
        _embedding_service = EmbeddingService()

    return _embedding_service


async def shutdown_embedding_service() -> None:
    """Close the global client's HTTP pool. Called at application shutdown."""
    global _embedding_service

    if _embedding_service is not None and _embedding_service.client is not None:
        await _embedding_service.client.close()
    _embedding_service = None
