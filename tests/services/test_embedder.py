"""
Tests for EmbeddingService.

This test module verifies:
1. Configured / unconfigured state
2. Single and batched embedding (order restored from response indexes)
3. Input truncation
4. Error translation (SDK errors, timeouts, wrong vector counts)

The OpenAI client is replaced with a mock; no network calls are made.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from reelsense.core.exceptions import ProviderError, ProviderNotConfiguredError
from reelsense.services.processors.embedder import (
    EmbeddingService,
    get_embedding_service,
    shutdown_embedding_service,
)


def embedding_response(vectors, reverse=False):
    data = [SimpleNamespace(index=i, embedding=vector) for i, vector in enumerate(vectors)]
    if reverse:
        data.reverse()
    return SimpleNamespace(data=data)


def mock_client(response=None, side_effect=None) -> MagicMock:
    client = MagicMock()
    client.embeddings.create = AsyncMock(return_value=response, side_effect=side_effect)
    client.close = AsyncMock()
    return client


class TestEmbeddingServiceConfiguration:

    def test_unconfigured_without_api_key(self):
        service = EmbeddingService(api_key="")
        assert not service.is_configured
        assert service.client is None

    def test_configured_with_client(self):
        service = EmbeddingService(client=mock_client())
        assert service.is_configured

    def test_settings_defaults(self):
        service = EmbeddingService(api_key="")
        assert service.model == "text-embedding-3-small"
        assert service.max_input_chars == 8000

    @pytest.mark.asyncio
    async def test_unconfigured_embed_raises(self):
        service = EmbeddingService(api_key="")

        with pytest.raises(ProviderNotConfiguredError):
            await service.embed("cats")


@pytest.mark.asyncio
class TestEmbedding:

    async def test_embed_single_text(self):
        client = mock_client(embedding_response([[0.1, 0.2, 0.3]]))
        service = EmbeddingService(client=client)

        vector = await service.embed("cooking pasta")

        assert vector == [0.1, 0.2, 0.3]
        client.embeddings.create.assert_awaited_once()
        kwargs = client.embeddings.create.await_args.kwargs
        assert kwargs["input"] == ["cooking pasta"]
        assert kwargs["model"] == service.model

    async def test_embed_many_restores_input_order(self):
        client = mock_client(embedding_response([[1.0], [2.0], [3.0]], reverse=True))
        service = EmbeddingService(client=client)

        vectors = await service.embed_many(["a", "b", "c"])

        assert vectors == [[1.0], [2.0], [3.0]]

    async def test_embed_many_empty_input(self):
        client = mock_client()
        service = EmbeddingService(client=client)

        assert await service.embed_many([]) == []
        client.embeddings.create.assert_not_awaited()

    async def test_inputs_are_truncated(self):
        client = mock_client(embedding_response([[0.5]]))
        service = EmbeddingService(client=client, max_input_chars=10)

        await service.embed("x" * 50)

        sent = client.embeddings.create.await_args.kwargs["input"]
        assert sent == ["x" * 10]


@pytest.mark.asyncio
class TestEmbeddingErrors:

    async def test_vector_count_mismatch(self):
        client = mock_client(embedding_response([[0.1]]))
        service = EmbeddingService(client=client)

        with pytest.raises(ProviderError):
            await service.embed_many(["a", "b"])

    async def test_sdk_error_is_translated(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
        error = openai.APIConnectionError(request=request)
        service = EmbeddingService(client=mock_client(side_effect=error))

        with pytest.raises(ProviderError) as exc_info:
            await service.embed("cats")

        assert exc_info.value.provider == "openai"

    async def test_timeout_is_translated(self):
        async def slow_create(**kwargs):
            await asyncio.sleep(1)

        client = MagicMock()
        client.embeddings.create = slow_create
        service = EmbeddingService(client=client, timeout=0.01)

        with pytest.raises(ProviderError):
            await service.embed("cats")


@pytest.mark.asyncio
class TestGlobalInstance:

    async def test_singleton_and_shutdown(self):
        first = get_embedding_service()
        assert get_embedding_service() is first

        await shutdown_embedding_service()

        assert get_embedding_service() is not first
        await shutdown_embedding_service()
