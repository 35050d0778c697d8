"""
Chat Generator

This module wraps the Claude API as the assistant's generation provider:
- Chat-style message lists in, text out
- Whole-shot completion and streamed completion
- Bounded timeouts, SDK errors translated into ProviderError

Messages use the common chat shape ``{"role": ..., "content": ...}`` with
roles ``system``, ``user`` and ``assistant``. Claude takes the system
prompt as a separate parameter and expects strictly alternating turns that
start with a user turn, so messages are adapted before every call.
"""

import asyncio
import logging
from typing import AsyncIterator, Optional

from anthropic import AnthropicError, AsyncAnthropic

from reelsense.core.config import settings
from reelsense.core.exceptions import ProviderError, ProviderNotConfiguredError

logger = logging.getLogger(__name__)

PROVIDER_NAME = "anthropic"

ChatMessage = dict[str, str]


def adapt_messages(messages: list[ChatMessage]) -> tuple[str, list[ChatMessage]]:
    """
    Split chat messages into Claude's ``system`` string and turn list.

    - every ``system`` entry is folded into the system string, in order
    - consecutive turns with the same role are merged
    - leading assistant turns are dropped

    Returns:
        (system_prompt, messages)
    """
    system_parts: list[str] = []
    turns: list[ChatMessage] = []

    for message in messages:
        role = message["role"]
        content = message["content"]

        if role == "system":
            system_parts.append(content)
            continue

        if not turns and role == "assistant":
            continue

        if turns and turns[-1]["role"] == role:
            turns[-1] = {"role": role, "content": f"{turns[-1]['content']}\n\n{content}"}
        else:
            turns.append({"role": role, "content": content})

    return "\n\n".join(system_parts), turns


class ChatGenerator:
    """
    Generation provider using Claude API.

    Usage:
    ------
    generator = get_generator()

    reply = await generator.complete(messages)

    async with contextlib.aclosing(generator.stream_complete(messages)) as deltas:
        async for delta in deltas:
            print(delta, end="", flush=True)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncAnthropic] = None,
    ):
        """
        Initialize the generator.

        Args:
            api_key: Anthropic API key (defaults to settings.ANTHROPIC_API_KEY)
            model: Claude model to use (defaults to settings.ANTHROPIC_MODEL)
            max_tokens: Maximum tokens in response (default: CHAT_MAX_TOKENS)
            temperature: Sampling temperature 0-1 (default: CHAT_TEMPERATURE)
            timeout: Per-call timeout in seconds (default: PROVIDER_TIMEOUT_SECONDS)
            client: Pre-built client (tests)
        """
        self.api_key = api_key if api_key is not None else settings.ANTHROPIC_API_KEY
        self.model = model or settings.ANTHROPIC_MODEL
        self.max_tokens = max_tokens or settings.CHAT_MAX_TOKENS
        self.temperature = temperature if temperature is not None else settings.CHAT_TEMPERATURE
        self.timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS

        self.client = client
        if self.client is None and self.api_key:
            self.client = AsyncAnthropic(api_key=self.api_key, timeout=self.timeout, max_retries=0)

        if self.client is None:
            logger.warning("Anthropic API key not set; generation provider disabled")
        else:
            logger.info(f"ChatGenerator initialized with model={self.model}, max_tokens={self.max_tokens}")

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def _request(
        self,
        messages: list[ChatMessage],
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> dict:
        system_prompt, turns = adapt_messages(messages)
        if not turns:
            raise ProviderError(PROVIDER_NAME, "no user message to respond to")

        request = {
            "model": self.model,
            "max_tokens": max_tokens or self.max_tokens,
            "temperature": self.temperature if temperature is None else temperature,
            "messages": turns,
        }
        if system_prompt:
            request["system"] = system_prompt
        return request

    async def complete(
        self,
        messages: list[ChatMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Generate a whole reply.

        Raises:
            ProviderNotConfiguredError: No API key
            ProviderError: SDK error, timeout, or empty response
        """
        if not self.is_configured:
            raise ProviderNotConfiguredError(PROVIDER_NAME)

        request = self._request(messages, temperature, max_tokens)

        try:
            response = await asyncio.wait_for(
                self.client.messages.create(**request),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(PROVIDER_NAME, f"completion timed out after {self.timeout}s") from e
        except AnthropicError as e:
            logger.error(f"Error generating response: {e}")
            raise ProviderError(PROVIDER_NAME, str(e)) from e

        answer = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not answer:
            raise ProviderError(PROVIDER_NAME, "empty completion")

        logger.info(f"Generated response: {len(answer)} chars")
        return answer

    async def stream_complete(
        self,
        messages: list[ChatMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> AsyncIterator[str]:
        """
        Stream a reply as text deltas.

        The underlying HTTP stream is closed when this generator is closed,
        whether it ran to completion or not.

        Raises:
            ProviderNotConfiguredError: No API key
            ProviderError: SDK error or timeout while streaming
        """
        if not self.is_configured:
            raise ProviderNotConfiguredError(PROVIDER_NAME)

        request = self._request(messages, temperature, max_tokens)

        try:
            async with self.client.messages.stream(**request) as stream:
                async for text in stream.text_stream:
                    yield text
        except AnthropicError as e:
            logger.error(f"Error streaming response: {e}")
            raise ProviderError(PROVIDER_NAME, str(e)) from e


# Global generator instance
_generator: Optional[ChatGenerator] = None


def get_generator() -> ChatGenerator:
    """
    Get or create the global generator instance.

    Returns:
        ChatGenerator (possibly unconfigured)
    """
    global _generator

    if _generator is None:
        _generator = ChatGenerator()

    return _generator


async def shutdown_generator() -> None:
    global _generator

    if _generator is not None and _generator.client is not None:
        await _generator.client.close()
    _generator = None
