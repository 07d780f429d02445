"""AI provider abstraction for Anthropic and OpenAI models."""

from __future__ import annotations

import logging
import time
from typing import Any

import anthropic
import openai

from backend.config import settings

logger = logging.getLogger(__name__)


class AIProvider:
    """
    Unified interface for AI providers (Anthropic, OpenAI).

    Clients are created on first use so importing this module never needs a key.
    Calls are made exactly once; there is no retry loop here. Callers map
    provider exceptions to their own error types.
    """

    def __init__(self, provider: str | None = None) -> None:
        self.provider = provider or settings.COMPILER_PROVIDER
        self._anthropic_client: anthropic.AsyncAnthropic | None = None
        self._openai_client: openai.AsyncOpenAI | None = None

    @property
    def anthropic_client(self) -> anthropic.AsyncAnthropic:
        if self._anthropic_client is None:
            self._anthropic_client = anthropic.AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY)
        return self._anthropic_client

    @property
    def openai_client(self) -> openai.AsyncOpenAI:
        if self._openai_client is None:
            self._openai_client = openai.AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        return self._openai_client

    @property
    def service_name(self) -> str:
        return "OpenAI" if self.provider == "openai" else "Claude"

    async def complete(self, prompt: str, max_tokens: int | None = None) -> str:
        """
        Send one user prompt to the configured provider and return the reply text.

        Raises:
            anthropic.APIError / openai.APIError: passed through unchanged
        """
        messages = [{"role": "user", "content": prompt}]
        max_tokens = max_tokens or settings.COMPILER_MAX_TOKENS
        if self.provider == "openai":
            result = await self.call_gpt(model=settings.OPENAI_MODEL, messages=messages, max_tokens=max_tokens)
        else:
            result = await self.call_claude(model=settings.COMPILER_MODEL, messages=messages, max_tokens=max_tokens)
        return result["content"]

    async def call_claude(
        self,
        model: str,
        messages: list[dict[str, Any]],
        system: str | None = None,
        max_tokens: int = 400,
        temperature: float = 0.0,
    ) -> dict[str, Any]:
        """
        Call Claude API with timing telemetry.

        Args:
            model: Model name (e.g., "claude-3-5-sonnet-20241022")
            messages: List of message dicts with "role" and "content"
            system: Optional system prompt
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            Dict with:
            - content: Generated text
            - usage: Token counts (input_tokens, output_tokens)
            - timing: Timing telemetry (total_ms)

        Raises:
            anthropic.APIError: On any API failure
        """
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        request_sent_at = time.perf_counter()
        response = await self.anthropic_client.messages.create(**kwargs)
        total_ms = int((time.perf_counter() - request_sent_at) * 1000)

        content_text = "".join(getattr(block, "text", "") for block in response.content)
        usage = getattr(response, "usage", None)
        input_tokens = getattr(usage, "input_tokens", 0) or 0
        output_tokens = getattr(usage, "output_tokens", 0) or 0
        logger.info("Claude %s replied in %dms (%d in / %d out tokens)", model, total_ms, input_tokens, output_tokens)

        return {
            "content": content_text,
            "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
            "timing": {"total_ms": total_ms},
        }

    async def call_gpt(
        self,
        model: str,
        messages: list[dict[str, Any]],
        system: str | None = None,
        max_tokens: int = 400,
        temperature: float = 0.0,
    ) -> dict[str, Any]:
        """
        Call OpenAI GPT API.

        Args:
            model: Model name (e.g., "gpt-4o", "gpt-4o-mini")
            messages: List of message dicts with "role" and "content"
            system: Optional system prompt, prepended as a system message
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            Dict with "content" (text), "usage" (token counts) and "timing"

        Raises:
            openai.APIError: On any API failure
        """
        full_messages = ([{"role": "system", "content": system}] if system else []) + messages

        request_sent_at = time.perf_counter()
        response = await self.openai_client.chat.completions.create(
            model=model,
            messages=full_messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        total_ms = int((time.perf_counter() - request_sent_at) * 1000)

        usage = getattr(response, "usage", None)
        input_tokens = getattr(usage, "prompt_tokens", 0) or 0
        output_tokens = getattr(usage, "completion_tokens", 0) or 0
        logger.info("OpenAI %s replied in %dms (%d in / %d out tokens)", model, total_ms, input_tokens, output_tokens)

        return {
            "content": response.choices[0].message.content or "",
            "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
            "timing": {"total_ms": total_ms},
        }


# Singleton instance
ai_provider = AIProvider()
