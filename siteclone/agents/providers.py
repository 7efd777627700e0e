"""LLM provider implementations."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, AsyncIterator

from ..config import DEFAULT_MODEL
from ..errors import ConfigurationError


@dataclass
class OpenAI:
    """OpenAI chat model provider.

    Works with any OpenAI-compatible server through ``base_url``. With
    ``streaming=True`` ``complete()`` consumes a token stream and returns
    the joined text; ``stream()`` always streams.
    """

    model: str = DEFAULT_MODEL
    api_key: str | None = None
    base_url: str | None = None
    streaming: bool = False

    def _client(self) -> Any:
        try:
            from openai import AsyncOpenAI
        except ImportError:
            raise ImportError(
                "openai package required. Install with: pip install openai"
            )

        api_key = self.api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError("Missing OPENAI_API_KEY environment variable")
        return AsyncOpenAI(api_key=api_key, base_url=self.base_url)

    def _request(self, messages: list[dict[str, Any]], **kwargs: Any) -> dict[str, Any]:
        return {"model": self.model, "messages": messages, **kwargs}

    async def complete(
        self,
        messages: list[dict[str, Any]],
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Generate one assistant reply using the OpenAI API."""
        client = self._client()
        request_params = self._request(messages, **kwargs)

        if self.streaming:
            chunks = [chunk async for chunk in _iter_deltas(client, request_params)]
            return {"role": "assistant", "content": "".join(chunks)}

        response = await client.chat.completions.create(**request_params)
        message = response.choices[0].message
        return {"role": "assistant", "content": message.content or ""}

    async def stream(
        self,
        messages: list[dict[str, Any]],
        **kwargs: Any,
    ) -> AsyncIterator[str]:
        """Yield reply text as it arrives."""
        client = self._client()
        async for chunk in _iter_deltas(client, self._request(messages, **kwargs)):
            yield chunk


async def _iter_deltas(client: Any, request_params: dict[str, Any]) -> AsyncIterator[str]:
    stream = await client.chat.completions.create(**request_params, stream=True)
    async for chunk in stream:
        if not chunk.choices:
            continue
        delta = chunk.choices[0].delta.content
        if delta:
            yield delta
