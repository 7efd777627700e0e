"""LLM provider interface types."""

from __future__ import annotations

from typing import Any, AsyncIterator, Protocol


class LLM(Protocol):
    """Interface for chat-style models."""

    async def complete(
        self,
        messages: list[dict[str, Any]],
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Return an assistant message dict with text or part-list content."""
        ...


class StreamingLLM(LLM, Protocol):
    """Chat model that can also yield its reply token by token."""

    def stream(
        self,
        messages: list[dict[str, Any]],
        **kwargs: Any,
    ) -> AsyncIterator[str]:
        """Yield text chunks of the assistant reply."""
        ...
