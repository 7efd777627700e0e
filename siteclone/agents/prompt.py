"""System prompt resource."""

from __future__ import annotations

import asyncio
from pathlib import Path

DEFAULT_SYSTEM_PROMPT_PATH = Path(__file__).with_name("system_prompt.md")


async def load_system_prompt(path: str | Path | None = None) -> str:
    """Read the system prompt file without blocking the event loop."""
    prompt_path = Path(path) if path is not None else DEFAULT_SYSTEM_PROMPT_PATH
    return await asyncio.to_thread(prompt_path.read_text, encoding="utf-8")
