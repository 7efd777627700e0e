"""Typed configuration loaded from the environment.

Settings are a frozen dataclass so the CLI and tests can build them
explicitly; ``from_env()`` is the only place that reads ``os.environ``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError

DEFAULT_MODEL = "gpt-4.1"
DEFAULT_MAX_STEPS = 20
ENV_FILES = (".env.local", ".env")


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the agent and its tools.

    Args:
        openai_api_key: API key for the OpenAI provider (empty if unset)
        openai_model: Model name passed to the provider
        openai_base_url: Optional override for OpenAI-compatible servers
        max_steps: Step budget for one agent turn
        system_prompt_path: Optional path to a custom system prompt file
        data_dir: Root directory for extraction and screenshot output
        log_level: Logging level name used by the CLI
    """

    openai_api_key: str = ""
    openai_model: str = DEFAULT_MODEL
    openai_base_url: str | None = None
    max_steps: int = DEFAULT_MAX_STEPS
    system_prompt_path: Path | None = None
    data_dir: Path = Path("data")
    log_level: str = "INFO"

    @property
    def extraction_dir(self) -> Path:
        return self.data_dir / "website_extraction"

    @property
    def screenshot_dir(self) -> Path:
        return self.data_dir / "screenshots"

    def require_api_key(self) -> str:
        """Return the API key or raise if it is missing."""
        if not self.openai_api_key:
            raise ConfigurationError("Missing OPENAI_API_KEY environment variable")
        return self.openai_api_key

    @classmethod
    def from_env(cls, env_files: tuple[str, ...] = ENV_FILES) -> Settings:
        """Build Settings from environment variables and dotenv files.

        Files earlier in ``env_files`` win; variables already present in the
        process environment are never overridden.
        """
        from dotenv import load_dotenv

        for env_file in env_files:
            load_dotenv(env_file, override=False)

        prompt_path = os.getenv("SITECLONE_SYSTEM_PROMPT")
        log_level = os.getenv("SITECLONE_LOG_LEVEL", "INFO").upper()
        if log_level not in logging.getLevelNamesMapping():
            raise ConfigurationError(f"Unknown log level: {log_level}")

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            max_steps=_parse_positive_int(
                "SITECLONE_MAX_STEPS", os.getenv("SITECLONE_MAX_STEPS")
            ),
            system_prompt_path=Path(prompt_path) if prompt_path else None,
            data_dir=Path(os.getenv("SITECLONE_DATA_DIR", "data")),
            log_level=log_level,
        )


def _parse_positive_int(name: str, raw: str | None) -> int:
    if raw is None or raw == "":
        return DEFAULT_MAX_STEPS
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'")
    if value < 1:
        raise ConfigurationError(f"{name} must be at least 1, got {value}")
    return value
