"""Built-in tools for the website clone agent."""

from __future__ import annotations

from typing import Callable

from ..agents.tools import ToolRegistry
from ..config import Settings
from .files import (
    files_exists,
    files_read,
    files_read_many,
    files_replace,
    files_search,
    files_write,
)
from .listing import fs_glob, fs_glob_with_stats, fs_list
from .page_extract import extract_page_data, page_extract_tool
from .screenshots import shots_capture_tool, take_responsive_screenshots
from .shell import run_shell_command, system_run


def default_tools(settings: Settings | None = None) -> list[Callable]:
    """All built-in tools, with browser output under ``settings.data_dir``."""
    settings = settings or Settings()
    return [
        page_extract_tool(settings.extraction_dir),
        shots_capture_tool(settings.screenshot_dir),
        files_read,
        files_read_many,
        files_write,
        files_search,
        files_replace,
        files_exists,
        fs_list,
        fs_glob,
        fs_glob_with_stats,
        system_run,
    ]


def build_default_registry(settings: Settings | None = None) -> ToolRegistry:
    return ToolRegistry(default_tools(settings))


__all__ = [
    "build_default_registry",
    "default_tools",
    "extract_page_data",
    "run_shell_command",
    "take_responsive_screenshots",
]
