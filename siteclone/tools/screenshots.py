"""``shots.capture``: full-page screenshots at mobile, tablet and desktop widths."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Callable

from pydantic import Field

from ..agents.tools import ToolParams, tool
from .browser import (
    BrowserOptions,
    get_website_key,
    hostname,
    navigate,
    open_page,
    read_cache,
    resolve_cached,
    write_cache,
)

logger = logging.getLogger(__name__)

VIEWPORTS = [
    {"name": "mobile", "width": 375, "height": 667},
    {"name": "tablet", "width": 768, "height": 1024},
    {"name": "desktop", "width": 1920, "height": 1080},
]

# Seconds for responsive layout changes to apply after resizing.
RESIZE_DELAY = 1.5

SCROLL_JS = """() => new Promise((resolve) => {
  let total = 0;
  const timer = setInterval(() => {
    window.scrollBy(0, 100);
    total += 100;
    if (total >= document.body.scrollHeight) {
      clearInterval(timer);
      window.scrollTo(0, 0);
      setTimeout(resolve, 500);
    }
  }, 100);
})"""


class CaptureParams(ToolParams):
    url: str = Field(min_length=1)
    output_dir: str | None = Field(None, alias="outputDir")
    options: BrowserOptions = Field(default_factory=BrowserOptions)


def _dimensions(viewport: dict[str, Any]) -> str:
    return f"{viewport['width']}x{viewport['height']}"


def _load_cached(output_dir: Path, key: str) -> list[dict[str, Any]] | None:
    """Cached screenshots for ``key``, or None unless every viewport file exists."""
    entry = read_cache(output_dir).get(key)
    if not isinstance(entry, dict):
        return None

    screenshots = []
    for viewport in VIEWPORTS:
        file_path = entry.get(viewport["name"])
        if not file_path:
            return None
        path = resolve_cached(output_dir, file_path)
        if not path.exists():
            logger.warning("Cached screenshot not found: %s", path)
            return None
        screenshots.append(
            {
                "viewport": viewport["name"],
                "dimensions": _dimensions(viewport),
                "file": str(path),
                "filename": path.name,
                "cached": True,
            }
        )
    return screenshots


async def _capture(page: Any, viewport: dict[str, Any], path: Path) -> None:
    await page.set_viewport_size({"width": viewport["width"], "height": viewport["height"]})
    await asyncio.sleep(RESIZE_DELAY)
    await page.evaluate(SCROLL_JS)
    await page.screenshot(path=str(path), full_page=True)


async def take_responsive_screenshots(
    url: str,
    output_dir: str | Path,
    options: BrowserOptions | None = None,
    retry_delay: float = 3.0,
) -> list[dict[str, Any]]:
    """Screenshot ``url`` at every viewport in :data:`VIEWPORTS`.

    A viewport that fails is reported with ``file: None`` and an ``error``
    and the others still run. The per-site cache in
    ``<output_dir>/websites.json`` is only updated when every viewport
    succeeded.
    """
    options = options or BrowserOptions()
    output_dir = Path(output_dir)
    key = get_website_key(url)

    cached = await asyncio.to_thread(_load_cached, output_dir, key)
    if cached is not None:
        logger.info("Returning %d cached screenshots for %s", len(cached), key)
        return cached

    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Taking responsive screenshots of %s", url)
    timestamp = int(time.time() * 1000)
    screenshots: list[dict[str, Any]] = []

    async with open_page(options) as page:
        await navigate(page, url, options, retry_delay=retry_delay)
        for viewport in VIEWPORTS:
            filename = f"screenshot-{hostname(url)}-{viewport['name']}-{timestamp}.png"
            path = (output_dir / filename).resolve()
            shot: dict[str, Any] = {
                "viewport": viewport["name"],
                "dimensions": _dimensions(viewport),
            }
            try:
                await _capture(page, viewport, path)
            except Exception as e:
                logger.warning("Failed to take %s screenshot: %s", viewport["name"], e)
                shot.update(file=None, filename=None, error=str(e))
            else:
                logger.info("Saved %s", filename)
                shot.update(file=str(path), filename=filename)
            screenshots.append(shot)

    successful = [shot for shot in screenshots if shot["file"]]
    if len(successful) == len(VIEWPORTS):
        cache = await asyncio.to_thread(read_cache, output_dir)
        cache[key] = {shot["viewport"]: shot["file"] for shot in successful}
        await asyncio.to_thread(write_cache, output_dir, cache)
    else:
        logger.warning(
            "Only %d/%d screenshots succeeded, cache not updated",
            len(successful),
            len(VIEWPORTS),
        )
    return screenshots


def screenshot_files(result: Any) -> list[str]:
    """Image paths to inline from a ``shots.capture`` result."""
    if not isinstance(result, list):
        return []
    return [shot["file"] for shot in result if isinstance(shot, dict) and shot.get("file")]


def summarize_screenshots(result: Any) -> Any:
    if not isinstance(result, list):
        return result
    return [
        {
            "viewport": shot.get("viewport"),
            "file": shot.get("file"),
            "error": shot.get("error"),
        }
        for shot in result
        if isinstance(shot, dict)
    ]


def shots_capture_tool(default_dir: Path) -> Callable:
    """Build the ``shots.capture`` tool writing to ``default_dir`` by default."""

    @tool(
        name="shots.capture",
        params=CaptureParams,
        images=screenshot_files,
        summarize=summarize_screenshots,
    )
    async def shots_capture(
        url: str, output_dir: str | None, options: BrowserOptions
    ) -> list[dict[str, Any]]:
        """Capture full-page screenshots at mobile, tablet and desktop widths."""
        return await take_responsive_screenshots(url, output_dir or default_dir, options)

    return shots_capture
