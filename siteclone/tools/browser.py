"""Shared headless-browser helpers for the page and screenshot tools.

Playwright is imported lazily so the rest of the package (and the
per-site caches) work without a browser installed.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Literal
from urllib.parse import urlparse

from pydantic import Field

from ..agents.tools import ToolParams

logger = logging.getLogger(__name__)

CACHE_FILE = "websites.json"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

EXTRA_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
}

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]

# Seconds to let client-side rendering settle after navigation.
SETTLE_DELAY = 2.0

WaitUntil = Literal["commit", "domcontentloaded", "load", "networkidle", "networkidle0", "networkidle2"]


class BrowserOptions(ToolParams):
    timeout: int = Field(60000, ge=1)
    retries: int = Field(3, ge=1)
    wait_until: WaitUntil = Field("domcontentloaded", alias="waitUntil")
    user_agent: str = Field(USER_AGENT, alias="userAgent")


def get_website_key(url: str) -> str:
    """Cache key for a URL: its hostname without a leading ``www.``."""
    hostname = urlparse(url).hostname
    if not hostname:
        return url
    return hostname.removeprefix("www.")


def hostname(url: str) -> str:
    return urlparse(url).hostname or get_website_key(url)


def read_cache(directory: Path) -> dict[str, Any]:
    """Read ``websites.json`` from ``directory``; unreadable files count as empty."""
    path = directory / CACHE_FILE
    if not path.exists():
        return {}
    try:
        content = path.read_text(encoding="utf-8").strip()
        data = json.loads(content) if content else {}
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Error reading %s, starting with empty data: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def write_cache(directory: Path, data: dict[str, Any]) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / CACHE_FILE).write_text(json.dumps(data, indent=2), encoding="utf-8")


def resolve_cached(directory: Path, file_path: str) -> Path:
    path = Path(file_path)
    return path if path.is_absolute() else (directory / path).resolve()


def _playwright_wait_until(wait_until: str) -> str:
    # Puppeteer-style names map onto Playwright's single network-idle state.
    if wait_until in ("networkidle0", "networkidle2"):
        return "networkidle"
    return wait_until


@asynccontextmanager
async def open_page(options: BrowserOptions) -> AsyncIterator[Any]:
    """Launch headless Chromium and yield a configured page.

    The browser is closed when the context exits, also on error.
    """
    try:
        from playwright.async_api import async_playwright
    except ImportError:
        raise ImportError(
            "playwright package required. Install with: pip install playwright "
            "&& playwright install chromium"
        )

    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=True, args=LAUNCH_ARGS)
        try:
            context = await browser.new_context(
                user_agent=options.user_agent, extra_http_headers=EXTRA_HEADERS
            )
            page = await context.new_page()
            page.set_default_navigation_timeout(options.timeout)
            page.set_default_timeout(options.timeout)
            yield page
        finally:
            await browser.close()


async def navigate(page: Any, url: str, options: BrowserOptions, retry_delay: float = 3.0) -> None:
    """Load ``url``, retrying failed navigations.

    Raises:
        RuntimeError: If every attempt fails
    """
    from playwright.async_api import Error as PlaywrightError
    from playwright.async_api import TimeoutError as PlaywrightTimeoutError

    last_error: Exception | None = None
    for attempt in range(1, options.retries + 1):
        logger.info("Navigation attempt %d/%d: %s", attempt, options.retries, url)
        try:
            await page.goto(
                url,
                wait_until=_playwright_wait_until(options.wait_until),
                timeout=options.timeout,
            )
        except PlaywrightError as e:
            last_error = e
            logger.warning("Attempt %d failed: %s", attempt, e)
            if attempt < options.retries:
                await asyncio.sleep(retry_delay)
            continue

        try:
            await page.wait_for_selector("body", timeout=5000)
        except PlaywrightTimeoutError:
            logger.warning("Body selector not found on %s, continuing", url)
        await asyncio.sleep(SETTLE_DELAY)
        return

    raise RuntimeError(
        f"Navigation failed after {options.retries} attempts. Last error: {last_error}"
    )
