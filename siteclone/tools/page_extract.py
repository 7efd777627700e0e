"""``page.extract``: capture a page's HTML, CSS, scripts and metadata."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from datetime import datetime, timezone
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

# Computed styles are collected for at most this many elements.
COMPUTED_STYLE_LIMIT = 100

STYLESHEETS_JS = """() => {
  const css = [];
  const seen = new Set();
  for (const sheet of Array.from(document.styleSheets)) {
    try {
      if (sheet.cssRules) {
        const rules = Array.from(sheet.cssRules).map(r => r.cssText).join('\\n');
        if (rules.trim()) css.push({type: 'inline', content: rules, href: sheet.href || 'inline'});
      }
    } catch (e) {
      if (sheet.href && !seen.has(sheet.href)) {
        seen.add(sheet.href);
        css.push({type: 'external', content: null, href: sheet.href, error: 'CORS or access denied'});
      }
    }
  }
  document.querySelectorAll('style').forEach((tag, index) => {
    if (tag.textContent.trim()) css.push({type: 'style_tag', content: tag.textContent, href: `inline-style-${index}`});
  });
  return css;
}"""

COMPUTED_STYLES_JS = """(limit) => {
  const props = ['display', 'position', 'width', 'height', 'margin', 'padding',
                 'color', 'background-color', 'font-size', 'font-family'];
  const styles = [];
  Array.from(document.querySelectorAll('*')).slice(0, limit).forEach((el, index) => {
    const computed = window.getComputedStyle(el);
    const classes = typeof el.className === 'string' ? el.className.split(' ').filter(c => c) : [];
    const selector = el.tagName.toLowerCase() + (el.id ? '#' + el.id : '') +
      (classes.length ? '.' + classes.join('.') : '');
    const relevant = {};
    for (const prop of props) {
      const value = computed.getPropertyValue(prop);
      if (value && value !== 'auto' && value !== 'initial') relevant[prop] = value;
    }
    if (Object.keys(relevant).length) styles.push({selector: selector || `element-${index}`, styles: relevant});
  });
  return styles;
}"""

SCRIPTS_JS = """() => Array.from(document.scripts).map((script, index) => ({
  index,
  src: script.src || null,
  content: script.innerHTML || null,
  type: script.type || 'text/javascript',
  async: script.async || false,
  defer: script.defer || false,
}))"""

METADATA_JS = """() => {
  const content = (selector) => document.querySelector(selector)?.content || '';
  const href = (selector) => document.querySelector(selector)?.href || '';
  return {
    title: document.title,
    description: content('meta[name="description"]'),
    keywords: content('meta[name="keywords"]'),
    viewport: content('meta[name="viewport"]'),
    charset: document.charset || document.characterSet || '',
    lang: document.documentElement.lang || '',
    ogTitle: content('meta[property="og:title"]'),
    ogDescription: content('meta[property="og:description"]'),
    ogImage: content('meta[property="og:image"]'),
    canonical: href('link[rel="canonical"]'),
    favicon: href('link[rel="icon"]') || href('link[rel="shortcut icon"]'),
  };
}"""


class ExtractOptions(BrowserOptions):
    use_cache: bool = Field(True, alias="useCache")
    extract_computed_styles: bool = Field(False, alias="extractComputedStyles")


class ExtractParams(ToolParams):
    url: str = Field(min_length=1)
    output_dir: str | None = Field(None, alias="outputDir")
    options: ExtractOptions = Field(default_factory=ExtractOptions)


def _load_cached(output_dir: Path, key: str) -> dict[str, Any] | None:
    entry = read_cache(output_dir).get(key)
    if not isinstance(entry, dict) or not entry.get("filePath"):
        return None
    path = resolve_cached(output_dir, entry["filePath"])
    if not path.exists():
        logger.warning("Cached extraction for %s not found at %s, extracting fresh data", key, path)
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Error reading cached extraction %s: %s", path, e)
        return None
    return {**data, "cached": True}


def _save(output_dir: Path, key: str, url: str, data: dict[str, Any]) -> Path:
    filename = f"extracted-{hostname(url)}-{int(time.time() * 1000)}.json"
    path = output_dir / filename
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    cache = read_cache(output_dir)
    cache[key] = {"filePath": filename, "timestamp": data["timestamp"], "url": url}
    write_cache(output_dir, cache)
    logger.info("Extraction for %s saved to %s", key, path)
    return path


async def extract_page_data(
    url: str,
    output_dir: str | Path,
    options: ExtractOptions | None = None,
    retry_delay: float = 3.0,
) -> dict[str, Any]:
    """Extract HTML, stylesheets, scripts and metadata from a live page.

    Results are cached per site (hostname without ``www.``) in
    ``<output_dir>/websites.json``; a cache hit returns the stored data with
    ``cached: True`` and never starts a browser.

    Args:
        url: Page to extract
        output_dir: Directory for extraction files and the cache index
        options: Navigation and extraction options
        retry_delay: Seconds between navigation attempts

    Returns:
        Dict with url, timestamp, html, stylesheets, computedStyles,
        scripts, metadata and stats
    """
    options = options or ExtractOptions()
    output_dir = Path(output_dir)
    key = get_website_key(url)

    if options.use_cache:
        cached = await asyncio.to_thread(_load_cached, output_dir, key)
        if cached is not None:
            logger.info("Returning cached extraction for %s", key)
            return cached

    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Extracting data from %s", url)
    async with open_page(options) as page:
        await navigate(page, url, options, retry_delay=retry_delay)
        html = await page.content()
        stylesheets = await page.evaluate(STYLESHEETS_JS)
        computed_styles: list[dict[str, Any]] = []
        if options.extract_computed_styles:
            computed_styles = await page.evaluate(COMPUTED_STYLES_JS, COMPUTED_STYLE_LIMIT)
        scripts = await page.evaluate(SCRIPTS_JS)
        metadata = await page.evaluate(METADATA_JS)

    data = {
        "url": url,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "html": html,
        "stylesheets": stylesheets,
        "computedStyles": computed_styles,
        "scripts": scripts,
        "metadata": metadata,
        "stats": {
            "htmlLength": len(html),
            "stylesheetsCount": len(stylesheets),
            "computedStylesCount": len(computed_styles),
            "scriptsCount": len(scripts),
        },
    }

    if options.use_cache:
        await asyncio.to_thread(_save, output_dir, key, url, data)
    return data


def page_extract_tool(default_dir: Path) -> Callable:
    """Build the ``page.extract`` tool writing to ``default_dir`` by default."""

    @tool(name="page.extract", params=ExtractParams)
    async def page_extract(url: str, output_dir: str | None, options: ExtractOptions) -> dict[str, Any]:
        """Extract a page's HTML, CSS, scripts and metadata (cached per site)."""
        return await extract_page_data(url, output_dir or default_dir, options)

    return page_extract
