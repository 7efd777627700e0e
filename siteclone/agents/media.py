"""Inline image helpers for multi-modal tool results."""

from __future__ import annotations

import base64
from pathlib import Path

_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


def mime_from_extension(path: str | Path) -> str:
    return _MIME_TYPES.get(Path(path).suffix.lower(), "application/octet-stream")


def file_to_data_url(path: str | Path) -> str:
    """Read a file and encode it as a ``data:`` URL."""
    payload = base64.b64encode(Path(path).read_bytes()).decode("ascii")
    return f"data:{mime_from_extension(path)};base64,{payload}"
