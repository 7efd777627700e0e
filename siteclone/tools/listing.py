"""Directory listing and glob tools."""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from pydantic import Field

from ..agents.tools import ToolParams, tool

logger = logging.getLogger(__name__)

DEFAULT_IGNORE = ["node_modules/**", ".git/**", ".vscode/**", ".idea/**", "*.log"]


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def _created(stat: os.stat_result) -> str:
    return _iso(getattr(stat, "st_birthtime", stat.st_ctime))


def _is_hidden(relative: Path) -> bool:
    return any(part.startswith(".") for part in relative.parts)


def _is_ignored(relative: str, patterns: list[str], case_sensitive: bool = True) -> bool:
    match = fnmatch.fnmatchcase if case_sensitive else fnmatch.fnmatch
    for pattern in patterns:
        if pattern.endswith("/**"):
            prefix = pattern[:-3]
            if relative == prefix or relative.startswith(prefix + "/"):
                return True
        if match(relative, pattern):
            return True
    return False


def _item_info(path: Path, relative: Path) -> dict[str, Any]:
    stat = path.stat()
    return {
        "name": relative.as_posix(),
        "path": str(path),
        "relativePath": relative.as_posix(),
        "isDirectory": path.is_dir(),
        "isFile": path.is_file(),
        "size": stat.st_size,
        "modified": _iso(stat.st_mtime),
        "created": _created(stat),
    }


def list_directory(
    dir_path: str | Path,
    recursive: bool = False,
    show_hidden: bool = False,
    sort_by: str = "name",
    sort_order: str = "asc",
    filter: str | None = None,
    max_depth: int | None = None,
) -> dict[str, Any]:
    """List a directory, optionally recursively.

    ``filter`` is a file extension such as ``".html"`` and only applies to
    files; directories are always listed.

    Raises:
        FileNotFoundError: If the directory does not exist
        NotADirectoryError: If the path is a file
    """
    root = Path(dir_path).resolve()
    if not root.exists():
        raise FileNotFoundError(f"Directory '{dir_path}' does not exist")
    if not root.is_dir():
        raise NotADirectoryError(f"Path '{dir_path}' is not a directory")

    candidates = root.rglob("*") if recursive else root.iterdir()
    extension = filter.lower() if filter else None
    if extension and not extension.startswith("."):
        extension = "." + extension

    items: list[dict[str, Any]] = []
    for path in candidates:
        relative = path.relative_to(root)
        if not show_hidden and _is_hidden(relative):
            continue
        if max_depth is not None and len(relative.parts) > max_depth:
            continue
        try:
            info = _item_info(path, relative)
        except OSError as e:
            logger.warning("Could not access '%s': %s", relative, e)
            continue
        if extension and info["isFile"] and path.suffix.lower() != extension:
            continue
        items.append(info)

    sort_keys = {
        "size": lambda item: item["size"],
        "date": lambda item: item["modified"],
    }
    items.sort(key=sort_keys.get(sort_by, lambda item: item["name"].lower()))
    if sort_order == "desc":
        items.reverse()

    files = [item for item in items if item["isFile"]]
    directories = [item for item in items if item["isDirectory"]]
    return {
        "path": str(root),
        "totalItems": len(items),
        "filesCount": len(files),
        "directoriesCount": len(directories),
        "files": files,
        "directories": directories,
        "options": {
            "recursive": recursive,
            "showHidden": show_hidden,
            "sortBy": sort_by,
            "sortOrder": sort_order,
            "filter": filter,
            "maxDepth": max_depth,
        },
    }


def glob(
    pattern: str,
    cwd: str | Path | None = None,
    ignore: list[str] | None = None,
    dot: bool = False,
    absolute: bool = True,
    max_depth: int | None = None,
    case_sensitive: bool = True,
) -> dict[str, Any]:
    """Match files and directories below ``cwd`` against a glob pattern.

    Hidden entries are skipped unless ``dot`` is set, and anything matching
    an ``ignore`` pattern is dropped. Matches are sorted.
    """
    if not pattern or not isinstance(pattern, str):
        raise ValueError("Pattern must be a non-empty string")
    root = Path(cwd) if cwd is not None else Path.cwd()
    if not root.exists():
        raise FileNotFoundError(f"Working directory does not exist: {root}")
    root = root.resolve()
    ignore = DEFAULT_IGNORE if ignore is None else ignore

    matches = []
    for path in root.glob(pattern, case_sensitive=case_sensitive):
        relative = path.relative_to(root)
        if not relative.parts:
            continue
        if not dot and _is_hidden(relative):
            continue
        if max_depth is not None and len(relative.parts) > max_depth:
            continue
        if _is_ignored(relative.as_posix(), ignore, case_sensitive):
            continue
        matches.append(str(path) if absolute else relative.as_posix())
    matches.sort()

    logger.debug("Glob %r in %s: %d match(es)", pattern, root, len(matches))
    return {
        "pattern": pattern,
        "matches": matches,
        "count": len(matches),
        "options": {
            "cwd": str(root),
            "ignore": ignore,
            "dot": dot,
            "absolute": absolute,
            "maxDepth": max_depth,
            "caseSensitive": case_sensitive,
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _stats(path: Path) -> dict[str, Any] | None:
    try:
        stat = path.stat()
    except OSError:
        return None
    return {
        "size": stat.st_size,
        "modified": _iso(stat.st_mtime),
        "isDirectory": path.is_dir(),
        "isFile": path.is_file(),
    }


def glob_with_stats(pattern: str, **options: Any) -> dict[str, Any]:
    """Like :func:`glob`, adding size and timestamps for every match."""
    result = glob(pattern, **options)
    root = Path(result["options"]["cwd"])
    files = []
    for match in result["matches"]:
        path = Path(match) if Path(match).is_absolute() else root / match
        files.append(
            {
                "path": match,
                "relativePath": path.relative_to(root).as_posix(),
                "stats": _stats(path),
            }
        )
    return {**result, "files": files}


# ---------------------------------------------------------------------------
# Tool contracts
# ---------------------------------------------------------------------------


class ListOptions(ToolParams):
    recursive: bool = False
    show_hidden: bool = Field(False, alias="showHidden")
    sort_by: Literal["name", "size", "date"] = Field("name", alias="sortBy")
    sort_order: Literal["asc", "desc"] = Field("asc", alias="sortOrder")
    filter: str | None = None
    max_depth: int | None = Field(None, alias="maxDepth", ge=1)


class ListParams(ToolParams):
    dir_path: str = Field(alias="dirPath")
    options: ListOptions = Field(default_factory=ListOptions)


class GlobOptions(ToolParams):
    cwd: str | None = None
    ignore: list[str] | None = None
    dot: bool = False
    absolute: bool = True
    max_depth: int | None = Field(None, alias="maxDepth", ge=1)
    case_sensitive: bool = Field(True, alias="caseSensitive")


class GlobParams(ToolParams):
    pattern: str
    options: GlobOptions = Field(default_factory=GlobOptions)


@tool(name="fs.list", params=ListParams)
async def fs_list(dir_path: str, options: ListOptions) -> dict[str, Any]:
    """List directory contents, split into files and directories."""
    return await asyncio.to_thread(list_directory, dir_path, **options.model_dump())


@tool(name="fs.glob", params=GlobParams)
async def fs_glob(pattern: str, options: GlobOptions) -> dict[str, Any]:
    """Find paths matching a glob pattern such as ``**/*.css``."""
    return await asyncio.to_thread(glob, pattern, **options.model_dump())


@tool(name="fs.globWithStats", params=GlobParams)
async def fs_glob_with_stats(pattern: str, options: GlobOptions) -> dict[str, Any]:
    """Glob and include size and modification time for each match."""
    return await asyncio.to_thread(glob_with_stats, pattern, **options.model_dump())
