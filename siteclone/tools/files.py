"""File read, write, search and replace tools.

The plain functions are synchronous and usable on their own; the
``files.*`` tools run them in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import Field

from ..agents.tools import ToolParams, tool

logger = logging.getLogger(__name__)


def format_file_size(size: float) -> str:
    """Format a byte count as ``"1.5 KB"``."""
    units = ["B", "KB", "MB", "GB"]
    unit = 0
    while size >= 1024 and unit < len(units) - 1:
        size /= 1024
        unit += 1
    return f"{size:.1f} {units[unit]}"


def _mtime(path: Path) -> str:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc).isoformat()


def _backup(path: Path) -> Path:
    backup_path = path.with_name(f"{path.name}.backup.{int(time.time() * 1000)}")
    shutil.copyfile(path, backup_path)
    logger.info("Backup created: %s", backup_path)
    return backup_path


def _literal_pattern(value: str, *, case_sensitive: bool, whole_word: bool) -> re.Pattern:
    pattern = re.escape(value)
    if whole_word:
        pattern = rf"\b{pattern}\b"
    return re.compile(pattern, 0 if case_sensitive else re.IGNORECASE)


def file_exists(file_path: str | Path) -> bool:
    return Path(file_path).exists()


def read_file(file_path: str | Path, encoding: str = "utf-8") -> dict[str, Any]:
    path = Path(file_path).resolve()
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    return {
        "content": path.read_text(encoding=encoding),
        "filePath": str(path),
        "size": path.stat().st_size,
        "modified": _mtime(path),
        "encoding": encoding,
    }


def read_many_files(
    file_paths: list[str],
    encoding: str = "utf-8",
    continue_on_error: bool = True,
) -> dict[str, Any]:
    """Read several files, collecting per-file errors.

    With ``continue_on_error=False`` the first failure raises.
    """
    results: list[dict[str, Any]] = []
    summary: dict[str, Any] = {
        "total": len(file_paths),
        "successful": 0,
        "failed": 0,
        "totalSize": 0,
    }

    for file_path in file_paths:
        path = Path(file_path).resolve()
        try:
            data = read_file(path, encoding)
        except (OSError, UnicodeDecodeError) as e:
            if not continue_on_error:
                raise OSError(f"Failed to read file {file_path}: {e}") from e
            results.append({"file": str(path), "error": str(e), "success": False})
            summary["failed"] += 1
            continue

        results.append(
            {
                "file": str(path),
                "content": data["content"],
                "size": data["size"],
                "formattedSize": format_file_size(data["size"]),
                "modified": data["modified"],
                "success": True,
                "encoding": encoding,
            }
        )
        summary["successful"] += 1
        summary["totalSize"] += data["size"]

    summary["formattedTotalSize"] = format_file_size(summary["totalSize"])
    return {"results": results, "summary": summary}


def write_file(
    file_path: str | Path,
    content: str,
    encoding: str = "utf-8",
    create_dirs: bool = True,
    append: bool = False,
    backup: bool = False,
) -> dict[str, Any]:
    path = Path(file_path).resolve()
    existed = path.exists()

    if create_dirs:
        path.parent.mkdir(parents=True, exist_ok=True)
    if backup and existed:
        _backup(path)

    with path.open("a" if append else "w", encoding=encoding) as handle:
        handle.write(content)

    size = path.stat().st_size
    if append:
        operation = "appended"
    else:
        operation = "overwritten" if existed else "created"
    return {
        "file": str(path),
        "size": size,
        "formattedSize": format_file_size(size),
        "created": datetime.now(timezone.utc).isoformat(),
        "operation": operation,
        "encoding": encoding,
    }


def search_file_content(
    file_paths: str | list[str],
    pattern: str,
    case_sensitive: bool = True,
    whole_word: bool = False,
    max_matches: int = 100,
    show_context: bool = False,
    context_lines: int = 2,
) -> dict[str, Any]:
    """Search files for a literal pattern, line by line.

    Missing or unreadable files are reported in ``summary.errors`` rather
    than raised.
    """
    regex = _literal_pattern(pattern, case_sensitive=case_sensitive, whole_word=whole_word)
    paths = [file_paths] if isinstance(file_paths, str) else list(file_paths)
    results: list[dict[str, Any]] = []
    summary: dict[str, Any] = {
        "totalFiles": len(paths),
        "filesWithMatches": 0,
        "totalMatches": 0,
        "errors": [],
    }

    for file_path in paths:
        path = Path(file_path).resolve()
        if not path.is_file():
            summary["errors"].append(f"File not found: {path}")
            continue
        try:
            lines = path.read_text(encoding="utf-8").split("\n")
        except (OSError, UnicodeDecodeError) as e:
            summary["errors"].append(f"Error reading {file_path}: {e}")
            continue

        file_matches = 0
        for index, line in enumerate(lines):
            for match in regex.finditer(line):
                if len(results) >= max_matches:
                    break
                result: dict[str, Any] = {
                    "file": str(path),
                    "line": index + 1,
                    "content": line.strip(),
                    "match": match.group(0),
                    "position": match.start(),
                }
                if show_context:
                    start = max(0, index - context_lines)
                    end = min(len(lines), index + context_lines + 1)
                    result["context"] = [
                        {"line": n + 1, "content": lines[n], "isMatch": n == index}
                        for n in range(start, end)
                    ]
                results.append(result)
                file_matches += 1
                summary["totalMatches"] += 1

        if file_matches:
            summary["filesWithMatches"] += 1

    return {"results": results, "summary": summary}


def replace_in_file(
    file_path: str | Path,
    search_value: str,
    replace_value: str,
    backup: bool = False,
    dry_run: bool = False,
    case_sensitive: bool = True,
    whole_word: bool = False,
) -> dict[str, Any]:
    """Replace every literal occurrence of ``search_value`` in a file."""
    path = Path(file_path).resolve()
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    original = path.read_text(encoding="utf-8")
    original_size = path.stat().st_size
    regex = _literal_pattern(search_value, case_sensitive=case_sensitive, whole_word=whole_word)
    updated, replacements = regex.subn(lambda _: replace_value, original)

    if not dry_run and replacements:
        if backup:
            _backup(path)
        path.write_text(updated, encoding="utf-8")

    new_size = original_size if dry_run else path.stat().st_size
    return {
        "file": str(path),
        "replacements": replacements,
        "changed": replacements > 0,
        "dryRun": dry_run,
        "originalSize": original_size,
        "newSize": new_size,
        "sizeDifference": new_size - original_size,
    }


# ---------------------------------------------------------------------------
# Tool contracts
# ---------------------------------------------------------------------------


class ReadFileParams(ToolParams):
    file_path: str = Field(alias="filePath")
    encoding: str = "utf-8"


class ReadManyOptions(ToolParams):
    encoding: str = "utf-8"
    continue_on_error: bool = Field(True, alias="continueOnError")


class ReadManyParams(ToolParams):
    file_paths: list[str] = Field(alias="filePaths")
    options: ReadManyOptions = Field(default_factory=ReadManyOptions)


class WriteOptions(ToolParams):
    encoding: str = "utf-8"
    create_dirs: bool = Field(True, alias="createDirs")
    append: bool = False
    backup: bool = False


class WriteFileParams(ToolParams):
    file_path: str = Field(alias="filePath")
    content: str
    options: WriteOptions = Field(default_factory=WriteOptions)


class SearchOptions(ToolParams):
    case_sensitive: bool = Field(True, alias="caseSensitive")
    whole_word: bool = Field(False, alias="wholeWord")
    max_matches: int = Field(100, alias="maxMatches", ge=0)
    show_context: bool = Field(False, alias="showContext")
    context_lines: int = Field(2, alias="contextLines", ge=0)


class SearchParams(ToolParams):
    file_paths: str | list[str] = Field(alias="filePaths")
    pattern: str
    options: SearchOptions = Field(default_factory=SearchOptions)


class ReplaceOptions(ToolParams):
    backup: bool = False
    dry_run: bool = Field(False, alias="dryRun")
    case_sensitive: bool = Field(True, alias="caseSensitive")
    whole_word: bool = Field(False, alias="wholeWord")


class ReplaceParams(ToolParams):
    file_path: str = Field(alias="filePath")
    search_value: str = Field(alias="searchValue")
    replace_value: str = Field(alias="replaceValue")
    options: ReplaceOptions = Field(default_factory=ReplaceOptions)


class ExistsParams(ToolParams):
    file_path: str = Field(alias="filePath")


@tool(name="files.read", params=ReadFileParams)
async def files_read(file_path: str, encoding: str) -> dict[str, Any]:
    """Read a text file with its size and modification time."""
    return await asyncio.to_thread(read_file, file_path, encoding)


@tool(name="files.readMany", params=ReadManyParams)
async def files_read_many(file_paths: list[str], options: ReadManyOptions) -> dict[str, Any]:
    """Read several files; per-file errors are reported, not raised."""
    return await asyncio.to_thread(read_many_files, file_paths, **options.model_dump())


@tool(name="files.write", params=WriteFileParams)
async def files_write(file_path: str, content: str, options: WriteOptions) -> dict[str, Any]:
    """Write (or append) text to a file, creating parent directories."""
    return await asyncio.to_thread(write_file, file_path, content, **options.model_dump())


@tool(name="files.search", params=SearchParams)
async def files_search(
    file_paths: str | list[str], pattern: str, options: SearchOptions
) -> dict[str, Any]:
    """Search files for a literal pattern with optional context lines."""
    return await asyncio.to_thread(
        search_file_content, file_paths, pattern, **options.model_dump()
    )


@tool(name="files.replace", params=ReplaceParams)
async def files_replace(
    file_path: str, search_value: str, replace_value: str, options: ReplaceOptions
) -> dict[str, Any]:
    """Replace literal text in a file, with optional backup or dry run."""
    return await asyncio.to_thread(
        replace_in_file, file_path, search_value, replace_value, **options.model_dump()
    )


@tool(name="files.exists", params=ExistsParams)
async def files_exists(file_path: str) -> bool:
    """Check whether a path exists."""
    return await asyncio.to_thread(file_exists, file_path)
