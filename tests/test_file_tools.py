"""Tests for the file tools."""

import pytest

from siteclone.agents import ToolFailure, ToolRegistry
from siteclone.tools.files import (
    file_exists,
    files_read,
    files_replace,
    files_search,
    files_write,
    format_file_size,
    read_file,
    read_many_files,
    replace_in_file,
    search_file_content,
    write_file,
)


@pytest.mark.parametrize(
    "size, expected",
    [(0, "0.0 B"), (512, "512.0 B"), (1536, "1.5 KB"), (5 * 1024 * 1024, "5.0 MB")],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_read_file(tmp_path):
    path = tmp_path / "index.html"
    path.write_text("<h1>Hi</h1>")

    data = read_file(path)

    assert data["content"] == "<h1>Hi</h1>"
    assert data["filePath"] == str(path.resolve())
    assert data["size"] == 11
    assert data["encoding"] == "utf-8"


def test_read_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="File not found"):
        read_file(tmp_path / "nope.txt")


def test_read_many_collects_errors(tmp_path):
    (tmp_path / "a.txt").write_text("aaa")
    result = read_many_files([str(tmp_path / "a.txt"), str(tmp_path / "missing.txt")])

    assert result["summary"]["total"] == 2
    assert result["summary"]["successful"] == 1
    assert result["summary"]["failed"] == 1
    assert result["summary"]["totalSize"] == 3
    assert result["results"][0]["content"] == "aaa"
    assert result["results"][1]["success"] is False


def test_read_many_stops_on_error_when_asked(tmp_path):
    with pytest.raises(OSError, match="Failed to read file"):
        read_many_files([str(tmp_path / "missing.txt")], continue_on_error=False)


def test_write_creates_parent_dirs(tmp_path):
    path = tmp_path / "out" / "site" / "index.html"
    result = write_file(path, "<html></html>")

    assert path.read_text() == "<html></html>"
    assert result["operation"] == "created"
    assert result["size"] == 13


def test_write_overwrite_append_and_backup(tmp_path):
    path = tmp_path / "styles.css"
    write_file(path, "a{}")

    assert write_file(path, "b{}", backup=True)["operation"] == "overwritten"
    assert write_file(path, "c{}", append=True)["operation"] == "appended"
    assert path.read_text() == "b{}c{}"
    backups = list(tmp_path.glob("styles.css.backup.*"))
    assert len(backups) == 1
    assert backups[0].read_text() == "a{}"


def test_search_is_literal(tmp_path):
    path = tmp_path / "app.js"
    path.write_text("const a = 1;\nlet b = a.b;\nconsole.log(a.b)\n")

    result = search_file_content(str(path), "a.b")

    assert result["summary"]["totalMatches"] == 2
    assert result["summary"]["filesWithMatches"] == 1
    assert [r["line"] for r in result["results"]] == [2, 3]
    assert result["results"][0]["content"] == "let b = a.b;"
    assert result["results"][0]["position"] == 8


def test_search_options(tmp_path):
    path = tmp_path / "page.html"
    path.write_text("Title\ntitle\nsubtitle\n")

    insensitive = search_file_content([str(path)], "title", case_sensitive=False)
    assert insensitive["summary"]["totalMatches"] == 3

    whole = search_file_content([str(path)], "title", case_sensitive=False, whole_word=True)
    assert [r["line"] for r in whole["results"]] == [1, 2]

    limited = search_file_content([str(path)], "title", case_sensitive=False, max_matches=1)
    assert len(limited["results"]) == 1

    context = search_file_content([str(path)], "sub", show_context=True, context_lines=1)
    assert [c["line"] for c in context["results"][0]["context"]] == [2, 3, 4]
    assert context["results"][0]["context"][1]["isMatch"] is True


def test_search_reports_missing_files(tmp_path):
    result = search_file_content([str(tmp_path / "gone.txt")], "x")
    assert result["results"] == []
    assert result["summary"]["errors"][0].startswith("File not found")


def test_replace(tmp_path):
    path = tmp_path / "index.html"
    path.write_text("<p>old</p><p>old</p>")

    result = replace_in_file(path, "old", "brand new")

    assert result["replacements"] == 2
    assert result["changed"] is True
    assert result["sizeDifference"] == 12
    assert path.read_text() == "<p>brand new</p><p>brand new</p>"


def test_replace_dry_run_leaves_file(tmp_path):
    path = tmp_path / "index.html"
    path.write_text("a.b a.b axb")

    result = replace_in_file(path, "a.b", "X", dry_run=True)

    assert result["replacements"] == 2
    assert result["dryRun"] is True
    assert result["sizeDifference"] == 0
    assert path.read_text() == "a.b a.b axb"


def test_replace_value_is_literal(tmp_path):
    path = tmp_path / "t.txt"
    path.write_text("price")
    replace_in_file(path, "price", r"\1 $5")
    assert path.read_text() == r"\1 $5"


def test_file_exists(tmp_path):
    assert file_exists(tmp_path) is True
    assert file_exists(tmp_path / "nope") is False


@pytest.mark.asyncio
async def test_tools_accept_wire_names(tmp_path):
    registry = ToolRegistry([files_write, files_read, files_search, files_replace])
    target = tmp_path / "site" / "index.html"

    written = await registry.invoke(
        "files.write",
        {"filePath": str(target), "content": "hello world", "options": {"createDirs": True}},
    )
    assert written.value["operation"] == "created"

    read = await registry.invoke("files.read", {"filePath": str(target)})
    assert read.value["content"] == "hello world"

    found = await registry.invoke(
        "files.search",
        {"filePaths": [str(target)], "pattern": "WORLD", "options": {"caseSensitive": False}},
    )
    assert found.value["summary"]["totalMatches"] == 1

    replaced = await registry.invoke(
        "files.replace",
        {"filePath": str(target), "searchValue": "world", "replaceValue": "there"},
    )
    assert replaced.value["replacements"] == 1
    assert target.read_text() == "hello there"


@pytest.mark.asyncio
async def test_tool_failure_on_missing_file(tmp_path):
    result = await ToolRegistry([files_read]).invoke(
        "files.read", {"filePath": str(tmp_path / "missing.html")}
    )
    assert isinstance(result, ToolFailure)
    assert "File not found" in result.error
