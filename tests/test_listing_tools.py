"""Tests for directory listing and glob tools."""

import pytest

from siteclone.agents import ToolRegistry
from siteclone.tools.listing import fs_glob, glob, glob_with_stats, list_directory


@pytest.fixture
def site(tmp_path):
    (tmp_path / "index.html").write_text("<html></html>")
    (tmp_path / "about.html").write_text("<html>about</html>")
    (tmp_path / "css").mkdir()
    (tmp_path / "css" / "styles.css").write_text("body{}")
    (tmp_path / "css" / "deep").mkdir()
    (tmp_path / "css" / "deep" / "reset.css").write_text("*{}")
    (tmp_path / ".hidden").write_text("secret")
    (tmp_path / "debug.log").write_text("log")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "lib.js").write_text("x")
    return tmp_path


def test_list_directory_flat(site):
    result = list_directory(site)

    names = [item["name"] for item in result["files"]]
    assert names == ["about.html", "debug.log", "index.html"]
    assert [d["name"] for d in result["directories"]] == ["css", "node_modules"]
    assert result["totalItems"] == 5
    assert result["filesCount"] == 3
    assert result["directoriesCount"] == 2


def test_list_directory_hidden_and_filter(site):
    hidden = list_directory(site, show_hidden=True)
    assert ".hidden" in [item["name"] for item in hidden["files"]]

    html = list_directory(site, filter=".html")
    assert [item["name"] for item in html["files"]] == ["about.html", "index.html"]
    assert html["directoriesCount"] == 2


def test_list_directory_recursive_with_depth(site):
    result = list_directory(site, recursive=True, max_depth=2)
    names = {item["relativePath"] for item in result["files"]}
    assert "css/styles.css" in names
    assert "css/deep/reset.css" not in names

    full = list_directory(site, recursive=True)
    assert "css/deep/reset.css" in {item["relativePath"] for item in full["files"]}


def test_list_directory_sorting(site):
    by_size = list_directory(site, sort_by="size", sort_order="desc")
    sizes = [item["size"] for item in by_size["files"]]
    assert sizes == sorted(sizes, reverse=True)


def test_list_directory_errors(site):
    with pytest.raises(FileNotFoundError, match="does not exist"):
        list_directory(site / "missing")
    with pytest.raises(NotADirectoryError, match="is not a directory"):
        list_directory(site / "index.html")


def test_glob_default_ignores(site):
    result = glob("**/*", cwd=site, absolute=False)

    assert "index.html" in result["matches"]
    assert "css/deep/reset.css" in result["matches"]
    assert "debug.log" not in result["matches"]
    assert ".hidden" not in result["matches"]
    assert not any(m.startswith("node_modules") for m in result["matches"])
    assert result["count"] == len(result["matches"])


def test_glob_patterns_and_options(site):
    css = glob("**/*.css", cwd=site, absolute=False)
    assert css["matches"] == ["css/deep/reset.css", "css/styles.css"]

    shallow = glob("**/*.css", cwd=site, absolute=False, max_depth=2)
    assert shallow["matches"] == ["css/styles.css"]

    dot = glob("*", cwd=site, absolute=False, dot=True, ignore=[])
    assert ".hidden" in dot["matches"]
    assert "debug.log" in dot["matches"]

    absolute = glob("*.html", cwd=site)
    assert absolute["matches"][0] == str(site.resolve() / "about.html")


def test_glob_case_insensitive(site):
    assert glob("*.HTML", cwd=site, absolute=False)["matches"] == []
    assert glob("*.HTML", cwd=site, absolute=False, case_sensitive=False)["count"] == 2


def test_glob_errors(site):
    with pytest.raises(ValueError, match="non-empty"):
        glob("", cwd=site)
    with pytest.raises(FileNotFoundError, match="Working directory does not exist"):
        glob("*", cwd=site / "missing")


def test_glob_with_stats(site):
    result = glob_with_stats("*.html", cwd=site)
    first = result["files"][0]
    assert first["relativePath"] == "about.html"
    assert first["stats"]["size"] == len("<html>about</html>")
    assert first["stats"]["isFile"] is True


@pytest.mark.asyncio
async def test_fs_glob_tool(site):
    result = await ToolRegistry([fs_glob]).invoke(
        "fs.glob", {"pattern": "*.html", "options": {"cwd": str(site), "absolute": False}}
    )
    assert result.value["matches"] == ["about.html", "index.html"]
