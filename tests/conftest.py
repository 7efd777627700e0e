"""Shared test fixtures."""

import pytest

from siteclone.agents import ToolRegistry, tool


@pytest.fixture
def recorder():
    """Tools that record their invocations."""
    calls = []

    @tool(name="page.extract")
    async def page_extract(url: str, outputDir: str | None = None) -> dict:
        """Extract a page."""
        calls.append(("page.extract", url))
        return {"url": url, "html": "<html></html>"}

    @tool(name="files.write")
    async def files_write(filePath: str, content: str) -> dict:
        """Write a file."""
        calls.append(("files.write", filePath))
        return {"file": filePath, "size": len(content)}

    @tool(name="broken")
    async def broken() -> None:
        """Always fails."""
        calls.append(("broken",))
        raise RuntimeError("disk on fire")

    return calls, ToolRegistry([page_extract, files_write, broken])
