"""Shell command tool with a safety filter, retries and background mode."""

from __future__ import annotations

import asyncio
import logging
import os
import re
import signal
import subprocess
import time
from pathlib import Path
from typing import Any

from pydantic import Field

from ..agents.tools import ToolParams, tool
from ..errors import CommandBlockedError

logger = logging.getLogger(__name__)

DANGEROUS_PATTERNS = [
    re.compile(r"rm\s+-rf\s+/"),
    re.compile(r">\s*/dev/sd"),
    re.compile(r"mkfs"),
    re.compile(r"dd\s+if=.*of=/dev"),
    re.compile(r":\(\)\s*\{\s*:\|:&\s*\};:"),
]

LONG_RUNNING_PATTERNS = [
    re.compile(r"npm\s+start"),
    re.compile(r"npm\s+run\s+dev"),
    re.compile(r"node\s+.*server"),
    re.compile(r"python3?\s+.*server"),
    re.compile(r"\bserve\b"),
    re.compile(r"\bwatch\b"),
    re.compile(r"tail\s+-f"),
    re.compile(r"\bping\b"),
    re.compile(r"\btop\b"),
    re.compile(r"\bhtop\b"),
]

# Exit status the shell reports for an unknown command; retrying cannot help.
COMMAND_NOT_FOUND = 127

# Seconds to wait for pipes to drain after a timed-out process group is killed.
KILL_GRACE = 2.0

# Detached processes started by this module, keyed by pid.
_background: dict[int, subprocess.Popen] = {}


def is_command_safe(command: str) -> bool:
    return not any(pattern.search(command) for pattern in DANGEROUS_PATTERNS)


def is_long_running_command(command: str) -> bool:
    return any(pattern.search(command) for pattern in LONG_RUNNING_PATTERNS)


def _reap_background() -> None:
    for pid, process in list(_background.items()):
        if process.poll() is not None:
            logger.debug("Background process %d exited with %s", pid, process.returncode)
            del _background[pid]


def background_processes() -> dict[int, subprocess.Popen]:
    """Detached processes still running, keyed by pid."""
    _reap_background()
    return dict(_background)


def _start_background(command: str, cwd: Path, env: dict[str, str]) -> dict[str, Any]:
    _reap_background()
    process = subprocess.Popen(
        command,
        shell=True,
        cwd=cwd,
        env=env,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
    _background[process.pid] = process
    logger.info("Started background process %d: %s", process.pid, command)
    return {
        "command": command,
        "success": True,
        "output": "Process started in background",
        "error": "",
        "exitCode": 0,
        "background": True,
        "pid": process.pid,
    }


def _kill_group(process: asyncio.subprocess.Process) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


async def _run_once(
    command: str, cwd: Path, env: dict[str, str], timeout: float
) -> tuple[int | None, str, str, str | None]:
    """Run ``command`` to completion in its own process group.

    On timeout the whole group is killed, so children of the shell cannot
    keep the call waiting on their pipes.

    Returns:
        (exit code, stdout, stderr, signal name or None)
    """
    process = await asyncio.create_subprocess_shell(
        command,
        cwd=cwd,
        env=env,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        start_new_session=True,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError:
        logger.warning("Command timed out after %ss, killing process group %d", timeout, process.pid)
        _kill_group(process)
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), KILL_GRACE)
        except asyncio.TimeoutError:
            # A child that left the group still holds the pipes.
            stdout = stderr = b""
            await process.wait()
        return (
            None,
            stdout.decode(errors="replace"),
            stderr.decode(errors="replace") or f"Command timed out after {timeout}s",
            "SIGKILL",
        )

    code = process.returncode
    signal_name = signal.Signals(-code).name if code is not None and code < 0 else None
    return code, stdout.decode(errors="replace"), stderr.decode(errors="replace"), signal_name


async def run_shell_command(
    command: str,
    cwd: str | Path | None = None,
    timeout: int = 30000,
    retries: int = 3,
    background: bool = False,
    env: dict[str, str] | None = None,
    retry_delay: float = 2.0,
) -> dict[str, Any]:
    """Run a shell command and report its output.

    Commands matching a long-running pattern (dev servers, ``tail -f``) are
    started detached regardless of ``background``. Failed commands are
    retried up to ``retries`` times, except after a timeout or when the
    command does not exist.

    Args:
        command: Shell command line
        cwd: Working directory (default: current directory)
        timeout: Per-attempt timeout in milliseconds
        retries: Maximum number of attempts
        background: Start detached and return immediately
        env: Extra environment variables layered over the current ones
        retry_delay: Seconds to wait between attempts

    Raises:
        CommandBlockedError: If the command matches a dangerous pattern
        FileNotFoundError: If ``cwd`` does not exist
    """
    if not is_command_safe(command):
        logger.warning("Blocked dangerous command: %s", command)
        raise CommandBlockedError(command)

    workdir = Path(cwd) if cwd is not None else Path.cwd()
    if not workdir.exists():
        raise FileNotFoundError(f"Working directory does not exist: {workdir}")

    exec_env = {**os.environ, **(env or {})}
    if background or is_long_running_command(command):
        return _start_background(command, workdir, exec_env)

    logger.info("Executing: %s (cwd=%s, timeout=%dms, retries=%d)", command, workdir, timeout, retries)
    attempts = max(retries, 1)
    code: int | None = None
    stdout = stderr = ""
    signal_name: str | None = None
    for attempt in range(1, attempts + 1):
        started = time.monotonic()
        code, stdout, stderr, signal_name = await _run_once(
            command, workdir, exec_env, timeout / 1000
        )
        if code == 0:
            return {
                "command": command,
                "success": True,
                "output": stdout,
                "error": "",
                "exitCode": 0,
                "duration": int((time.monotonic() - started) * 1000),
                "attempt": attempt,
            }

        logger.warning("Attempt %d/%d failed: %s", attempt, attempts, stderr.strip() or code)
        if signal_name == "SIGKILL" or code == COMMAND_NOT_FOUND:
            break
        if attempt < attempts:
            await asyncio.sleep(retry_delay)

    return {
        "command": command,
        "success": False,
        "output": stdout,
        "error": stderr or f"Command failed with exit code {code}",
        "exitCode": code or 1,
        "signal": signal_name,
        "attempts": attempt,
    }


class RunOptions(ToolParams):
    cwd: str | None = None
    timeout: int = Field(30000, ge=1)
    retries: int = Field(3, ge=1)
    background: bool = False
    env: dict[str, str] = Field(default_factory=dict)


class RunParams(ToolParams):
    command: str = Field(min_length=1)
    options: RunOptions = Field(default_factory=RunOptions)


@tool(name="system.run", params=RunParams)
async def system_run(command: str, options: RunOptions) -> dict[str, Any]:
    """Run a shell command; dangerous commands are refused and servers run detached."""
    return await run_shell_command(command, **options.model_dump())
