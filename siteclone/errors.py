"""Error types for siteclone."""

from __future__ import annotations


class SiteCloneError(Exception):
    """Base exception for all siteclone errors."""

    pass


class ConfigurationError(SiteCloneError):
    """Raised when required settings (credentials, paths) are missing or invalid."""

    pass


class ToolNotFoundError(SiteCloneError, KeyError):
    """Raised when a tool name is not registered.

    Attributes:
        name: The requested tool name.
        available: Names that are registered.
    """

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available: tuple[str, ...] = tuple(available)
        super().__init__(name)

    def __str__(self) -> str:
        available = ", ".join(self.available) if self.available else "none"
        return f"Tool '{self.name}' not found. Available tools: {available}"


class ToolParameterError(SiteCloneError, ValueError):
    """Raised when a tool call carries missing or invalid parameters.

    Attributes:
        tool: Name of the tool being called.
        field: Wire name of the offending parameter (None for the whole mapping).
        reason: Short description of what is wrong.
    """

    def __init__(self, tool: str, field: str | None, reason: str):
        self.tool = tool
        self.field = field
        self.reason = reason
        if field is None:
            message = f"{tool} {reason}"
        elif reason == "missing":
            message = f"{tool} requires field '{field}'"
        else:
            message = f"{tool} received invalid field '{field}': {reason}"
        super().__init__(message)


class ModelInvocationError(SiteCloneError):
    """Raised when the model collaborator fails during an agent run.

    Attributes:
        step: Zero-based step index at which the call failed.
        cause: The original exception raised by the provider.
    """

    def __init__(self, step: int, cause: Exception):
        self.step = step
        self.cause = cause
        super().__init__(
            f"Model call failed at step {step + 1}.\n"
            f"Cause: {cause.__class__.__name__}: {cause}"
        )


class CommandBlockedError(SiteCloneError):
    """Raised when a shell command matches a dangerous pattern."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(
            "Command appears to be potentially dangerous and was blocked for safety"
        )
