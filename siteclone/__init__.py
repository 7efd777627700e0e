"""siteclone - JSON-directive agent for cloning websites."""

from .agents import Agent, Final, ToolRegistry, TurnResult, tool
from .config import Settings
from .errors import (
    CommandBlockedError,
    ConfigurationError,
    ModelInvocationError,
    SiteCloneError,
    ToolNotFoundError,
    ToolParameterError,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "Agent",
    "Final",
    "ToolRegistry",
    "TurnResult",
    "tool",
    "Settings",
    # Errors
    "CommandBlockedError",
    "ConfigurationError",
    "ModelInvocationError",
    "SiteCloneError",
    "ToolNotFoundError",
    "ToolParameterError",
]
