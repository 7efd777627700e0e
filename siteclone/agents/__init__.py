"""Agent loop, directive parsing and tool registry for siteclone."""

from .agent import Agent, call_model, execute_tool_call
from .directives import extract_json_object, parse_directive
from .protocols import LLM, StreamingLLM
from .providers import OpenAI
from .state import (
    ConversationState,
    Final,
    ImagePart,
    LoopState,
    Message,
    NoDirective,
    TextPart,
    ToolCall,
    ToolFailure,
    ToolSuccess,
    TurnResult,
)
from .tools import ToolParams, ToolRegistry, ToolSpec, tool

__all__ = [
    # High-level API
    "Agent",
    "TurnResult",
    "LoopState",
    # State types
    "ConversationState",
    "Message",
    "TextPart",
    "ImagePart",
    # Directives
    "ToolCall",
    "Final",
    "NoDirective",
    "extract_json_object",
    "parse_directive",
    # Tools
    "ToolParams",
    "ToolRegistry",
    "ToolSpec",
    "ToolSuccess",
    "ToolFailure",
    "tool",
    # Steps (low-level API)
    "call_model",
    "execute_tool_call",
    # Providers
    "LLM",
    "StreamingLLM",
    "OpenAI",
]
