"""Core agent state types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Literal, Union


@dataclass(frozen=True)
class TextPart:
    """A plain-text content part."""

    text: str
    type: Literal["text"] = "text"


@dataclass(frozen=True)
class ImagePart:
    """An inline image content part.

    Args:
        url: A self-describing ``data:<mime>;base64,...`` URL
    """

    url: str
    type: Literal["image"] = "image"


ContentPart = Union[TextPart, ImagePart]


@dataclass(frozen=True)
class Message:
    """A single chat message.

    Args:
        role: The role of the message sender (system, user, or assistant)
        content: Plain text, or a tuple of text and image parts
    """

    role: Literal["system", "user", "assistant"]
    content: str | tuple[ContentPart, ...]

    @property
    def text(self) -> str:
        """Text content with image parts dropped."""
        if isinstance(self.content, str):
            return self.content
        return "".join(p.text for p in self.content if isinstance(p, TextPart))


@dataclass
class ConversationState:
    """Append-only message history for one agent session.

    The first message, when present, is the system prompt. Messages are
    never reordered or removed.
    """

    _messages: list[Message] = field(default_factory=list)

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def has_system(self) -> bool:
        return bool(self._messages) and self._messages[0].role == "system"

    def ensure_system(self, prompt: str) -> bool:
        """Insert the system prompt if the conversation is empty.

        Returns:
            True if the prompt was inserted by this call
        """
        if self._messages:
            return False
        self._messages.append(Message(role="system", content=prompt))
        return True

    def append(self, message: Message) -> None:
        if message.role == "system":
            raise ValueError("System message can only be inserted via ensure_system()")
        self._messages.append(message)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]


# ---------------------------------------------------------------------------
# Directives
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation request parsed from a model reply.

    Args:
        tool: Name of the tool to invoke
        params: Parameter mapping passed to the tool
        id: Optional correlation token echoed back in the tool result
        reasoning: Optional model commentary, informational only
        expect: Optional result keys the model expects, informational only
    """

    tool: str
    params: Any = field(default_factory=dict)
    id: str | None = None
    reasoning: str | None = None
    expect: tuple[str, ...] = ()


@dataclass(frozen=True)
class Final:
    """The completion payload that ends an agent turn."""

    summary: str
    artifacts: tuple[str, ...] = ()
    notes: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "final": True,
            "summary": self.summary,
            "artifacts": list(self.artifacts),
        }
        if self.notes is not None:
            data["notes"] = self.notes
        data.update(self.extra)
        return data


@dataclass(frozen=True)
class NoDirective:
    """The model reply held no parseable JSON object."""


Directive = Union[ToolCall, Final, NoDirective]


# ---------------------------------------------------------------------------
# Tool and turn results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolSuccess:
    value: Any
    ok: Literal[True] = True


@dataclass(frozen=True)
class ToolFailure:
    error: str
    ok: Literal[False] = False


ToolResult = Union[ToolSuccess, ToolFailure]


class LoopState(str, Enum):
    """Lifecycle of one agent turn."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    AWAITING_MODEL = "awaiting_model"
    PROCESSING_DIRECTIVE = "processing_directive"
    DONE_FINAL = "done_final"
    DONE_EXHAUSTED = "done_exhausted"


@dataclass(frozen=True)
class TurnResult:
    """Outcome of ``Agent.run``.

    Args:
        final: True if the model produced a Final directive
        result: The Final payload, or None when the step budget ran out
        steps: Number of model invocations used
    """

    final: bool
    result: Final | None
    steps: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "final": self.final,
            "result": self.result.to_dict() if self.result is not None else None,
        }
