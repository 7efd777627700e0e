"""Agent loop: prompt the model, parse its directive, dispatch tools."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterable

from ..config import DEFAULT_MAX_STEPS
from ..errors import ModelInvocationError
from .directives import parse_directive
from .media import file_to_data_url
from .prompt import load_system_prompt
from .protocols import LLM
from .providers import OpenAI
from .state import (
    ContentPart,
    ConversationState,
    Final,
    ImagePart,
    LoopState,
    Message,
    TextPart,
    ToolCall,
    ToolFailure,
    TurnResult,
)
from .tools import ToolRegistry, ToolSpec

logger = logging.getLogger(__name__)


def _message_to_dict(msg: Message) -> dict[str, Any]:
    """Convert internal message to provider dict."""
    if isinstance(msg.content, str):
        return {"role": msg.role, "content": msg.content}
    parts: list[dict[str, Any]] = []
    for part in msg.content:
        if isinstance(part, ImagePart):
            parts.append({"type": "image_url", "image_url": {"url": part.url}})
        else:
            parts.append({"type": "text", "text": part.text})
    return {"role": msg.role, "content": parts}


def _parse_content(content: Any) -> str | tuple[ContentPart, ...]:
    """Convert provider reply content into message content."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    parts: list[ContentPart] = []
    for item in content:
        if isinstance(item, str):
            parts.append(TextPart(item))
        elif isinstance(item, dict) and item.get("type") == "image_url":
            parts.append(ImagePart(item["image_url"]["url"]))
        elif isinstance(item, dict) and "text" in item:
            parts.append(TextPart(str(item["text"])))
    return tuple(parts)


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


async def call_model(
    conversation: ConversationState,
    provider: LLM,
    **kwargs: Any,
) -> Message:
    """Send the full conversation to the model and record its reply.

    Returns:
        The assistant message appended to the conversation
    """
    messages_dict = [_message_to_dict(msg) for msg in conversation]
    response = await provider.complete(messages_dict, **kwargs)
    message = Message(role="assistant", content=_parse_content(response.get("content")))
    conversation.append(message)
    return message


async def _image_parts(paths: Iterable[str]) -> list[ImagePart]:
    images = []
    for path in paths:
        if not path or not Path(path).is_file():
            continue
        try:
            images.append(ImagePart(await asyncio.to_thread(file_to_data_url, path)))
        except OSError as e:
            logger.warning("Could not inline image %s: %s", path, e)
    return images


async def _result_message(call: ToolCall, spec: ToolSpec, value: Any) -> Message:
    if spec.images is None:
        payload = {"id": call.id, "tool": call.tool, "ok": True, "result": value}
        return Message(role="user", content=_to_json(payload))

    summary = spec.summarize(value) if spec.summarize is not None else value
    text = TextPart(
        _to_json({"id": call.id, "tool": call.tool, "ok": True, "resultSummary": summary})
    )
    images = await _image_parts(spec.images(value))
    logger.info("Attaching %d image(s) from %s", len(images), call.tool)
    return Message(role="user", content=(text, *images))


async def execute_tool_call(
    conversation: ConversationState,
    call: ToolCall,
    registry: ToolRegistry,
) -> None:
    """Run one tool call and append exactly one result message.

    Unknown tools and tool failures become corrective user messages so the
    model can recover on its next step.
    """
    logger.info("Tool call: %s%s", call.tool, f" (id: {call.id})" if call.id else "")
    if call.reasoning:
        logger.info("Reasoning: %s", call.reasoning)
    logger.debug("Params: %s", _to_json(call.params))

    if call.tool not in registry:
        logger.warning("Model requested unknown tool '%s'", call.tool)
        conversation.append(
            Message(
                role="user",
                content=f"Tool not found: {call.tool}. Please choose a valid tool. "
                f"Available tools: {', '.join(registry.names())}",
            )
        )
        return

    result = await registry.invoke(call.tool, call.params)
    if isinstance(result, ToolFailure):
        conversation.append(
            Message(role="user", content=f"Tool {call.tool} failed: {result.error}")
        )
        return

    logger.debug("Tool result (%s): %s", call.tool, _to_json(result.value))
    message = await _result_message(call, registry.get(call.tool), result.value)
    conversation.append(message)


class Agent:
    """Website clone agent driving a JSON-directive tool loop.

    Each ``run()`` is one user turn: the model is called up to ``max_steps``
    times until it emits a ``final`` directive. The conversation persists
    across turns on the same instance.

    Args:
        model: Either a model string (e.g., "gpt-4.1") or a provider instance
        tools: A ToolRegistry or a list of ``@tool`` functions
        max_steps: Maximum model invocations per turn (default: 20)
        system_prompt_path: Optional system prompt file; defaults to the
            packaged prompt
        include_tool_catalog: Append the registry's tool catalog to the
            system prompt (default: True)
        **llm_kwargs: Additional arguments passed to the LLM provider

    Example:
        >>> from siteclone.agents import Agent
        >>> from siteclone.tools import build_default_registry
        >>>
        >>> agent = Agent(model="gpt-4.1", tools=build_default_registry())
        >>> result = await agent.run("clone example.com")
        >>> print(result.to_dict())
    """

    def __init__(
        self,
        model: str | LLM,
        tools: ToolRegistry | Iterable[Callable] | None = None,
        max_steps: int = DEFAULT_MAX_STEPS,
        system_prompt_path: str | Path | None = None,
        include_tool_catalog: bool = True,
        **llm_kwargs: Any,
    ):
        if max_steps < 1:
            raise ValueError(f"max_steps must be at least 1, got {max_steps}")
        self.provider = OpenAI(model=model) if isinstance(model, str) else model
        self.registry = tools if isinstance(tools, ToolRegistry) else ToolRegistry(tools)
        self.max_steps = max_steps
        self.system_prompt_path = system_prompt_path
        self.include_tool_catalog = include_tool_catalog
        self.llm_kwargs = llm_kwargs
        self.conversation = ConversationState()
        self.loop_state = LoopState.UNINITIALIZED
        self._system_prompt: str | None = None

    @property
    def history(self) -> tuple[Message, ...]:
        return self.conversation.messages

    def reset(self) -> None:
        """Start a fresh conversation; the loaded system prompt is kept."""
        self.conversation = ConversationState()
        self.loop_state = LoopState.UNINITIALIZED

    async def system_prompt(self) -> str:
        """Load the system prompt once per agent."""
        if self._system_prompt is None:
            prompt = await load_system_prompt(self.system_prompt_path)
            if self.include_tool_catalog and len(self.registry):
                prompt = f"{prompt.rstrip()}\n\n{self.registry.describe()}\n"
            self._system_prompt = prompt
        return self._system_prompt

    async def run(self, user_input: str) -> TurnResult:
        """Run one user turn and return the final payload or an exhausted result.

        Raises:
            ModelInvocationError: If the model call fails
        """
        self.conversation.ensure_system(await self.system_prompt())
        self.conversation.append(Message(role="user", content=user_input))
        self.loop_state = LoopState.READY

        for step in range(self.max_steps):
            self.loop_state = LoopState.AWAITING_MODEL
            try:
                reply = await call_model(self.conversation, self.provider, **self.llm_kwargs)
            except Exception as e:
                raise ModelInvocationError(step, e) from e

            self.loop_state = LoopState.PROCESSING_DIRECTIVE
            directive = parse_directive(reply.text)

            if isinstance(directive, Final):
                self.loop_state = LoopState.DONE_FINAL
                logger.info("Final result:\n%s", _to_json(directive.to_dict()))
                return TurnResult(final=True, result=directive, steps=step + 1)

            if isinstance(directive, ToolCall):
                await execute_tool_call(self.conversation, directive, self.registry)
            else:
                logger.debug("Step %d: no directive in reply", step + 1)

        self.loop_state = LoopState.DONE_EXHAUSTED
        logger.info("Step budget of %d exhausted without a final result", self.max_steps)
        return TurnResult(final=False, result=None, steps=self.max_steps)
