"""Command-line entry points: the agent shell and a plain streaming chat."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Callable

from .agents import Agent, OpenAI
from .config import Settings
from .errors import ConfigurationError, SiteCloneError
from .tools import build_default_registry

ReadLine = Callable[[str], str]

EXIT_COMMAND = "exit"


def _parser(description: str, epilog: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=description,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    parser.add_argument("--model", help="Chat model name (default: $OPENAI_MODEL or gpt-4.1)")
    parser.add_argument(
        "--log-level",
        help="Logging level (default: $SITECLONE_LOG_LEVEL or INFO)",
    )
    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    overrides = {}
    if args.model:
        overrides["openai_model"] = args.model
    if args.log_level:
        level = args.log_level.upper()
        if level not in logging.getLevelNamesMapping():
            raise ConfigurationError(f"Unknown log level: {args.log_level}")
        overrides["log_level"] = level
    if getattr(args, "max_steps", None) is not None:
        if args.max_steps < 1:
            raise ConfigurationError(f"--max-steps must be at least 1, got {args.max_steps}")
        overrides["max_steps"] = args.max_steps
    if getattr(args, "system_prompt", None):
        overrides["system_prompt_path"] = Path(args.system_prompt)
    if getattr(args, "data_dir", None):
        overrides["data_dir"] = Path(args.data_dir)
    return dataclasses.replace(settings, **overrides)


def _setup(args: argparse.Namespace) -> Settings:
    """Load settings and configure logging, exiting on configuration errors."""
    try:
        settings = _load_settings(args)
        settings.require_api_key()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return settings


def _provider(settings: Settings, streaming: bool = False) -> OpenAI:
    return OpenAI(
        model=settings.openai_model,
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        streaming=streaming,
    )


def agent_shell(agent: Agent, read_line: ReadLine = input) -> None:
    """Prompt for requests and run each one through ``agent`` until ``exit``.

    Input is read on the calling thread; every request runs on the same
    event loop. Errors from a turn are printed and the session continues;
    the conversation is kept across turns.
    """
    with asyncio.Runner() as runner:
        while True:
            try:
                line = read_line("You: ")
            except EOFError:
                print()
                break

            user_input = line.strip()
            if not user_input:
                continue
            if user_input.lower() == EXIT_COMMAND:
                print("Goodbye!")
                break

            try:
                result = runner.run(agent.run(user_input))
            except SiteCloneError as e:
                print(f"Error: {e}", file=sys.stderr)
                continue

            if result.final:
                print(json.dumps(result.to_dict(), indent=2))
            else:
                print(
                    f"Task incomplete: no final result after {result.steps} steps. "
                    "Send another message to continue."
                )


async def _stream_reply(provider: OpenAI, user_input: str) -> None:
    print("AI: ", end="", flush=True)
    has_content = False
    try:
        async for chunk in provider.stream([{"role": "user", "content": user_input}]):
            print(chunk, end="", flush=True)
            has_content = True
    except Exception as e:
        print(f"\nAI Error: {e}", file=sys.stderr)
        return
    if not has_content:
        print("[empty response]", end="")
    print()


def chat_shell(provider: OpenAI, read_line: ReadLine = input) -> None:
    """Stream single-message replies from the model until ``exit``."""
    with asyncio.Runner() as runner:
        while True:
            try:
                line = read_line("You: ")
            except EOFError:
                print()
                break

            user_input = line.strip()
            if user_input.lower() == EXIT_COMMAND:
                print("Goodbye!")
                break
            if not user_input:
                continue

            runner.run(_stream_reply(provider, user_input))


def main(argv: list[str] | None = None) -> None:
    """Entry point for the website clone agent shell.

    Usage:
        siteclone --model gpt-4.1 --max-steps 30
    """
    parser = _parser(
        "Clone websites with a tool-using chat agent",
        """
Examples:
  # Start the shell, then type a request such as "clone https://example.com"
  siteclone

  # Allow more steps per request and keep output elsewhere
  siteclone --max-steps 40 --data-dir ./out

Type "exit" or press Ctrl+C to quit.
        """,
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        help="Model calls allowed per request (default: $SITECLONE_MAX_STEPS or 20)",
    )
    parser.add_argument("--system-prompt", help="Path to a custom system prompt file")
    parser.add_argument(
        "--data-dir",
        help="Directory for extractions and screenshots (default: $SITECLONE_DATA_DIR or data)",
    )
    args = parser.parse_args(argv)
    settings = _setup(args)

    agent = Agent(
        model=_provider(settings),
        tools=build_default_registry(settings),
        max_steps=settings.max_steps,
        system_prompt_path=settings.system_prompt_path,
    )

    print(f"Website clone agent ({settings.openai_model}) - type '{EXIT_COMMAND}' to quit")
    try:
        agent_shell(agent)
    except KeyboardInterrupt:
        print("\nGoodbye!")


def chat_main(argv: list[str] | None = None) -> None:
    """Entry point for the plain streaming chat (no tools)."""
    parser = _parser(
        "Chat with the model, streaming replies",
        """
Examples:
  siteclone-chat
  siteclone-chat --model gpt-4.1-mini
        """,
    )
    args = parser.parse_args(argv)
    settings = _setup(args)

    print(f"Chat ({settings.openai_model}) - type '{EXIT_COMMAND}' to quit")
    try:
        chat_shell(_provider(settings, streaming=True))
    except KeyboardInterrupt:
        print("\nGoodbye!")


if __name__ == "__main__":
    main()
