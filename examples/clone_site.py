"""Website clone agent examples.

This example shows the high-level Agent API:
- Cloning a site with the built-in tool registry
- Multi-turn conversations on one agent instance
- Adding a custom tool next to the built-in ones
- Pointing the provider at a local OpenAI-compatible server

Set OPENAI_API_KEY (or put it in .env.local) before running.
"""

import asyncio
import json
import logging

from siteclone import Settings, tool
from siteclone.agents import Agent, OpenAI
from siteclone.tools import build_default_registry, default_tools


@tool(name="site.palette")
async def site_palette(colors: list[str]) -> dict:
    """Record the colour palette picked for the clone.

    Args:
        colors: Hex colour codes in order of prominence
    """
    return {"primary": colors[0] if colors else None, "count": len(colors)}


async def example_clone():
    """Example: One request, built-in tools"""
    print("=" * 60)
    print("Example 1: Clone a site")
    print("=" * 60)

    settings = Settings.from_env()
    agent = Agent(
        model=OpenAI(model=settings.openai_model, api_key=settings.require_api_key()),
        tools=build_default_registry(settings),
        max_steps=settings.max_steps,
    )

    result = await agent.run("Clone https://example.com into output/example.com")

    print(json.dumps(result.to_dict(), indent=2))
    print(f"Steps used: {result.steps}")
    print(f"Messages in history: {len(agent.history)}")


async def example_multi_turn():
    """Example: Follow-up requests reuse the conversation"""
    print("\n" + "=" * 60)
    print("Example 2: Multi-turn refinement")
    print("=" * 60)

    settings = Settings.from_env()
    agent = Agent(model=settings.openai_model, tools=build_default_registry(settings))

    await agent.run("Clone https://example.com into output/example.com")
    result = await agent.run("Make the header sticky and darken the footer")
    print(json.dumps(result.to_dict(), indent=2))

    print("\n" + "-" * 60)
    print("Conversation roles:")
    print("-" * 60)
    print(" -> ".join(m.role for m in agent.history))


async def example_custom_tool():
    """Example: Extra tools register next to the built-ins"""
    print("\n" + "=" * 60)
    print("Example 3: Custom tool")
    print("=" * 60)

    settings = Settings.from_env()
    agent = Agent(
        model=settings.openai_model,
        tools=[*default_tools(settings), site_palette],
    )
    print(agent.registry.describe())


async def example_local_server():
    """Example: Any OpenAI-compatible server (e.g. vLLM)"""
    print("\n" + "=" * 60)
    print("Example 4: Local model server")
    print("=" * 60)

    agent = Agent(
        model=OpenAI(
            base_url="http://localhost:8000/v1",
            model="meta-llama/Llama-3.1-8B-Instruct",
            api_key="EMPTY",
        ),
        tools=build_default_registry(),
        max_steps=10,
    )
    result = await agent.run("List the files in output/ and summarise them")
    print(json.dumps(result.to_dict(), indent=2))


async def main():
    """Run all examples."""
    logging.basicConfig(level=logging.INFO)

    await example_clone()
    await example_multi_turn()
    await example_custom_tool()
    await example_local_server()

    print("\n" + "=" * 60)
    print("All examples completed!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
