from __future__ import annotations

import argparse
import asyncio
import logging

from llm_conduit import (
    ConversationMessage,
    LLMClient,
    ParsedToolCall,
    Provider,
    ProviderTarget,
    TextDelta,
    ToolCallResult,
    ToolParameter,
    ToolParameterType,
    ToolSchema,
    collect_stream,
)

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

WEATHER_TOOL = ToolSchema(
    name="get_weather",
    description="Get the current weather in a given location",
    parameters=(
        ToolParameter("location", ToolParameterType.STRING, "City and state, e.g. San Francisco, CA"),
        ToolParameter(
            "unit",
            ToolParameterType.STRING,
            "Units (celsius or fahrenheit)",
            required=False,
            enum_values=("celsius", "fahrenheit"),
        ),
    ),
)


def run_local_tool(call: ParsedToolCall) -> str:
    """Stub implementation of get_weather."""
    # imagine we call a real weather API here
    return "15 °C, mostly cloudy"


def make_target(provider: Provider) -> ProviderTarget:
    if provider is Provider.OPENAI:
        return ProviderTarget.openai()
    if provider is Provider.ANTHROPIC:
        return ProviderTarget.anthropic()
    if provider is Provider.GOOGLE:
        return ProviderTarget.google()
    return ProviderTarget.local()


async def single_tool_roundtrip(provider: Provider, model: str) -> None:
    """
    Run a single tool-calling roundtrip with the given provider + model.

    1) Stream the user prompt with the tool offered
    2) Collect the tool calls the model makes
    3) Execute the stub tool, append call + result to the history
    4) Stream the final answer, printing text as it arrives
    """
    target = make_target(provider)
    system_prompt = "You are a helpful assistant."
    messages = [ConversationMessage.user("What's the weather in San Francisco?")]

    async with LLMClient() as client:
        # Step 1 → first turn
        first = await collect_stream(
            client.stream_with_tools(system_prompt, messages, [WEATHER_TOOL], target, model)
        )

        # Step 2 → tool calls arrive already parsed
        if not first.has_tool_calls:
            logger.warning(f"Model answered directly: {first.content}")
            return

        # Step 3 → same history shape for every backend
        messages.append(ConversationMessage.assistant(first.content, first.tool_calls))
        messages.append(
            ConversationMessage.tool(
                [ToolCallResult(call.id, call.name, run_local_tool(call)) for call in first.tool_calls]
            )
        )

        # Step 4 → final completion
        async for event in client.stream_with_tools(
            system_prompt, messages, [WEATHER_TOOL], target, model
        ):
            if isinstance(event, TextDelta):
                print(event.text, end="", flush=True)
        print()


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--provider",
        choices=[p.value for p in Provider],
        default=Provider.ANTHROPIC.value,
    )
    parser.add_argument(
        "--model",
        default="claude-3-5-haiku-20241022",  # "gpt-4.1-nano", "gemini-2.0-flash-lite", "llama3.2"
    )
    args = parser.parse_args()

    asyncio.run(single_tool_roundtrip(Provider(args.provider), args.model))
