import asyncio

from llm_conduit import LLMClient, ProviderTarget, UsageTracker


async def chat_example():
    tracker = UsageTracker()

    targets = [
        (ProviderTarget.openai(), "gpt-5-nano"),
        (ProviderTarget.anthropic(), "claude-3-5-haiku-20241022"),
        (ProviderTarget.google(), "gemini-2.0-flash-lite"),
    ]

    async with LLMClient(tracker) as client:
        for target, model in targets:
            result = await client.complete(
                "You are a helpful assistant.",
                "What's your name?",
                target,
                model,
                temperature=0.7,
                max_tokens=1000,
            )
            print(f"{target.display_name}: ", result.content)

    for provider, totals in tracker.by_provider().items():
        print(f"{provider}: {totals.prompt_tokens} in / {totals.completion_tokens} out")


async def local_example():
    # Ollama on its default port; no API key needed
    async with LLMClient() as client:
        text = await client.complete_text(
            "You are a helpful assistant.", "What's your name?", ProviderTarget.local(), "llama3.2"
        )
        print("Ollama: ", text)


if __name__ == "__main__":
    asyncio.run(chat_example())
    asyncio.run(local_example())
