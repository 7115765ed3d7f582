import asyncio
from typing import List

from dotenv import load_dotenv

from content_agent import (
    AgentConfig,
    AgentExecutor,
    EngineSettings,
    InMemoryContentStore,
    ProviderSelection,
    TriggerContext,
    TriggerScope,
    build_content_catalog,
    default_provider_registry,
    setup_logging,
)
from content_agent.agent_core import AssistantMessage, ConversationMessage, UserMessage
from content_agent.agent_core.tools.schema import FieldSchema
from content_agent.content_tools import ModuleDefinition, PostType

# Load environment variables (AI_PROVIDER_OPENAI_API_KEY, AGENT_* settings)
load_dotenv()


def build_store() -> InMemoryContentStore:
    return InMemoryContentStore(
        post_types=[PostType(slug="page", label="Page", seed_modules=["hero", "prose"])],
        modules=[
            ModuleDefinition(
                type="hero",
                name="Hero",
                description="Page heading with subtitle",
                field_schema=[FieldSchema(slug="title", type="text"), FieldSchema(slug="subtitle", type="text")],
                layout_roles=["hero"],
            ),
            ModuleDefinition(
                type="prose",
                name="Prose",
                description="Rich text body",
                field_schema=[FieldSchema(slug="content", type="richtext")],
                layout_roles=["body"],
            ),
        ],
    )


async def main() -> None:
    """
    Run a global-scope content agent from the command line against an in-memory store.
    """
    setup_logging()
    print("Welcome to the content agent CLI!")

    settings = EngineSettings.from_env()
    store = build_store()
    executor = AgentExecutor(default_provider_registry(), build_content_catalog(store), settings)
    agent = AgentConfig(
        id="cli-writer",
        name="CLI Writer",
        system_prompt="You are {{agent}}, a content assistant. Create and edit pages with the tools provided.",
        use_tools=True,
        provider=ProviderSelection(
            provider=settings.default_text_provider or "openai",
            model=settings.default_text_model or "gpt-4o-mini",
        ),
    )

    history: List[ConversationMessage] = []

    print("\nDescribe what you want! Type 'exit' or 'quit' to stop.")
    while True:
        user_input = input("\nYou: ").strip()
        if user_input.lower() in ["exit", "quit"]:
            print("Goodbye!")
            break

        if not user_input:
            continue

        trigger = TriggerContext(scope=TriggerScope.GLOBAL, history=history)
        result = await executor.execute(agent, trigger, {"openEndedContext": user_input})
        if not result.success:
            print(f"An error occurred: {result.error_message}")
            continue

        print(f"Agent: {result.summary}")
        if result.last_created_entity_id:
            post = store.get_post(result.last_created_entity_id)
            if post is not None:
                print(f"Created post '{post.title}' ({post.slug}).")
        history = [*history, UserMessage(content=user_input), AssistantMessage(content=result.summary or "")]


if __name__ == "__main__":
    asyncio.run(main())
