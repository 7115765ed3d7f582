from typing import Any, Dict, Iterable, List, Optional, Tuple, cast

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from content_agent.agent_core import get_logger
from content_agent.agent_core.completion import (
    Completion,
    CompletionOptions,
    CompletionProvider,
    ProviderConfig,
    TokenUsage,
)
from content_agent.agent_core.messages import ConversationMessage

logger = get_logger(__name__)


class OpenAICompletionProvider(CompletionProvider):
    """
    Completion provider for OpenAI chat completions and compatible endpoints.

    Tool calling is driven by the engine through JSON in the message text, so no
    native function declarations are sent.
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None, max_retries: int = 3, base_retry_delay: float = 1.0):
        """
        Initializes the provider.

        Args:
            client: An initialized AsyncOpenAI client. When None, one client is created per
                    distinct ``(api_key, base_url)`` of the provider configs seen.
            max_retries: Retries for failed SDK calls.
            base_retry_delay: Initial backoff delay in seconds.
        """
        super().__init__(max_retries=max_retries, base_retry_delay=base_retry_delay)
        self._client = client
        self._clients: Dict[Tuple[str, Optional[str]], AsyncOpenAI] = {}

    def _client_for(self, config: ProviderConfig) -> AsyncOpenAI:
        if self._client is not None:
            return self._client
        key = (config.api_key, config.base_url)
        if key not in self._clients:
            self._clients[key] = AsyncOpenAI(api_key=config.api_key, base_url=config.base_url)
        return self._clients[key]

    async def _complete_impl(
        self,
        messages: List[ConversationMessage],
        options: CompletionOptions,
        config: ProviderConfig,
    ) -> Completion:
        kwargs: Dict[str, Any] = {
            "model": config.model,
            "messages": cast(Iterable[Any], self._convert_history(messages)),
            "temperature": options.temperature,
        }
        if options.max_tokens is not None:
            kwargs["max_tokens"] = options.max_tokens
        if options.top_p is not None:
            kwargs["top_p"] = options.top_p
        if options.stop:
            kwargs["stop"] = options.stop

        logger.debug(f"Sending {len(messages)} messages to OpenAI model '{config.model}'.")
        response = await self._client_for(config).chat.completions.create(**kwargs)
        return self._build_completion(response)

    @staticmethod
    def _convert_history(messages: List[ConversationMessage]) -> List[Dict[str, Any]]:
        """
        Converts the conversation into OpenAI message dictionaries.

        Args:
            messages: Provider-agnostic messages.

        Returns:
            List of OpenAI message dictionaries.
        """
        return [{"role": msg.role, "content": msg.content} for msg in messages]

    @staticmethod
    def _build_completion(response: ChatCompletion) -> Completion:
        """
        Constructs the normalized completion from the raw API response.

        Args:
            response: The ChatCompletion returned by the SDK.

        Returns:
            The completion with text, usage and the raw response.
        """
        if response.choices:
            content = response.choices[0].message.content or ""
        else:
            content = ""

        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens or 0,
                completion_tokens=response.usage.completion_tokens or 0,
                total_tokens=response.usage.total_tokens or 0,
            )

        return Completion(content=content, usage=usage, model=response.model, raw=response)
