from typing import Any, Dict, List, Optional, Tuple

from google import genai
from google.genai import types
from google.genai.client import AsyncClient
from google.genai.types import GenerateContentResponse

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


class GeminiCompletionProvider(CompletionProvider):
    """
    Completion provider for Google's Gemini models.

    The leading system message becomes the ``system_instruction``. Later system messages
    (e.g. history markers) are sent as user turns, since Gemini has no system role in
    its contents.
    """

    def __init__(self, aclient: Optional[AsyncClient] = None, max_retries: int = 3, base_retry_delay: float = 1.0):
        """
        Initializes the provider.

        Args:
            aclient: An initialized async Google GenAI client (``Client(...).aio``). When None,
                     one client is created per distinct API key.
            max_retries: Retries for failed SDK calls.
            base_retry_delay: Initial backoff delay in seconds.
        """
        super().__init__(max_retries=max_retries, base_retry_delay=base_retry_delay)
        self._aclient = aclient
        self._clients: Dict[str, AsyncClient] = {}

    def _client_for(self, config: ProviderConfig) -> AsyncClient:
        if self._aclient is not None:
            return self._aclient
        if config.api_key not in self._clients:
            self._clients[config.api_key] = genai.Client(api_key=config.api_key).aio
        return self._clients[config.api_key]

    async def _complete_impl(
        self,
        messages: List[ConversationMessage],
        options: CompletionOptions,
        config: ProviderConfig,
    ) -> Completion:
        system_instruction, contents = self._convert_history(messages)
        generate_config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=options.temperature,
            max_output_tokens=options.max_tokens,
            top_p=options.top_p,
            stop_sequences=options.stop,
        )

        logger.debug(f"Sending {len(contents)} contents to Gemini model '{config.model}'.")
        try:
            response = await self._client_for(config).models.generate_content(
                model=config.model,
                contents=contents,  # type: ignore[arg-type]
                config=generate_config,
            )
        except Exception as e:
            logger.error(f"Error sending message to Gemini: {e}", exc_info=True)
            raise

        return self._build_completion(response)

    @staticmethod
    def _convert_history(messages: List[ConversationMessage]) -> Tuple[Optional[str], List[types.Content]]:
        """
        Converts the conversation into a system instruction and Gemini contents.

        Args:
            messages: Provider-agnostic messages.

        Returns:
            The system instruction (if the conversation starts with one) and the contents.
        """
        system_instruction: Optional[str] = None
        contents: List[types.Content] = []
        for index, msg in enumerate(messages):
            if msg.role == "system" and index == 0:
                system_instruction = msg.content
            elif msg.role == "assistant":
                contents.append(types.Content(role="model", parts=[types.Part(text=msg.content)]))
            else:
                contents.append(types.Content(role="user", parts=[types.Part(text=msg.content)]))
        return system_instruction, contents

    @staticmethod
    def _build_completion(response: GenerateContentResponse) -> Completion:
        """
        Constructs the normalized completion from the raw API response.

        Args:
            response: The GenerateContentResponse from the model.

        Returns:
            The completion with text, usage and the raw response.
        """
        usage = None
        metadata: Any = response.usage_metadata
        if metadata is not None:
            usage = TokenUsage(
                prompt_tokens=metadata.prompt_token_count or 0,
                completion_tokens=metadata.candidates_token_count or 0,
                total_tokens=metadata.total_token_count or 0,
            )

        return Completion(content=response.text or "", usage=usage, model=response.model_version, raw=response)
