"""Core abstractions for completion provider implementations."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Coroutine, Dict, List, Sequence

from .models import Completion, CompletionOptions, ProviderConfig
from ..exceptions import CompletionTransportError, ConfigurationError
from ..messages import ConversationMessage
from ..logger import get_logger

logger = get_logger(__name__)


class CompletionProvider(ABC):
    """Abstract base class for completion providers.

    Implementations turn a provider-agnostic conversation into a single completion.
    Transient SDK failures are retried with exponential backoff; once retries are
    exhausted the failure surfaces as ``CompletionTransportError``.
    """

    def __init__(self, max_retries: int = 3, base_retry_delay: float = 1.0):
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay

    async def _execute_with_retry(
        self,
        func: Callable[..., Coroutine[Any, Any, Completion]],
        *args: Any,
        **kwargs: Any,
    ) -> Completion:
        """
        Executes a function with retry logic.

        Args:
            func: The asynchronous function to execute.
            *args: Positional arguments for the function.
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the function call.

        Raises:
            CompletionTransportError: Wrapping the last encountered exception if all retries fail.
        """
        delay = self.base_retry_delay
        for attempt in range(self.max_retries + 1):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if attempt == self.max_retries:
                    msg = f"Completion failed after {self.max_retries} retries: {e}"
                    logger.error(msg)
                    raise CompletionTransportError(msg) from e

                logger.warning(f"API Error (Retry: {attempt + 1}/{self.max_retries}): {e}. Waiting {delay}s...")
                await asyncio.sleep(delay)
                delay *= 2  # Exponential backoff

        raise CompletionTransportError(f"Failed to get a completion after {self.max_retries} retries.")

    def validate_config(self, config: ProviderConfig) -> None:
        """Fail fast on an unusable provider configuration.

        Raises:
            ConfigurationError: If the credential or the model is missing.
        """
        if not config.api_key:
            raise ConfigurationError(f"Missing API key for provider '{config.provider}'.")
        if not config.model:
            raise ConfigurationError(f"Missing model for provider '{config.provider}'.")

    async def complete(
        self,
        messages: Sequence[ConversationMessage],
        options: CompletionOptions,
        config: ProviderConfig,
    ) -> Completion:
        """
        Request a completion for the conversation.

        Args:
            messages: The conversation so far.
            options: Sampling options.
            config: The resolved provider selection.

        Returns:
            The normalized completion.
        """
        return await self._execute_with_retry(self._complete_impl, list(messages), options, config)

    @abstractmethod
    async def _complete_impl(
        self,
        messages: List[ConversationMessage],
        options: CompletionOptions,
        config: ProviderConfig,
    ) -> Completion:
        pass


class ProviderRegistry:
    """Maps provider names to completion provider instances."""

    def __init__(self) -> None:
        self._providers: Dict[str, CompletionProvider] = {}

    def register(self, name: str, provider: CompletionProvider) -> None:
        key = name.lower()
        if key in self._providers:
            logger.warning(f"Replacing completion provider '{key}'.")
        self._providers[key] = provider
        logger.info(f"Registered completion provider: '{key}'")

    def get(self, name: str) -> CompletionProvider:
        """Return the provider registered under ``name``.

        Raises:
            ConfigurationError: If no provider is registered under that name.
        """
        try:
            return self._providers[name.lower()]
        except KeyError:
            known = ", ".join(sorted(self._providers)) or "none"
            raise ConfigurationError(f"Unknown completion provider '{name}' (registered: {known}).") from None

    def names(self) -> List[str]:
        return list(self._providers)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._providers
