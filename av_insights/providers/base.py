"""
Base LLM provider interface.

Defines the abstract interface that all provider implementations must follow.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class ProviderCapabilities:
    """Describes what features a provider supports."""
    supports_system_prompt: bool = True
    supports_prompt_caching: bool = False
    supports_json_schema: bool = False  # Server-side schema enforcement
    max_context_tokens: int = 128000


@dataclass
class LLMResponse:
    """Standardized response from any LLM provider."""
    text: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    cached_tokens: int = 0  # For providers with prompt caching
    metadata: dict = field(default_factory=dict)


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    All provider implementations must inherit from this class and implement
    the required methods, so the classifier can run against OpenAI,
    Anthropic or Google without knowing which one it has.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name (e.g., 'anthropic', 'openai', 'google')."""
        pass

    @property
    @abstractmethod
    def capabilities(self) -> ProviderCapabilities:
        """Return the provider's capabilities."""
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        pass

    @abstractmethod
    def complete(
        self,
        user_prompt: str,
        system_prompt: str | None = None,
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.0,
        use_cache: bool = False,
        json_schema: dict | None = None,
        schema_name: str = "response",
    ) -> LLMResponse:
        """
        Generate a completion from the model.

        Args:
            user_prompt: The user message/prompt
            system_prompt: Optional system prompt for context
            model: Specific model to use (defaults to provider's default)
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature (0.0 = deterministic)
            use_cache: Enable prompt caching if supported
            json_schema: JSON schema the response text must conform to
            schema_name: Name reported to providers that want one

        Returns:
            LLMResponse with the generated text and metadata
        """
        pass

    async def complete_async(
        self,
        user_prompt: str,
        system_prompt: str | None = None,
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.0,
        use_cache: bool = False,
        json_schema: dict | None = None,
        schema_name: str = "response",
    ) -> LLMResponse:
        """
        Async version of complete.

        Default implementation wraps sync call in executor.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            lambda: self.complete(
                user_prompt=user_prompt,
                system_prompt=system_prompt,
                model=model,
                max_tokens=max_tokens,
                temperature=temperature,
                use_cache=use_cache,
                json_schema=json_schema,
                schema_name=schema_name,
            )
        )
