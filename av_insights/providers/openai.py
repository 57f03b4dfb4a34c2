"""
OpenAI provider implementation.

Supports GPT models with strict JSON-schema structured outputs.
"""

from openai import OpenAI

from .base import LLMProvider, LLMResponse, ProviderCapabilities


class OpenAIProvider(LLMProvider):
    """
    OpenAI GPT provider with structured output support.
    """

    # Model aliases for convenience
    MODEL_ALIASES = {
        "gpt4": "gpt-4o",
        "gpt4-mini": "gpt-4o-mini",
        "gpt-4": "gpt-4o",
        "fast": "gpt-4o-mini",
        "standard": "gpt-4o",
    }

    def __init__(
        self,
        api_key: str,
        default_model: str = "gpt-4o-mini",
        organization: str | None = None,
        timeout: float = 60.0,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            default_model: Default model to use
            organization: Optional organization ID
            timeout: Per-request timeout in seconds
        """
        # Rate-limit retries are handled by av_insights.retry only
        self.client = OpenAI(
            api_key=api_key, organization=organization, timeout=timeout, max_retries=0,
        )
        self._default_model = self._resolve_model(default_model)

    def _resolve_model(self, model: str) -> str:
        """Resolve model alias to full model ID."""
        return self.MODEL_ALIASES.get(model, model)

    @property
    def name(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return self._default_model

    @property
    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_system_prompt=True,
            supports_prompt_caching=False,  # OpenAI has caching but less explicit
            supports_json_schema=True,
            max_context_tokens=128000,
        )

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
        Generate a completion using GPT.

        With json_schema set, the request uses strict structured outputs so
        the returned text is a JSON document matching the schema.
        """
        resolved_model = self._resolve_model(model) if model else self._default_model

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        kwargs = {
            "model": resolved_model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        if json_schema is not None:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {
                    "name": schema_name,
                    "strict": True,
                    "schema": json_schema,
                },
            }

        response = self.client.chat.completions.create(**kwargs)

        choice = response.choices[0]
        usage = response.usage

        return LLMResponse(
            text=choice.message.content or "",
            model=resolved_model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            cached_tokens=0,
            metadata={
                "finish_reason": choice.finish_reason,
                "provider": "openai",
            }
        )
