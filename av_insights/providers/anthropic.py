"""
Anthropic Claude provider implementation.

Supports Claude models with prompt caching for cost optimization.
"""

import json

import anthropic

from .base import LLMProvider, LLMResponse, ProviderCapabilities


class AnthropicProvider(LLMProvider):
    """
    Anthropic Claude provider with prompt caching support.

    Claude has no server-side schema enforcement, so a requested schema is
    appended to the system prompt and the reply is parsed downstream.
    """

    MODEL_ALIASES = {
        "haiku": "claude-haiku-4-5-20251001",
        "sonnet": "claude-sonnet-4-5-20250929",
        "claude-haiku-4-5": "claude-haiku-4-5-20251001",
        "claude-sonnet-4-5": "claude-sonnet-4-5-20250929",
    }

    def __init__(
        self,
        api_key: str,
        default_model: str = "claude-haiku-4-5",
        timeout: float = 60.0,
    ):
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            default_model: Default model to use
            timeout: Per-request timeout in seconds
        """
        # Rate-limit retries are handled by av_insights.retry only
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self._default_model = self._resolve_model(default_model)

    def _resolve_model(self, model: str) -> str:
        """Resolve model alias to full model ID."""
        return self.MODEL_ALIASES.get(model, model)

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return self._default_model

    @property
    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_system_prompt=True,
            supports_prompt_caching=True,
            supports_json_schema=False,
            max_context_tokens=200000,
        )

    @staticmethod
    def _schema_instructions(json_schema: dict) -> str:
        return (
            "Respond with a single JSON object and nothing else. "
            "It must validate against this JSON schema:\n"
            f"{json.dumps(json_schema, indent=2)}"
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
        Generate a completion using Claude.

        Args:
            user_prompt: The user message
            system_prompt: Optional system prompt
            model: Model to use (defaults to instance default)
            max_tokens: Maximum response tokens
            temperature: Sampling temperature
            use_cache: Enable prompt caching on the system prompt
            json_schema: Schema the reply should follow (prompt-enforced)
            schema_name: Ignored for Anthropic

        Returns:
            LLMResponse with generated text
        """
        resolved_model = self._resolve_model(model) if model else self._default_model

        messages = [{"role": "user", "content": user_prompt}]

        system_text = system_prompt or ""
        if json_schema is not None:
            system_text = f"{system_text}\n\n{self._schema_instructions(json_schema)}".strip()

        system = None
        if system_text:
            if use_cache:
                system = [{
                    "type": "text",
                    "text": system_text,
                    "cache_control": {"type": "ephemeral"}
                }]
            else:
                system = system_text

        kwargs = {
            "model": resolved_model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if temperature > 0:
            kwargs["temperature"] = temperature
        if system:
            kwargs["system"] = system

        response = self.client.messages.create(**kwargs)

        usage = response.usage
        cached_tokens = 0
        if hasattr(usage, "cache_read_input_tokens"):
            cached_tokens = usage.cache_read_input_tokens or 0

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )

        return LLMResponse(
            text=text,
            model=resolved_model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            cached_tokens=cached_tokens,
            metadata={
                "stop_reason": response.stop_reason,
                "provider": "anthropic",
            }
        )
