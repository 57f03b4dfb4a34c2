"""
Google Gemini provider implementation.

Supports Gemini models with JSON-schema constrained output.
Uses the google-genai SDK.
"""

from google import genai
from google.genai import types

from .base import LLMProvider, LLMResponse, ProviderCapabilities


class GoogleProvider(LLMProvider):
    """
    Google Gemini provider with JSON output support.
    """

    MODEL_ALIASES = {
        "flash": "gemini-2.5-flash",
        "pro": "gemini-2.5-pro",
        "gemini-flash": "gemini-2.5-flash",
        "gemini-pro": "gemini-2.5-pro",
        "fast": "gemini-2.5-flash",
    }

    def __init__(
        self,
        api_key: str,
        default_model: str = "gemini-2.5-flash",
        timeout: float = 60.0,
    ):
        """
        Initialize Google Gemini provider.

        Args:
            api_key: Google AI API key
            default_model: Default model to use
            timeout: Per-request timeout in seconds
        """
        # Rate-limit retries are handled by av_insights.retry only
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(
                timeout=int(timeout * 1000),  # milliseconds
                retry_options=types.HttpRetryOptions(attempts=1),
            ),
        )
        self._default_model = self._resolve_model(default_model)

    def _resolve_model(self, model: str) -> str:
        """Resolve model alias to full model ID."""
        return self.MODEL_ALIASES.get(model, model)

    @property
    def name(self) -> str:
        return "google"

    @property
    def default_model(self) -> str:
        return self._default_model

    @property
    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_system_prompt=True,
            supports_prompt_caching=False,
            supports_json_schema=True,
            max_context_tokens=1000000,  # Gemini has very large context
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
        Generate a completion using Gemini.

        Args:
            user_prompt: The user message
            system_prompt: Optional system prompt
            model: Model to use (defaults to instance default)
            max_tokens: Maximum response tokens
            temperature: Sampling temperature
            use_cache: Ignored for Google
            json_schema: JSON schema for constrained decoding
            schema_name: Ignored for Google

        Returns:
            LLMResponse with generated text
        """
        resolved_model = self._resolve_model(model) if model else self._default_model

        config_kwargs = {
            "max_output_tokens": max_tokens,
            "temperature": temperature,
        }

        if system_prompt:
            config_kwargs["system_instruction"] = system_prompt

        if json_schema is not None:
            config_kwargs["response_mime_type"] = "application/json"
            config_kwargs["response_json_schema"] = json_schema

        config = types.GenerateContentConfig(**config_kwargs)

        response = self.client.models.generate_content(
            model=resolved_model,
            contents=user_prompt,
            config=config,
        )

        input_tokens = 0
        output_tokens = 0
        if hasattr(response, "usage_metadata") and response.usage_metadata:
            input_tokens = response.usage_metadata.prompt_token_count or 0
            output_tokens = response.usage_metadata.candidates_token_count or 0

        return LLMResponse(
            text=response.text or "",
            model=resolved_model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cached_tokens=0,
            metadata={
                "provider": "google",
            }
        )
