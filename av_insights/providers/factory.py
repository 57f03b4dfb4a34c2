"""
Provider factory for creating LLM provider instances.

Handles provider selection based on configuration and available API keys.
"""

import logging
from enum import Enum

from .base import LLMProvider
from .anthropic import AnthropicProvider
from .openai import OpenAIProvider
from .google import GoogleProvider

logger = logging.getLogger(__name__)


class ProviderType(Enum):
    """Available LLM provider types, in default preference order."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


def create_provider(
    provider_type: ProviderType | str,
    api_key: str,
    default_model: str | None = None,
    timeout: float = 60.0,
    **kwargs,
) -> LLMProvider:
    """
    Create an LLM provider instance.

    Args:
        provider_type: The provider to create (openai, anthropic, google)
        api_key: API key for the provider
        default_model: Optional default model override
        timeout: Per-request timeout in seconds
        **kwargs: Additional provider-specific arguments

    Returns:
        Configured LLMProvider instance

    Raises:
        ValueError: If provider_type is unknown
    """
    if isinstance(provider_type, str):
        try:
            provider_type = ProviderType(provider_type.lower())
        except ValueError:
            raise ValueError(
                f"Unknown provider: {provider_type}. "
                f"Available: {[p.value for p in ProviderType]}"
            )

    if provider_type == ProviderType.OPENAI:
        return OpenAIProvider(
            api_key=api_key,
            default_model=default_model or "gpt-4o-mini",
            organization=kwargs.get("organization"),
            timeout=timeout,
        )
    elif provider_type == ProviderType.ANTHROPIC:
        return AnthropicProvider(
            api_key=api_key,
            default_model=default_model or "claude-haiku-4-5",
            timeout=timeout,
        )
    elif provider_type == ProviderType.GOOGLE:
        return GoogleProvider(
            api_key=api_key,
            default_model=default_model or "gemini-2.5-flash",
            timeout=timeout,
        )
    else:
        raise ValueError(f"Unknown provider type: {provider_type}")


def get_provider_from_env(
    openai_key: str | None = None,
    anthropic_key: str | None = None,
    google_key: str | None = None,
    preferred_provider: str | None = None,
    openai_model: str | None = None,
    timeout: float = 60.0,
) -> LLMProvider | None:
    """
    Create a provider from available environment keys.

    Tries providers in order of preference, returning the first
    one with a valid API key configured.

    Args:
        openai_key: OpenAI API key (or None if not set)
        anthropic_key: Anthropic API key (or None if not set)
        google_key: Google API key (or None if not set)
        preferred_provider: Preferred provider name (openai, anthropic, google)
        openai_model: Model override applied when OpenAI is selected
        timeout: Per-request timeout in seconds for the selected provider

    Returns:
        Configured LLMProvider or None if no keys available
    """
    providers = {
        ProviderType.OPENAI: openai_key,
        ProviderType.ANTHROPIC: anthropic_key,
        ProviderType.GOOGLE: google_key,
    }

    def build(provider_type: ProviderType) -> LLMProvider:
        model = openai_model if provider_type == ProviderType.OPENAI else None
        return create_provider(
            provider_type, providers[provider_type], default_model=model, timeout=timeout,
        )

    if preferred_provider:
        try:
            pref_type = ProviderType(preferred_provider.lower())
        except ValueError:
            logger.warning(f"Unknown LLM_PROVIDER {preferred_provider!r}, using default order")
        else:
            if providers.get(pref_type):
                return build(pref_type)
            logger.warning(f"LLM_PROVIDER={pref_type.value} has no API key, using default order")

    # Default order: OpenAI > Anthropic > Google
    for provider_type, api_key in providers.items():
        if api_key:
            return build(provider_type)

    return None
