"""
Tests for provider selection and structured-output requests.
"""

from unittest.mock import MagicMock, patch

import pytest

from av_insights.analysis import ARTICLE_ANALYSIS_SCHEMA
from av_insights.providers import (
    AnthropicProvider,
    GoogleProvider,
    OpenAIProvider,
    ProviderType,
    create_provider,
    get_provider_from_env,
)


class TestFactory:

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            create_provider("mystery", "key")

    def test_openai_preferred_by_default(self):
        provider = get_provider_from_env(
            openai_key="sk-test", anthropic_key="ant-test", google_key="g-test",
        )
        assert isinstance(provider, OpenAIProvider)

    def test_openai_model_override(self):
        provider = get_provider_from_env(openai_key="sk-test", openai_model="gpt-4o")
        assert provider.default_model == "gpt-4o"

    def test_falls_back_in_order(self):
        provider = get_provider_from_env(anthropic_key="ant-test", google_key="g-test")
        assert isinstance(provider, AnthropicProvider)

    def test_preferred_provider(self):
        with patch("av_insights.providers.factory.GoogleProvider") as google_cls:
            get_provider_from_env(
                openai_key="sk-test", google_key="g-test", preferred_provider="google",
            )
        google_cls.assert_called_once()

    def test_preferred_provider_without_key_uses_default_order(self):
        provider = get_provider_from_env(openai_key="sk-test", preferred_provider="anthropic")
        assert isinstance(provider, OpenAIProvider)

    def test_no_keys(self):
        assert get_provider_from_env() is None

    def test_provider_type_order(self):
        assert [p.value for p in ProviderType] == ["openai", "anthropic", "google"]


class TestClientSettings:

    def test_openai_sdk_retries_disabled(self):
        provider = OpenAIProvider(api_key="sk-test", timeout=30)
        assert provider.client.max_retries == 0
        assert provider.client.timeout == 30

    def test_anthropic_sdk_retries_disabled(self):
        provider = AnthropicProvider(api_key="ant-test", timeout=30)
        assert provider.client.max_retries == 0
        assert provider.client.timeout == 30

    def test_google_http_options(self):
        with patch("av_insights.providers.google.genai.Client") as client_cls:
            GoogleProvider(api_key="g-test", timeout=30)

        http_options = client_cls.call_args.kwargs["http_options"]
        assert http_options.timeout == 30000
        assert http_options.retry_options.attempts == 1

    def test_factory_passes_timeout(self):
        provider = get_provider_from_env(openai_key="sk-test", timeout=12.5)
        assert provider.client.timeout == 12.5


class TestOpenAIRequest:

    def test_strict_json_schema(self):
        provider = OpenAIProvider(api_key="sk-test")
        provider.client = MagicMock()
        choice = MagicMock(finish_reason="stop")
        choice.message.content = '{"av_relevance": true}'
        provider.client.chat.completions.create.return_value = MagicMock(
            choices=[choice], usage=MagicMock(prompt_tokens=10, completion_tokens=5),
        )

        response = provider.complete(
            "Title: x", system_prompt="analyst", max_tokens=350, temperature=0.2,
            json_schema=ARTICLE_ANALYSIS_SCHEMA, schema_name="article_analysis",
        )

        kwargs = provider.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 350
        assert kwargs["response_format"]["type"] == "json_schema"
        assert kwargs["response_format"]["json_schema"]["name"] == "article_analysis"
        assert kwargs["response_format"]["json_schema"]["strict"] is True
        assert kwargs["messages"][0] == {"role": "system", "content": "analyst"}
        assert response.text == '{"av_relevance": true}'
        assert response.input_tokens == 10


class TestAnthropicRequest:

    def test_schema_in_system_prompt(self):
        provider = AnthropicProvider(api_key="ant-test")
        provider.client = MagicMock()
        block = MagicMock(type="text", text="{}")
        provider.client.messages.create.return_value = MagicMock(
            content=[block], stop_reason="end_turn",
            usage=MagicMock(input_tokens=10, output_tokens=2, cache_read_input_tokens=0),
        )

        response = provider.complete(
            "Title: x", system_prompt="analyst", json_schema=ARTICLE_ANALYSIS_SCHEMA,
        )

        kwargs = provider.client.messages.create.call_args.kwargs
        assert kwargs["system"].startswith("analyst")
        assert '"av_relevance"' in kwargs["system"]
        assert response.text == "{}"


class TestGoogleRequest:

    def test_json_mime_type(self):
        provider = GoogleProvider(api_key="g-test")
        provider.client = MagicMock()
        provider.client.models.generate_content.return_value = MagicMock(
            text="{}", usage_metadata=None,
        )

        provider.complete("Title: x", json_schema=ARTICLE_ANALYSIS_SCHEMA)

        config = provider.client.models.generate_content.call_args.kwargs["config"]
        assert config.response_mime_type == "application/json"
