"""Tests for the provider wrappers, with the SDK clients mocked out."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import anthropic
import httpx
import openai
import pytest

from tipjar.config import Config
from tipjar.exceptions import ModelUnavailable
from tipjar.llm import get_llm_provider
from tipjar.llm.anthropic import AnthropicProvider
from tipjar.llm.openai import OpenAIProvider

REQUEST = httpx.Request("POST", "https://api.example.com/v1")


def _openai_reply(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


class TestOpenAIProvider:
    def test_generate_passes_prompts_and_overrides(self):
        provider = OpenAIProvider("sk-test", model="gpt-4o-mini", temperature=0.3)
        provider._client = MagicMock()
        provider._client.chat.completions.create.return_value = _openai_reply('{"a": 1}')

        assert provider.generate("sys", "user", max_output_tokens=500, temperature=0.1) == '{"a": 1}'
        kwargs = provider._client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 500

    def test_newer_models_use_max_completion_tokens(self):
        provider = OpenAIProvider("sk-test", model="gpt-5-mini")
        provider._client = MagicMock()
        provider._client.chat.completions.create.return_value = _openai_reply("ok")
        provider.generate("sys", "user")
        kwargs = provider._client.chat.completions.create.call_args.kwargs
        assert kwargs["max_completion_tokens"] == 1000
        assert kwargs["temperature"] == 0.3

    def test_unsupported_token_parameter_toggles_once(self):
        provider = OpenAIProvider("sk-test", model="gpt-4o-mini")
        provider._client = MagicMock()
        error = openai.BadRequestError(
            "Unsupported parameter: 'max_tokens'",
            response=httpx.Response(400, request=REQUEST),
            body=None,
        )
        provider._client.chat.completions.create.side_effect = [error, _openai_reply("ok")]

        assert provider.generate("sys", "user") == "ok"
        last = provider._client.chat.completions.create.call_args.kwargs
        assert "max_completion_tokens" in last

    def test_transport_error_is_model_unavailable(self):
        provider = OpenAIProvider("sk-test")
        provider._client = MagicMock()
        provider._client.chat.completions.create.side_effect = openai.APIConnectionError(
            request=REQUEST
        )
        with pytest.raises(ModelUnavailable):
            provider.generate("sys", "user")

    def test_empty_choices(self):
        provider = OpenAIProvider("sk-test")
        provider._client = MagicMock()
        provider._client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        assert provider.generate("sys", "user") == ""


class TestAnthropicProvider:
    def test_joins_text_blocks(self):
        provider = AnthropicProvider("sk-ant-test")
        provider._client = MagicMock()
        provider._client.messages.create.return_value = SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text='{"a"'),
                SimpleNamespace(type="tool_use", text="ignored"),
                SimpleNamespace(type="text", text=": 1}"),
            ]
        )
        assert provider.generate("sys", "user", max_output_tokens=500) == '{"a": 1}'
        kwargs = provider._client.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["max_tokens"] == 500

    def test_transport_error_is_model_unavailable(self):
        provider = AnthropicProvider("sk-ant-test")
        provider._client = MagicMock()
        provider._client.messages.create.side_effect = anthropic.APIConnectionError(request=REQUEST)
        with pytest.raises(ModelUnavailable):
            provider.generate("sys", "user")


def test_factory_picks_provider():
    claude = get_llm_provider(Config(llm_provider="claude", anthropic_api_key="k"))
    assert isinstance(claude, AnthropicProvider)
    assert claude.model == "claude-3-5-haiku-latest"

    gpt = get_llm_provider(Config(openai_api_key="k", model="gpt-4.1-mini"))
    assert isinstance(gpt, OpenAIProvider)
    assert gpt.model == "gpt-4.1-mini"
