"""Tests for configuration loading."""

from pathlib import Path

import pytest

from tipjar.config import Config, load_config, parse_api_tokens
from tipjar.exceptions import ConfigError

ENV_KEYS = (
    "LLM_PROVIDER",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "FIRECRAWL_API_KEY",
    "TIPJAR_MODEL",
    "TIPJAR_DATA_DIR",
    "TIPJAR_TEMPERATURE",
    "TIPJAR_MODEL_TIMEOUT",
    "TIPJAR_CRAWL_TIMEOUT",
    "TIPJAR_SOON_DAYS",
    "TIPJAR_LATER_DAYS",
    "TIPJAR_API_TOKENS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")


def test_defaults_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("TIPJAR_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TIPJAR_SOON_DAYS", "5")
    monkeypatch.setenv("TIPJAR_API_TOKENS", "abc:alice, def:bob")

    config = load_config()
    assert config.llm_provider == "openai"
    assert config.default_model == "gpt-4o-mini"
    assert config.data_dir == Path(tmp_path)
    assert config.soon_days == 5
    assert config.later_days == 14
    assert config.api_tokens == {"abc": "alice", "def": "bob"}
    assert config.crawling_enabled is False


def test_cli_overrides_win(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
    config = load_config(data_dir="/tmp/tips", provider="claude", model="claude-x")
    assert config.llm_provider == "claude"
    assert config.default_model == "claude-x"
    assert config.data_dir == Path("/tmp/tips")


def test_missing_key_rejected():
    with pytest.raises(ConfigError, match="OPENAI_API_KEY"):
        load_config()
    # Commands that never call the model can skip validation.
    assert load_config(validate=False).openai_api_key == ""


def test_bad_number(monkeypatch):
    monkeypatch.setenv("TIPJAR_MODEL_TIMEOUT", "soon")
    with pytest.raises(ConfigError, match="TIPJAR_MODEL_TIMEOUT"):
        load_config(validate=False)


@pytest.mark.parametrize(
    "changes",
    [
        {"llm_provider": "gemini"},
        {"temperature": 3.0},
        {"model_timeout": 0},
        {"later_days": -1},
    ],
)
def test_validate_rejects(changes):
    config = Config(openai_api_key="k", anthropic_api_key="k", **changes)
    with pytest.raises(ConfigError):
        config.validate()


def test_parse_api_tokens():
    assert parse_api_tokens("") == {}
    with pytest.raises(ConfigError):
        parse_api_tokens("no-colon")
