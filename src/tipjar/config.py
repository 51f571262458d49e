"""Configuration loading and validation."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigError


@dataclass
class Config:
    """Application configuration."""

    openai_api_key: str = ""
    anthropic_api_key: str = ""
    firecrawl_api_key: str = ""
    data_dir: Path = field(default_factory=lambda: Path.cwd() / "data")
    llm_provider: str = "openai"
    model: str = ""
    temperature: float = 0.3
    model_timeout: float = 30.0
    crawl_timeout: float = 10.0
    soon_days: int = 3
    later_days: int = 14
    api_tokens: dict[str, str] = field(default_factory=dict)
    verbose: bool = False

    @property
    def default_model(self) -> str:
        if self.model:
            return self.model
        if self.llm_provider == "claude":
            return "claude-3-5-haiku-latest"
        return "gpt-4o-mini"

    @property
    def crawling_enabled(self) -> bool:
        return bool(self.firecrawl_api_key)

    def validate(self) -> None:
        """Validate required configuration."""
        if self.llm_provider not in ("claude", "openai"):
            raise ConfigError(
                f"Unknown LLM provider: {self.llm_provider}. Use 'claude' or 'openai'."
            )
        if self.llm_provider == "claude" and not self.anthropic_api_key:
            raise ConfigError(
                "ANTHROPIC_API_KEY is required when using Claude provider."
            )
        if self.llm_provider == "openai" and not self.openai_api_key:
            raise ConfigError(
                "OPENAI_API_KEY is required when using OpenAI provider."
            )
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigError("temperature must be between 0 and 2.")
        if self.model_timeout <= 0 or self.crawl_timeout <= 0:
            raise ConfigError("Timeouts must be positive.")
        if self.soon_days < 0 or self.later_days < 0:
            raise ConfigError("Relative date offsets cannot be negative.")


def parse_api_tokens(raw: str) -> dict[str, str]:
    """Parse ``token:user,token:user`` into a token -> user id mapping."""
    tokens: dict[str, str] = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        token, sep, user = pair.partition(":")
        if not sep or not token.strip() or not user.strip():
            raise ConfigError(f"Malformed TIPJAR_API_TOKENS entry: {pair!r}")
        tokens[token.strip()] = user.strip()
    return tokens


def _env_number(name: str, default, cast):
    raw = os.getenv(name, "")
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def load_config(
    data_dir: Optional[str] = None,
    provider: Optional[str] = None,
    model: Optional[str] = None,
    verbose: bool = False,
    validate: bool = True,
) -> Config:
    """Load config from .env and apply CLI overrides."""
    load_dotenv()

    config = Config(
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        firecrawl_api_key=os.getenv("FIRECRAWL_API_KEY", ""),
        data_dir=Path(data_dir or os.getenv("TIPJAR_DATA_DIR") or Path.cwd() / "data"),
        llm_provider=provider or os.getenv("LLM_PROVIDER") or "openai",
        model=model or os.getenv("TIPJAR_MODEL", ""),
        temperature=_env_number("TIPJAR_TEMPERATURE", 0.3, float),
        model_timeout=_env_number("TIPJAR_MODEL_TIMEOUT", 30.0, float),
        crawl_timeout=_env_number("TIPJAR_CRAWL_TIMEOUT", 10.0, float),
        soon_days=_env_number("TIPJAR_SOON_DAYS", 3, int),
        later_days=_env_number("TIPJAR_LATER_DAYS", 14, int),
        api_tokens=parse_api_tokens(os.getenv("TIPJAR_API_TOKENS", "")),
        verbose=verbose,
    )

    if validate:
        config.validate()
    return config
