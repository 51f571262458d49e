"""Claude/Anthropic LLM provider."""

from typing import Optional

import anthropic

from ..exceptions import ModelUnavailable
from .base import LLMProvider

_DEFAULT_MAX_OUTPUT = 1_000


class AnthropicProvider(LLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-haiku-latest",
        temperature: float = 0.3,
        timeout: float = 30.0,
    ):
        self._client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self._model = model
        self._temperature = temperature
        self._max_output = _DEFAULT_MAX_OUTPUT

    @property
    def model(self) -> str:
        return self._model

    @property
    def default_max_output_tokens(self) -> int:
        return self._max_output

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        try:
            response = self._client.messages.create(
                model=self._model,
                max_tokens=max_output_tokens or self._max_output,
                temperature=self._temperature if temperature is None else temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except anthropic.APIError as e:
            raise ModelUnavailable(f"Anthropic API error: {e}") from e
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
