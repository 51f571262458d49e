"""OpenAI chat-completions provider."""

from typing import Optional

import openai

from ..exceptions import ModelUnavailable
from .base import LLMProvider

_DEFAULT_MAX_OUTPUT = 1_000

# Models that still take ``max_tokens``; newer ones (o-series, gpt-4.1,
# gpt-5) only accept ``max_completion_tokens``.
_LEGACY_PREFIXES = ("gpt-3.5", "gpt-4o", "gpt-4-turbo", "gpt-4-")


def _is_unsupported_parameter(error: openai.BadRequestError) -> bool:
    text = str(error)
    return "unsupported_parameter" in text.lower() or "Unsupported parameter" in text


class OpenAIProvider(LLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        timeout: float = 30.0,
    ):
        # max_retries=0: one round trip per generate() call.
        self._client = openai.OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self._model = model
        self._temperature = temperature
        self._max_output = _DEFAULT_MAX_OUTPUT
        self._token_param = (
            "max_tokens" if model.startswith(_LEGACY_PREFIXES) else "max_completion_tokens"
        )

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
        request = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self._temperature if temperature is None else temperature,
        }
        tokens = max_output_tokens or self._max_output
        try:
            response = self._create(request, tokens)
        except openai.APIError as e:
            raise ModelUnavailable(f"OpenAI API error: {e}") from e
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def _create(self, request: dict, tokens: int):
        """Send the request, switching the output-token parameter once if rejected."""
        try:
            return self._client.chat.completions.create(
                **request, **{self._token_param: tokens}
            )
        except openai.BadRequestError as e:
            if not _is_unsupported_parameter(e):
                raise
        # Remember the working parameter for later calls.
        self._token_param = (
            "max_tokens" if self._token_param == "max_completion_tokens" else "max_completion_tokens"
        )
        return self._client.chat.completions.create(**request, **{self._token_param: tokens})
