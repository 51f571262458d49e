"""Abstract base class for tip classifiers."""

import re
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..dates import parse_iso_date
from ..exceptions import MalformedModelOutput, ModelUnavailable
from ..extractor import extract_object
from ..llm.base import LLMProvider
from ..models import (
    DEFAULT_FOLDER,
    DEFAULT_PRIORITY,
    DEFAULT_SUMMARY,
    DEFAULT_URGENCY,
    ESTIMATED_TIMES,
    Classification,
)

SUMMARY_BULLETS = 3
BULLET = "•"

# Model urgency words mapped onto the urgency levels used for sorting.
URGENCY_ALIASES = {
    "immediate": "Immediate",
    "immediately": "Immediate",
    "urgent": "Immediate",
    "high": "Immediate",
    "today": "Immediate",
    "this week": "This Week",
    "week": "This Week",
    "medium": "This Week",
    "this month": "This Month",
    "month": "This Month",
    "low": "This Month",
    "later": "Later",
    "someday": "Later",
    "none": "Later",
}

_TRUTHY = frozenset({"true", "yes", "y", "1"})
_BULLET_PREFIX = re.compile(r"^\s*(?:[•\-\*]|\d+[.)])\s*")


def normalize_urgency(value: Any) -> str:
    if not isinstance(value, str):
        return DEFAULT_URGENCY
    return URGENCY_ALIASES.get(value.strip().lower(), DEFAULT_URGENCY)


def normalize_priority(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return DEFAULT_PRIORITY
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or DEFAULT_PRIORITY


def normalize_summary(value: Any) -> str:
    """Coerce a string or list into at most three ``•`` bullet lines."""
    if isinstance(value, list):
        lines = [str(v) for v in value if v is not None]
    elif isinstance(value, str):
        text = value.strip()
        lines = text.splitlines() if "\n" in text else re.split(r"\s*•\s*", text)
    else:
        return DEFAULT_SUMMARY
    bullets = []
    for line in lines:
        line = _BULLET_PREFIX.sub("", line).strip()
        if line:
            bullets.append(f"{BULLET} {line}")
    if not bullets:
        return DEFAULT_SUMMARY
    return "\n".join(bullets[:SUMMARY_BULLETS])


def normalize_tags(value: Any) -> list[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return []
    tags: list[str] = []
    for tag in value:
        if not isinstance(tag, str):
            continue
        tag = tag.strip().lstrip("#").strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def normalize_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return False


def normalize_estimated_time(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    for option in ESTIMATED_TIMES:
        if value.strip().lower() == option.lower():
            return option
    return None


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def classification_from_dict(data: dict) -> Classification:
    """Build a Classification from model JSON, defaulting every missing field."""
    folder = _text(data.get("category")) or _text(data.get("folder"))
    return Classification(
        folder=folder or DEFAULT_FOLDER,
        priority=normalize_priority(data.get("priority")),
        urgency_level=normalize_urgency(data.get("urgency") or data.get("urgencyLevel")),
        summary=normalize_summary(data.get("summary") or data.get("pageSummary")),
        tags=normalize_tags(data.get("tags")),
        relevance_date=parse_iso_date(data.get("relevanceDate")),
        relevance_event=_text(data.get("relevanceEvent")) or None,
        action_required=normalize_bool(data.get("actionRequired")),
        estimated_time=normalize_estimated_time(data.get("estimatedTime")),
        title=_text(data.get("title")),
        content=_text(data.get("content")),
        url=_text(data.get("url")),
    )


def unavailable(error: str) -> Classification:
    """The safe default classification used when the model gave nothing usable."""
    return Classification(ok=False, error=error)


class TipClassifier(ABC):
    """Base class for classification requests.

    Subclasses define the prompts and the output budget; ``_complete`` makes
    exactly one model round trip and ``_complete_json`` turns the reply into
    a dict or raises the error the caller converts into a fallback result.
    """

    def __init__(self, llm: LLMProvider, temperature: Optional[float] = None):
        self._llm = llm
        self._temperature = temperature

    @property
    @abstractmethod
    def max_output_tokens(self) -> int:
        """Output token budget for one call."""

    @abstractmethod
    def _system_prompt(self) -> str:
        """System prompt for the LLM."""

    def _complete(self, user_prompt: str) -> str:
        return self._llm.generate(
            self._system_prompt(),
            user_prompt,
            max_output_tokens=self.max_output_tokens,
            temperature=self._temperature,
        )

    def _complete_json(self, user_prompt: str) -> dict:
        """One model call, parsed defensively.

        Raises:
            ModelUnavailable: If the model could not be reached.
            MalformedModelOutput: If the reply holds no JSON object.
        """
        raw = self._complete(user_prompt)
        return extract_object(raw)

    @staticmethod
    def _failure_message(error: Exception) -> str:
        if isinstance(error, ModelUnavailable):
            return f"Model unavailable: {error}"
        if isinstance(error, MalformedModelOutput):
            return f"Malformed model output: {error}"
        return str(error)
