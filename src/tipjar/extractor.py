"""Recover structured JSON from raw language-model replies.

Models asked for "JSON only" still wrap their answer in code fences or
surround it with prose. Each strategy below is tried independently, in
order, and the first one that yields valid JSON wins:

1. the whole reply parsed as JSON
2. the interior of the first fenced code block (```json or bare ```)
3. the span from the first ``{`` to the last ``}``

If all three fail, ``MalformedModelOutput`` is raised. Callers are expected
to substitute a fallback value rather than surface the error.
"""

import json
import re
from typing import Any, Callable, Optional

from .exceptions import MalformedModelOutput

_FENCE_RE = re.compile(r"```[ \t]*(?:json|JSON)?[ \t]*\n?(.*?)\n?[ \t]*```", re.DOTALL)

_MISSING = object()


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return _MISSING


def parse_direct(raw: str) -> Optional[Any]:
    """Parse the entire reply as JSON."""
    value = _loads(raw.strip())
    return None if value is _MISSING else value


def parse_fenced(raw: str) -> Optional[Any]:
    """Parse the interior of a fenced code block."""
    for match in _FENCE_RE.finditer(raw):
        value = _loads(match.group(1).strip())
        if value is not _MISSING:
            return value
    return None


def parse_braced(raw: str) -> Optional[Any]:
    """Parse the greedy ``{...}`` span of the reply."""
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        return None
    value = _loads(raw[start : end + 1])
    return None if value is _MISSING else value


STRATEGIES: tuple[tuple[str, Callable[[str], Optional[Any]]], ...] = (
    ("direct", parse_direct),
    ("fenced", parse_fenced),
    ("braced", parse_braced),
)


def extract_json(raw: Optional[str]) -> Any:
    """Recover a JSON value from a model reply.

    Raises:
        MalformedModelOutput: If no strategy produced valid JSON.
    """
    if not raw or not raw.strip():
        raise MalformedModelOutput("Model returned an empty reply")
    for _name, strategy in STRATEGIES:
        value = strategy(raw)
        # A bare JSON null is as useless as no match.
        if value is not None:
            return value
    snippet = raw.strip().replace("\n", " ")[:120]
    raise MalformedModelOutput(f"No JSON found in model reply: {snippet!r}")


def extract_object(raw: Optional[str]) -> dict:
    """Like ``extract_json`` but require a JSON object."""
    value = extract_json(raw)
    if not isinstance(value, dict):
        raise MalformedModelOutput(
            f"Expected a JSON object, got {type(value).__name__}"
        )
    return value
