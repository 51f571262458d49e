"""Data models for tipjar.

Tips and folders are stored and served as JSON with camelCase keys; the
dataclasses use snake_case attributes and convert at the edges.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Optional

DEFAULT_FOLDER = "General Tips"
DEFAULT_PRIORITY = "5"
DEFAULT_URGENCY = "This Week"
DEFAULT_FOLDER_COLOR = "#3B82F6"
DEFAULT_SUMMARY = (
    "• Tip saved for future reference\n"
    "• Content requires manual review\n"
    "• Consider organizing into relevant category"
)

URGENCY_LEVELS = ("Immediate", "This Week", "This Month", "Later")
ESTIMATED_TIMES = ("Quick", "Medium", "Long")

ANONYMOUS = "anonymous"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class _Record:
    """Mixin converting between snake_case attributes and camelCase JSON."""

    def to_dict(self) -> dict[str, Any]:
        return {_camel(f.name): getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        known = {_camel(f.name): f.name for f in fields(cls)}
        kwargs = {known[key]: value for key, value in data.items() if key in known}
        return cls(**kwargs)

    @classmethod
    def field_for(cls, key: str) -> Optional[str]:
        """Map a camelCase key to its attribute name, or None if unknown."""
        for f in fields(cls):
            if key in (f.name, _camel(f.name)):
                return f.name
        return None


@dataclass
class Tip(_Record):
    """One captured item."""

    content: str = ""
    url: str = ""
    title: str = ""
    id: str = ""
    relevance_date: Optional[str] = None
    relevance_event: Optional[str] = None
    folder: str = DEFAULT_FOLDER
    priority: str = DEFAULT_PRIORITY
    summary: str = ""
    tags: list[str] = field(default_factory=list)
    urgency_level: str = DEFAULT_URGENCY
    action_required: bool = False
    estimated_time: Optional[str] = None
    is_processed: bool = False
    ai_processed: bool = False
    ai_error: Optional[str] = None
    user_context: str = ""
    needs_more_info: bool = False
    created_at: str = field(default_factory=utc_now)


@dataclass
class Folder(_Record):
    """A user-defined organizational bucket."""

    name: str
    id: str = ""
    description: Optional[str] = None
    color: str = DEFAULT_FOLDER_COLOR
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)


@dataclass
class PageContent:
    """Title and text excerpt fetched from a web page."""

    url: str
    title: str = ""
    description: str = ""
    text: str = ""
    metadata: dict = field(default_factory=dict)


@dataclass
class Classification:
    """Structured result of one classification call.

    ``ok`` is False when the model was unavailable or its reply could not be
    parsed; ``error`` then carries the cause and the other fields hold the
    fixed safe defaults.
    """

    folder: str = DEFAULT_FOLDER
    priority: str = DEFAULT_PRIORITY
    urgency_level: str = DEFAULT_URGENCY
    summary: str = DEFAULT_SUMMARY
    tags: list[str] = field(default_factory=list)
    relevance_date: Optional[str] = None
    relevance_event: Optional[str] = None
    action_required: bool = False
    estimated_time: Optional[str] = None
    title: str = ""
    content: str = ""
    url: str = ""
    ok: bool = True
    error: Optional[str] = None


@dataclass
class SubmissionResult:
    """Outcome of persisting a submission: saved tips plus per-item failures."""

    tips: list[Tip] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.tips)

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def ai_processed(self) -> bool:
        return bool(self.tips) and all(tip.ai_processed for tip in self.tips)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tips": [tip.to_dict() for tip in self.tips],
            "count": self.count,
            "failed": self.failed,
            "errors": list(self.errors),
            "aiProcessed": self.ai_processed,
        }
