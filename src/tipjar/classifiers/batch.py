"""Batch classifier: one model call that both splits and classifies a submission."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..exceptions import MalformedModelOutput, ModelUnavailable
from ..folder_registry import FolderRegistry
from ..models import Classification
from .base import TipClassifier, classification_from_dict

logger = logging.getLogger(__name__)


@dataclass
class BatchClassification:
    """Items produced by one batch call, or the error that prevented it."""

    items: list[Classification] = field(default_factory=list)
    error: Optional[str] = None
    # True when the model could not be reached at all (as opposed to a bad reply).
    model_unavailable: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.items)


class BatchTipClassifier(TipClassifier):
    @property
    def max_output_tokens(self) -> int:
        return 1000

    def _system_prompt(self) -> str:
        return (
            "You are a helpful assistant that parses content into multiple tips "
            "and categorizes them. Always respond with valid JSON only: no prose, "
            "no markdown, no code fences."
        )

    def _user_prompt(
        self,
        content: str,
        folder_list: str,
        today: Optional[date] = None,
    ) -> str:
        lines = [
            "Parse this content into separate tips and categorize each one.",
            "",
            f"Content: {content}",
        ]
        if today:
            lines.append(f"Today's date: {today.isoformat()}")
        lines.extend([
            "",
            folder_list,
            "",
            "Respond with a JSON object of this shape:",
            "{",
            '  "tips": [',
            "    {",
            '      "content": "the individual tip text",',
            '      "title": "short descriptive title",',
            '      "category": "folder name (use existing custom folders when appropriate, '
            'or create meaningful new ones)",',
            '      "url": "the URL mentioned in this tip, otherwise empty string",',
            '      "urgency": "Immediate | This Week | This Month | Later",',
            '      "priority": "1-10",',
            '      "summary": "exactly 3 bullet points, each on its own line, starting with • '
            'and being a complete sentence",',
            '      "relevanceDate": "YYYY-MM-DD if the tip says when it matters, otherwise null",',
            '      "relevanceEvent": "what happens on relevanceDate, otherwise null",',
            '      "tags": ["short lowercase labels"],',
            '      "actionRequired": true or false,',
            '      "estimatedTime": "Quick | Medium | Long"',
            "    }",
            "  ]",
            "}",
            "",
            "Guidelines:",
            '- Split content by commas, "and", "or", or other logical separators',
            "- Each tip should be a distinct item or location",
            "- Group related tips under the same folder name",
            "- Use existing custom folders when content fits well",
            "- Create meaningful folder names for new categories",
            "- Keep titles short and descriptive",
            "- If a tip contains a URL, use the URL as the primary content and extract a meaningful title",
            "",
            "Output ONLY the JSON object.",
        ])
        return "\n".join(lines)

    def classify_batch(
        self,
        content: str,
        folders: list[str],
        today: Optional[date] = None,
    ) -> BatchClassification:
        """Split and classify a submission in one call. Never raises for model trouble."""
        prompt = self._user_prompt(
            content, FolderRegistry.format_for_prompt(folders), today=today
        )
        try:
            data = self._complete_json(prompt)
        except (ModelUnavailable, MalformedModelOutput) as e:
            message = self._failure_message(e)
            logger.warning("Batch classification failed: %s", message)
            return BatchClassification(
                error=message, model_unavailable=isinstance(e, ModelUnavailable)
            )

        raw_items = data.get("tips")
        if not isinstance(raw_items, list):
            message = "Malformed model output: reply has no 'tips' list"
            logger.warning("Batch classification failed: %s", message)
            return BatchClassification(error=message)

        items = []
        for raw in raw_items:
            if not isinstance(raw, dict):
                continue
            item = classification_from_dict(raw)
            if item.content or item.url:
                items.append(item)
        return BatchClassification(items=items)
