"""Single-item classifier: one piece of content, optionally with a crawled page."""

import logging
from datetime import date
from typing import Optional

from ..exceptions import MalformedModelOutput, ModelUnavailable
from ..folder_registry import FolderRegistry
from ..models import Classification, PageContent
from ..utils import clip_for_prompt
from .base import TipClassifier, classification_from_dict, unavailable

logger = logging.getLogger(__name__)

PAGE_TEXT_CHARS = 2000


class SingleTipClassifier(TipClassifier):
    @property
    def max_output_tokens(self) -> int:
        return 500

    def _system_prompt(self) -> str:
        return (
            "You are a helpful assistant that categorizes and summarizes tips. "
            "Always respond with valid JSON only: no prose, no markdown, no code fences."
        )

    def _user_prompt(
        self,
        content: str,
        folder_list: str,
        url: str = "",
        page: Optional[PageContent] = None,
        today: Optional[date] = None,
        user_context: str = "",
    ) -> str:
        parts = ["Analyze this tip and categorize it appropriately.", ""]
        parts.append(f"Tip content: {content}")
        if url:
            parts.append(f"URL: {url}")
        if page and page.title:
            parts.append(f"Webpage title: {page.title}")
        if page and page.text:
            parts.append(f"Webpage content: {clip_for_prompt(page.text, PAGE_TEXT_CHARS)}")
        if user_context:
            parts.append(f"Additional context from the user: {user_context}")
        if today:
            parts.append(f"Today's date: {today.isoformat()}")
        parts.extend([
            "",
            folder_list,
            "",
            "Respond with a JSON object with exactly these keys:",
            "{",
            '  "category": "folder name. If the content fits one of the available '
            "custom folders, use that exact name. Otherwise create a new meaningful "
            "folder name (e.g. 'Design Resources', 'Programming Tips', 'Business Strategy')\",",
            '  "urgency": "Immediate | This Week | This Month | Later",',
            '  "priority": "1-10, where 10 is most important",',
            '  "summary": "exactly 3 bullet points, each on its own line, starting with • '
            "and being a complete sentence. Summarize the webpage content if present, "
            'otherwise the tip itself",',
            '  "relevanceDate": "YYYY-MM-DD if the tip mentions when it becomes relevant, otherwise null",',
            '  "relevanceEvent": "what happens on relevanceDate, otherwise null",',
            '  "tags": ["up to 5 short lowercase labels"],',
            '  "actionRequired": true or false,',
            '  "estimatedTime": "Quick | Medium | Long"',
            "}",
            "",
            "Prefer existing custom folders over inventing near-duplicates. "
            "Output ONLY the JSON object.",
        ])
        return "\n".join(parts)

    def classify(
        self,
        content: str,
        folders: list[str],
        url: str = "",
        page: Optional[PageContent] = None,
        today: Optional[date] = None,
        user_context: str = "",
    ) -> Classification:
        """Classify one item. Never raises for model trouble.

        Returns an unavailable Classification (``ok=False``) carrying the
        cause when the model could not be reached or its reply was unusable.
        """
        prompt = self._user_prompt(
            content,
            FolderRegistry.format_for_prompt(folders),
            url=url,
            page=page,
            today=today,
            user_context=user_context,
        )
        try:
            data = self._complete_json(prompt)
        except (ModelUnavailable, MalformedModelOutput) as e:
            message = self._failure_message(e)
            logger.warning("Classification failed, using defaults: %s", message)
            return unavailable(message)
        return classification_from_dict(data)
