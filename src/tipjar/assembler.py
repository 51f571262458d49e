"""Turn raw submissions into finished, persisted tips.

The assembler owns the fallback policy: classification, crawling and date
parsing are advisory, so their failures become default field values plus
``aiProcessed=False``/``aiError``. Storage is mandatory, so its failures
propagate.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from .classifiers import BatchTipClassifier, SingleTipClassifier, unavailable
from .crawler import PageCrawler
from .dates import DEFAULT_OFFSETS, RelativeOffsets, resolve_relative_date
from .exceptions import CrawlFailed, StorageUnavailable, ValidationError
from .folder_registry import FolderRegistry
from .models import DEFAULT_FOLDER, Classification, PageContent, SubmissionResult, Tip
from .splitter import split_items
from .storage import TipStore
from .titles import derive_title, truncate_title
from .utils import find_first_url

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def validate_submission(content: Any, url: Any = None) -> None:
    """Reject submissions that carry nothing to capture.

    Raises:
        ValidationError: If content is not a string, or both content and URL are empty.
    """
    if content is not None and not isinstance(content, str):
        raise ValidationError("Content must be a string")
    if url is not None and not isinstance(url, str):
        raise ValidationError("URL must be a string")
    if not (content or "").strip() and not (url or "").strip():
        raise ValidationError("Content or URL is required")


class TipAssembler:
    """Build tips from submissions and persist them through a TipStore."""

    def __init__(
        self,
        tip_store: TipStore,
        registry: FolderRegistry,
        classifier: SingleTipClassifier,
        batch_classifier: BatchTipClassifier,
        crawler: Optional[PageCrawler] = None,
        offsets: RelativeOffsets = DEFAULT_OFFSETS,
        clock: Callable[[], datetime] = _local_now,
    ):
        self._tips = tip_store
        self._registry = registry
        self._classifier = classifier
        self._batch = batch_classifier
        self._crawler = crawler
        self._offsets = offsets
        self._clock = clock

    def build(
        self,
        identity: str,
        content: str,
        folder: Optional[str] = None,
        url: Optional[str] = None,
        split: bool = True,
    ) -> list[Tip]:
        """Produce finished tips for a submission without persisting them.

        Args:
            identity: Scope used to look up known folder names.
            content: Free text; may list several items.
            folder: Explicit folder. When set no model call is made.
            url: Source link for a single-item submission.
            split: Let the model split the content into several tips.
        """
        if not identity:
            raise ValidationError("Identity is required")
        content = (content or "").strip()
        url = (url or "").strip()
        if not content and not url:
            return []

        now = self._clock()
        if folder and folder.strip():
            return self._bare_tips(content, folder.strip(), url, now)

        folders = self._registry.list_names(identity)
        if split and not url and not self._is_single_link(content):
            return self._classify_batch(content, folders, now)
        return [self._classify_single(content, folders, now, url=url)]

    def submit(
        self,
        identity: str,
        content: str,
        folder: Optional[str] = None,
        url: Optional[str] = None,
        split: bool = True,
    ) -> SubmissionResult:
        """Build tips for a submission and persist each one.

        Items are stored one by one; a failed write is recorded in the result
        and the remaining items are still attempted.

        Raises:
            StorageUnavailable: If no tip at all could be stored.
        """
        tips = self.build(identity, content, folder=folder, url=url, split=split)
        result = SubmissionResult()
        for tip in tips:
            try:
                result.tips.append(self._tips.create(identity, tip))
            except StorageUnavailable as e:
                logger.error("Failed to store tip %r: %s", tip.title, e)
                result.errors.append(str(e))
        if tips and not result.tips:
            raise StorageUnavailable(result.errors[0])
        logger.info(
            "Stored %d of %d tip(s) for %s", result.count, len(tips), identity
        )
        return result

    def reanalyze(self, identity: str, tip_id: str, user_context: str) -> Optional[Tip]:
        """Re-classify a tip with clarifying text from the user.

        Returns the updated tip, or None if it does not exist.

        Raises:
            ValidationError: If the tip is already processed.
        """
        if not tip_id:
            raise ValidationError("Tip ID is required")
        tip = self._tips.get(identity, tip_id)
        if tip is None:
            return None
        if tip.is_processed:
            raise ValidationError("Processed tips are not re-classified")

        user_context = (user_context or "").strip()
        now = self._clock()
        folders = self._registry.list_names(identity)
        page = self._crawl(tip.url)
        result = self._classifier.classify(
            tip.content or tip.url,
            folders,
            url=tip.url,
            page=page,
            today=now.date(),
            user_context=user_context,
        )

        fields: dict[str, Any] = {"userContext": user_context, "needsMoreInfo": False}
        if result.ok:
            fields.update({
                "folder": result.folder,
                "priority": result.priority,
                "summary": result.summary,
                "tags": result.tags,
                "urgencyLevel": result.urgency_level,
                "actionRequired": result.action_required,
                "estimatedTime": result.estimated_time,
                "relevanceDate": result.relevance_date
                or self._resolve_date(f"{tip.content} {user_context}", now)
                or tip.relevance_date,
                "relevanceEvent": result.relevance_event or tip.relevance_event,
                "aiProcessed": True,
                "aiError": None,
            })
        else:
            fields["aiError"] = result.error
        return self._tips.update(identity, tip_id, fields)

    def _bare_tips(self, content: str, folder: str, url: str, now: datetime) -> list[Tip]:
        """One unclassified tip per fragment, all in the chosen folder."""
        if url:
            return [self._bare_tip(content, folder, url, now)]
        return [
            self._bare_tip(fragment, folder, find_first_url(fragment) or "", now)
            for fragment in split_items(content)
        ]

    def _bare_tip(self, content: str, folder: str, url: str, now: datetime) -> Tip:
        return Tip(
            content=content,
            url=url,
            title=truncate_title(content) if content else derive_title(content, url),
            folder=folder,
            relevance_date=self._resolve_date(content, now),
            ai_processed=False,
            created_at=self._timestamp(now),
        )

    def _classify_single(
        self,
        content: str,
        folders: list[str],
        now: datetime,
        url: str = "",
    ) -> Tip:
        url = url or find_first_url(content) or ""
        page = self._crawl(url)
        result = self._classifier.classify(
            content or url, folders, url=url, page=page, today=now.date()
        )
        return self._tip_from(result, content or url, url, page, now)

    def _classify_batch(self, content: str, folders: list[str], now: datetime) -> list[Tip]:
        batch = self._batch.classify_batch(content, folders, today=now.date())
        if batch.model_unavailable:
            return [self._tip_from(unavailable(batch.error), content, "", None, now)]
        if not batch.ok:
            # A reply we could not use; the single-item prompt may still work.
            logger.info("Batch reply unusable (%s); classifying as one tip", batch.error)
            return [self._classify_single(content, folders, now)]

        tips = []
        for item in batch.items:
            item_url = item.url or find_first_url(item.content) or ""
            page = self._crawl(item_url)
            tips.append(
                self._tip_from(item, item.content or item_url, item_url, page, now)
            )
        return tips

    def _tip_from(
        self,
        result: Classification,
        content: str,
        url: str,
        page: Optional[PageContent],
        now: datetime,
    ) -> Tip:
        page_title = page.title if page else ""
        return Tip(
            content=content,
            url=url,
            title=page_title or result.title or derive_title(content, url),
            relevance_date=result.relevance_date or self._resolve_date(content, now),
            relevance_event=result.relevance_event,
            folder=result.folder or DEFAULT_FOLDER,
            priority=result.priority,
            summary=result.summary,
            tags=list(result.tags),
            urgency_level=result.urgency_level,
            action_required=result.action_required,
            estimated_time=result.estimated_time,
            ai_processed=result.ok,
            ai_error=result.error,
            needs_more_info=not result.ok,
            created_at=self._timestamp(now),
        )

    def _crawl(self, url: str) -> Optional[PageContent]:
        if not url or self._crawler is None:
            return None
        try:
            return self._crawler.fetch(url)
        except CrawlFailed as e:
            logger.warning("Crawl failed for %s: %s", url, e)
            return None

    def _resolve_date(self, text: str, now: datetime) -> Optional[str]:
        return resolve_relative_date(text, now, self._offsets)

    @staticmethod
    def _is_single_link(content: str) -> bool:
        return bool(find_first_url(content)) and len(split_items(content)) == 1

    @staticmethod
    def _timestamp(now: datetime) -> str:
        if now.tzinfo is None:
            return now.isoformat()
        return now.astimezone(timezone.utc).isoformat()
