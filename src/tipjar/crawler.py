"""Firecrawl SDK wrapper for fetching page titles and text.

Crawling is advisory: ``PageCrawler.fetch`` never raises and returns None on
any failure so a submission is never lost because a page was unreachable.
"""

import logging
from typing import Optional
from urllib.parse import urljoin, urlparse

from firecrawl import FirecrawlApp

from .exceptions import CrawlFailed
from .models import PageContent
from .utils import normalize_url

logger = logging.getLogger(__name__)

# Page text kept for prompt context.
MAX_PAGE_CHARS = 2000

# Titles some sites return when there is nothing useful to show.
_PLACEHOLDER_TITLES = frozenset({"", "no title found", "untitled", "home"})


def _metadata_dict(metadata_obj) -> dict:
    # Convert Pydantic model to dict if needed
    if hasattr(metadata_obj, "model_dump"):
        return metadata_obj.model_dump()
    if hasattr(metadata_obj, "dict"):
        return metadata_obj.dict()
    return metadata_obj if isinstance(metadata_obj, dict) else {}


def _first(metadata: dict, *keys: str) -> str:
    for key in keys:
        value = metadata.get(key)
        if isinstance(value, list):
            value = value[0] if value else ""
        if value and str(value).strip():
            return str(value).strip()
    return ""


def resolve_favicon(favicon: str, base_url: str) -> Optional[str]:
    """Make a favicon link absolute, defaulting to ``/favicon.ico`` on the host."""
    parsed = urlparse(normalize_url(base_url))
    if not parsed.hostname:
        return None
    origin = f"{parsed.scheme}://{parsed.netloc}"
    if not favicon:
        return f"{origin}/favicon.ico"
    if favicon.startswith(("http://", "https://")):
        return favicon
    return urljoin(origin + "/", favicon.lstrip("/"))


class PageCrawler:
    """Fetch a page's title and a short text excerpt."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        max_chars: int = MAX_PAGE_CHARS,
    ):
        self._api_key = api_key
        self._timeout = timeout
        self._max_chars = max_chars
        self._app = FirecrawlApp(api_key=api_key) if api_key else None

    @property
    def enabled(self) -> bool:
        return self._app is not None

    def scrape(self, url: str) -> PageContent:
        """Scrape a single URL.

        Raises:
            CrawlFailed: On timeout, HTTP error, or an empty response.
        """
        if self._app is None:
            raise CrawlFailed("Crawling is disabled (FIRECRAWL_API_KEY not set)")
        url = normalize_url(url)
        try:
            result = self._app.scrape(
                url,
                formats=["markdown"],
                only_main_content=True,
                timeout=int(self._timeout * 1000),
            )
        except Exception as e:
            raise CrawlFailed(f"Failed to scrape {url}: {e}") from e

        if not result:
            raise CrawlFailed(f"Empty response from Firecrawl for {url}")

        markdown = result.markdown if hasattr(result, "markdown") else result.get("markdown", "")
        metadata_obj = result.metadata if hasattr(result, "metadata") else result.get("metadata", {})
        metadata = _metadata_dict(metadata_obj)

        title = _first(metadata, "title", "og_title", "ogTitle")
        if title.lower() in _PLACEHOLDER_TITLES:
            title = ""

        return PageContent(
            url=url,
            title=title,
            description=_first(metadata, "description", "og_description", "ogDescription"),
            text=(markdown or "").strip()[: self._max_chars],
            metadata=metadata,
        )

    def fetch(self, url: str) -> Optional[PageContent]:
        """Scrape a URL, returning None instead of raising on failure."""
        if not url or self._app is None:
            return None
        try:
            return self.scrape(url)
        except CrawlFailed as e:
            logger.warning("Crawl failed, continuing without page content: %s", e)
            return None

    def metadata(self, url: str) -> dict:
        """Preview metadata for a link: title, description, image, site name, favicon.

        Raises:
            CrawlFailed: If the page could not be fetched.
        """
        page = self.scrape(url)
        meta = page.metadata
        return {
            "title": page.title or _first(meta, "twitter_title", "twitterTitle") or None,
            "description": page.description
            or _first(meta, "twitter_description", "twitterDescription")
            or None,
            "image": _first(meta, "og_image", "ogImage", "twitter_image", "twitterImage") or None,
            "siteName": _first(meta, "og_site_name", "ogSiteName") or None,
            "favicon": resolve_favicon(_first(meta, "favicon"), page.url),
        }
