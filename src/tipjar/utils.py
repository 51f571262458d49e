"""Utility functions for tipjar."""

import re
from typing import Optional
from urllib.parse import urlparse

_URL_RE = re.compile(r"(?:https?://|www\.)[^\s<>\"',]+", re.IGNORECASE)


def sanitize_filename(name: str) -> str:
    """Remove characters that are invalid in filenames."""
    name = re.sub(r'[<>:"/\\|?*]', "", name)
    name = name.strip(". ")
    return name or "untitled"


def normalize_url(url: str) -> str:
    """Add an https:// scheme when the URL has none."""
    url = url.strip()
    if url and not url.lower().startswith(("http://", "https://")):
        url = "https://" + url
    return url


def extract_domain(url: str) -> str:
    """Extract the domain from a URL, without a leading ``www.``."""
    parsed = urlparse(normalize_url(url))
    domain = parsed.hostname or ""
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


def find_first_url(text: str) -> Optional[str]:
    """Return the first http(s) or www. link in the text, if any."""
    match = _URL_RE.search(text or "")
    if not match:
        return None
    return match.group(0).rstrip(".;:!?)")


def truncate(text: str, limit: int, suffix: str = "...") -> str:
    """Cut text to ``limit`` characters, appending ``suffix`` if it was cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + suffix


def clip_for_prompt(text: str, max_chars: int) -> str:
    """Shorten page text for prompt injection, preferring a paragraph break."""
    text = text.strip()
    if len(text) <= max_chars:
        return text
    clipped = text[:max_chars]
    last_para = clipped.rfind("\n\n")
    if last_para > max_chars // 2:
        clipped = clipped[:last_para]
    return clipped.rstrip() + "\n\n[Content truncated]"
