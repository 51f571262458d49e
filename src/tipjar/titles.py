"""Short display titles for tips.

Priority: crawled page title, then the URL's hostname (without ``www.``),
then a label built from the content. The content label is a best-effort
heuristic: filler lead-ins and trailing phrases are stripped, stopwords are
dropped and the first few remaining words are capitalised. It is not meant
to be clever, only deterministic.
"""

import re
from typing import Optional

from .utils import extract_domain, truncate

TITLE_PREFIX_LENGTH = 30
MAX_LABEL_WORDS = 3

# Lead-in phrases removed from the start of the content. Longer phrases are
# matched first so "remember to check out" loses the whole lead-in.
FILLER_PREFIXES = (
    "i need to",
    "i want to",
    "i should",
    "i have to",
    "i must",
    "need to",
    "want to",
    "have to",
    "don't forget to",
    "dont forget to",
    "do not forget to",
    "remember to",
    "reminder to",
    "reminder:",
    "remind me to",
    "make sure to",
    "try to",
    "go to",
    "going to",
    "visit",
    "check out",
    "look at",
    "look into",
    "look up",
    "read about",
    "read",
    "watch",
    "listen to",
    "try",
    "buy",
    "get",
    "pick up",
    "grab",
    "book",
    "call",
    "email",
    "see",
    "find",
    "note:",
    "tip:",
    "todo:",
    "to do:",
    "maybe",
    "please",
)

# Trailing phrases cut from the content along with everything after them.
FILLER_SUFFIXES = (
    "on my way to",
    "on the way to",
    "on my way home",
    "on the way home",
    "heading to",
    "when i get a chance",
    "when i have time",
    "if i have time",
    "at some point",
    "sometime",
    "some time",
    "later today",
    "later",
    "soon",
    "this weekend",
    "next weekend",
    "next week",
    "next month",
    "tomorrow",
    "today",
    "tonight",
    "asap",
    "for later",
    "for the trip",
    "because",
    "since",
    "so that",
    "recommended by",
    "suggested by",
    "according to",
)

STOPWORDS = frozenset(
    {
        "a", "an", "the", "and", "or", "but", "of", "to", "in", "on", "at",
        "for", "with", "by", "from", "about", "into", "over", "after",
        "before", "this", "that", "these", "those", "it", "its", "is", "are",
        "was", "were", "be", "been", "my", "our", "your", "their", "his",
        "her", "me", "we", "you", "they", "i", "some", "any", "all", "new",
        "really", "very", "just", "also", "there", "here", "out", "up",
        "down", "so", "if", "then", "than", "as", "such", "good", "great",
        "nice", "cool", "awesome", "place", "thing", "stuff",
    }
)

_SORTED_PREFIXES = tuple(sorted(FILLER_PREFIXES, key=len, reverse=True))
_SUFFIX_RE = re.compile(
    r"\b(?:"
    + "|".join(re.escape(s) for s in sorted(FILLER_SUFFIXES, key=len, reverse=True))
    + r")\b.*$",
    re.IGNORECASE,
)
_URL_RE = re.compile(r"(?:https?://|www\.)\S+", re.IGNORECASE)
_WORD_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9'&\-]*")


def truncate_title(text: str, limit: int = TITLE_PREFIX_LENGTH) -> str:
    """Title made from the first ``limit`` characters, ellipsis-suffixed if cut."""
    return truncate(text.strip(), limit)


def _strip_prefixes(text: str) -> str:
    changed = True
    while changed and text:
        changed = False
        lowered = text.lower()
        for prefix in _SORTED_PREFIXES:
            if lowered.startswith(prefix) and (
                len(text) == len(prefix)
                or not text[len(prefix)].isalnum()
                or not prefix[-1].isalnum()
            ):
                text = text[len(prefix):].lstrip(" :,-")
                changed = True
                break
    return text


def content_label(content: str, max_words: int = MAX_LABEL_WORDS) -> str:
    """Build a short capitalised label from free text, or "" if nothing is left."""
    text = _URL_RE.sub(" ", content or "")
    text = " ".join(text.split())
    text = _strip_prefixes(text)
    text = _SUFFIX_RE.sub("", text).strip()

    words = [w for w in _WORD_RE.findall(text) if w.lower() not in STOPWORDS]
    return " ".join(_capitalize(w) for w in words[:max_words])


def _capitalize(word: str) -> str:
    # Keep acronyms and mixed-case names as typed.
    if any(c.isupper() for c in word[1:]):
        return word
    return word[:1].upper() + word[1:]


def derive_title(
    content: str,
    url: Optional[str] = None,
    page_title: Optional[str] = None,
) -> str:
    """Pick a display title for a tip."""
    if page_title and page_title.strip():
        return page_title.strip()
    if url and url.strip():
        domain = extract_domain(url)
        if domain:
            return domain
    label = content_label(content)
    if label:
        return label
    if content and content.strip():
        return truncate_title(content)
    return "Untitled"
