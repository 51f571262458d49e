"""Split one submission into candidate items without calling the model."""

import re

# Commas and newlines separate items when the user has already picked a folder.
ITEM_SEPARATORS = re.compile(r"[,\n]+")


def split_items(content: str, separators: re.Pattern = ITEM_SEPARATORS) -> list[str]:
    """Split content on separators, trimming and dropping empty fragments."""
    if not content or not content.strip():
        return []
    return [part.strip() for part in separators.split(content) if part.strip()]
