"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from functools import cache

# Discord caps embed titles at 256 characters and field values at 1024.
EMBED_TITLE_LIMIT = 256


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def escape_link_text(text: str) -> str:
    """Escape characters that would break a markdown ``[text](url)`` link."""
    return text.replace("[", "\\[").replace("]", "\\]")
