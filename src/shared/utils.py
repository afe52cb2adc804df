"""Shared utility functions."""
import re
from datetime import datetime, timezone


def now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def remove_words(text: str, *words: str) -> str:
    """Remove every case-insensitive occurrence of ``words`` from ``text``.

    >>> remove_words("OrderServiceImpl", "service", "impl")
    'Order'
    """
    if not words:
        return text
    pattern = "|".join(re.escape(word) for word in words)
    return re.sub(pattern, "", text, flags=re.IGNORECASE)
