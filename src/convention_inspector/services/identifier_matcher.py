"""Validation and extraction of message identifiers in documentation text.

An identifier is two or more alphanumeric segments joined by hyphens,
followed by whitespace and a free-text description, e.g.
``PAY-A-001 process payment`` or ``M-BANK-USR mobile user query``.
"""
from __future__ import annotations

import re

from src.shared.models.inspection import IDENTIFIER_PATTERN, Identifier


def has_valid_identifier(doc: str | None) -> bool:
    """Return True when ``doc`` contains an identifier anywhere."""
    if not doc:
        return False
    return IDENTIFIER_PATTERN.search(doc) is not None


def extract_identifier(doc: str | None) -> str | None:
    """Return the first identifier in ``doc``, trimmed, or None.

    Only the first match counts; later identifiers in the same comment
    are ignored. A match whose description is only whitespace (``PAY-S-001  ``)
    is not an identifier once trimmed, so it yields None.
    """
    if not doc:
        return None
    match = IDENTIFIER_PATTERN.search(doc)
    if match is None:
        return None
    text = match.group(0).strip()
    if IDENTIFIER_PATTERN.fullmatch(text) is None:
        return None
    return text


def parse_identifier(doc: str | None) -> Identifier | None:
    """Split the first identifier in ``doc`` into tag and description."""
    text = extract_identifier(doc)
    if text is None:
        return None
    tag, description = re.split(r"\s+", text, maxsplit=1)
    return Identifier(tag=tag, description=description.strip())
