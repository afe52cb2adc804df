"""In-memory indexes over parsed sources."""

from src.convention_inspector.storage.source_index import SourceIndex

__all__ = [
    "SourceIndex",
]
