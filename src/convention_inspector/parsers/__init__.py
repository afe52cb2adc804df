"""Language-specific source parsers for the convention inspector."""

from src.convention_inspector.parsers.java_parser import JavaParser, ParsedFile

__all__ = [
    "JavaParser",
    "ParsedFile",
]
