"""Test file discovery and parsing."""

from .discovery import DEFAULT_PATTERN, LoadError, LoadResult, discover, load_tests
from .parser import ParsedFile, parse

__all__ = [
    "DEFAULT_PATTERN",
    "LoadError",
    "LoadResult",
    "ParsedFile",
    "discover",
    "load_tests",
    "parse",
]
