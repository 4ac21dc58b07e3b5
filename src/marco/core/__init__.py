"""Core models and helpers exposed at the package level."""
from .comparator import COMPARE_MODES, ComparisonResult, canonicalize, compare_output, render_diff
from .errors import ConfigError, MarcoError, ParseError
from .models import Header, RunnerSpec, TestCase
from .results import ERRORED, FAILED, PASSED, Result, count_by_status, sort_results

__all__ = [
    "COMPARE_MODES",
    "ComparisonResult",
    "ConfigError",
    "ERRORED",
    "FAILED",
    "Header",
    "MarcoError",
    "PASSED",
    "ParseError",
    "Result",
    "RunnerSpec",
    "TestCase",
    "canonicalize",
    "compare_output",
    "count_by_status",
    "render_diff",
    "sort_results",
]
