"""Utilities for comparing captured output with expected output."""
from __future__ import annotations

import difflib
import json
from dataclasses import dataclass
from typing import Any, Optional, Tuple

TEXT = "text"
JSON = "json"
COMPARE_MODES = (TEXT, JSON)

_LINE_ENDINGS = "\r\n"


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of comparing canonical actual output with the expectation."""

    passed: bool
    expected: str
    actual: str
    diff: Optional[str] = None


def canonicalize(text: str) -> str:
    """Drop trailing newlines; everything else is significant.

    ``"a b \\n\\n"`` becomes ``"a b "`` and ``"a\\r\\n"`` becomes ``"a"``.
    Internal whitespace, leading whitespace, and trailing spaces are kept.
    """

    return text.rstrip(_LINE_ENDINGS)


def compare_output(actual: str, expected: str, mode: str = TEXT) -> ComparisonResult:
    """Compare ``actual`` with ``expected`` under ``mode``.

    In ``json`` mode, when both sides decode as JSON documents they are equal
    if the decoded values are equal, so key order and formatting do not
    matter. If either side is not JSON the text rule applies.
    """

    if mode == JSON:
        decoded = _decode_pair(actual, expected)
        if decoded is not None:
            return _compare_json(*decoded)
    canonical_actual = canonicalize(actual)
    canonical_expected = canonicalize(expected)
    if canonical_actual.encode("utf-8") == canonical_expected.encode("utf-8"):
        return ComparisonResult(passed=True, expected=canonical_expected, actual=canonical_actual)
    return ComparisonResult(
        passed=False,
        expected=canonical_expected,
        actual=canonical_actual,
        diff=render_diff(canonical_expected, canonical_actual),
    )


def render_diff(expected: str, actual: str) -> str:
    """Unified diff from expected to actual, with ``-`` for expected lines."""

    lines = difflib.unified_diff(
        expected.split("\n"),
        actual.split("\n"),
        fromfile="expected",
        tofile="actual",
        lineterm="",
    )
    return "\n".join(lines)


def _decode_pair(actual: str, expected: str) -> Optional[Tuple[Any, Any]]:
    try:
        return json.loads(actual), json.loads(expected)
    except ValueError:
        return None


def _compare_json(actual: Any, expected: Any) -> ComparisonResult:
    pretty_actual = _pretty(actual)
    pretty_expected = _pretty(expected)
    if actual == expected:
        return ComparisonResult(passed=True, expected=pretty_expected, actual=pretty_actual)
    return ComparisonResult(
        passed=False,
        expected=pretty_expected,
        actual=pretty_actual,
        diff=render_diff(pretty_expected, pretty_actual),
    )


def _pretty(value: Any) -> str:
    return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False)
