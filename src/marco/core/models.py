"""Core dataclasses shared across marco subsystems."""
from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class RunnerSpec:
    """Runner command, either a single string or a per-platform mapping."""

    command: Optional[str] = None
    unix: Optional[str] = None
    windows: Optional[str] = None
    default: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "RunnerSpec":
        if isinstance(raw, str):
            return cls(command=raw)
        if isinstance(raw, Mapping):
            return cls(
                unix=_optional_str(raw.get("unix")),
                windows=_optional_str(raw.get("windows")),
                default=_optional_str(raw.get("default")),
            )
        raise TypeError(f"runner must be a string or mapping, got {type(raw).__name__}")

    def for_platform(self, platform: Optional[str] = None) -> Optional[str]:
        """Return the command for ``platform`` (defaults to the running one)."""

        if self.command is not None:
            return _non_empty(self.command)
        platform = platform or sys.platform
        specific = self.windows if platform.startswith("win") else self.unix
        return _non_empty(specific) or _non_empty(self.default)


@dataclass(frozen=True)
class Header:
    """File-level metadata block applying defaults to every test in the file."""

    name: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    description: Optional[str] = None
    runner: Optional[RunnerSpec] = None
    timeout: Optional[float] = None
    compare: Optional[str] = None
    passing: Optional[bool] = None  # informational only
    line: int = 0


@dataclass(frozen=True)
class TestCase:
    """One executable check recovered from a test file."""

    __test__ = False  # not a pytest class

    source_file: Path
    name: str
    runner: str
    input: str
    expected_output: Optional[str]
    order_index: int
    line: int = 0
    timeout: Optional[float] = None
    compare: str = "text"

    def identifier(self) -> str:
        return f"{self.source_file}::{self.name}"

    def sort_key(self) -> tuple[str, int]:
        return (str(self.source_file), self.order_index)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _non_empty(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    return text or None
