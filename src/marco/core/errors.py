"""Exception hierarchy shared by the loader, configuration, and CLI."""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class MarcoError(Exception):
    """Base class for errors raised by marco."""


class ParseError(MarcoError):
    """A test file is malformed; fatal to that file only."""

    def __init__(self, message: str, path: Optional[PathLike] = None, line: Optional[int] = None) -> None:
        self.message = message
        self.path = Path(path) if path is not None else None
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        if self.path is None:
            return self.message
        location = str(self.path)
        if self.line is not None:
            location = f"{location}:{self.line}"
        return f"{location}: {self.message}"


class ConfigError(MarcoError):
    """Configuration cannot be resolved (missing runner, bad thread count)."""

    def __init__(self, message: str, path: Optional[PathLike] = None) -> None:
        self.message = message
        self.path = Path(path) if path is not None else None
        super().__init__(f"{self.path}: {message}" if self.path is not None else message)
