from __future__ import annotations

import os
import textwrap
import time
from pathlib import Path
from typing import Callable, Optional

import pytest

from marco.core import TestCase


@pytest.fixture
def write_spec(tmp_path: Path) -> Callable[..., Path]:
    """Write a dedented ``.marco.md`` document under ``tmp_path``."""

    def _write(content: str, name: str = "sample.marco.md") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_case(tmp_path: Path) -> Callable[..., TestCase]:
    def _make(
        runner: str,
        input: str = "",
        expected_output: Optional[str] = None,
        *,
        name: str = "case",
        order_index: int = 0,
        timeout: Optional[float] = None,
        source_file: Optional[Path] = None,
    ) -> TestCase:
        return TestCase(
            source_file=source_file or tmp_path / "cases.marco.md",
            name=name,
            runner=runner,
            input=input,
            expected_output=expected_output,
            order_index=order_index,
            line=1,
            timeout=timeout,
        )

    return _make


def _running(pid: int) -> bool:
    stat = Path(f"/proc/{pid}/stat")
    if stat.parent.parent.is_dir():
        try:
            state = stat.read_text().rsplit(")", 1)[1].split()[0]
        except (FileNotFoundError, ProcessLookupError):
            return False
        return state != "Z"
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    return True


@pytest.fixture
def gone() -> Callable[[int], bool]:
    """Return a checker that waits briefly for ``pid`` to stop running."""

    def _gone(pid: int, within: float = 5.0) -> bool:
        deadline = time.monotonic() + within
        while time.monotonic() < deadline:
            if not _running(pid):
                return True
            time.sleep(0.05)
        return not _running(pid)

    return _gone
