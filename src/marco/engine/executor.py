"""Execution engine: runs one test case in a fresh subprocess."""
from __future__ import annotations

import logging
import os
import re
import shlex
import subprocess
import sys
import tempfile
import threading
import time
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Set

from marco.config import RunConfig
from marco.core.comparator import compare_output
from marco.core.models import TestCase
from marco.core.results import ERRORED, FAILED, PASSED, Result

from .process import ProcessHandle

log = logging.getLogger(__name__)

PLACEHOLDERS = ("input_file", "input", "file", "dir", "name")
_PLACEHOLDER = re.compile(r"\{(" + "|".join(PLACEHOLDERS) + r")\}")
_STDERR_TAIL = 2000


class Executor:
    """Spawns, captures, times out, and judges a single test case."""

    def __init__(self, config: Optional[RunConfig] = None) -> None:
        self.config = config or RunConfig()
        self._live: Set[ProcessHandle] = set()
        self._lock = threading.Lock()
        self._closed = False

    def execute(self, case: TestCase, timeout: Optional[float] = None) -> Result:
        """Run ``case`` and return its result; never raises for test-level problems."""

        effective_timeout = timeout or case.timeout or self.config.timeout
        start = time.perf_counter()
        input_file: Optional[Path] = None
        try:
            if "{input_file}" in case.runner:
                input_file = _write_input_file(case.input)
            argv = build_command(case, input_file=input_file)
            return self._run(case, argv, effective_timeout, start)
        except (OSError, ValueError) as exc:
            return _errored(case, start, f"Runner spawn error: {exc} (runner: {case.runner!r})")
        finally:
            if input_file is not None:
                try:
                    input_file.unlink()
                except OSError:
                    log.debug("could not remove %s", input_file)

    def shutdown(self) -> None:
        """Kill every running child; later executions are refused."""

        with self._lock:
            self._closed = True
            handles = list(self._live)
        for handle in handles:
            log.debug("killing pid=%s on shutdown", handle.process.pid if handle.process else None)
            handle.kill()

    def _run(self, case: TestCase, argv: Sequence[str], timeout: float, start: float) -> Result:
        handle = ProcessHandle(
            argv,
            cwd=case.source_file.parent,
            stdin_data=case.input.encode("utf-8"),
            max_output_bytes=self.config.max_output_bytes,
        )
        timed_out = False
        exit_code: Optional[int] = None
        with handle:
            if not self._register(handle):
                return _errored(case, start, "Run interrupted before the test started")
            try:
                try:
                    exit_code = handle.wait(timeout)
                except subprocess.TimeoutExpired:
                    timed_out = True
                    handle.kill()
            finally:
                self._unregister(handle)
        duration = time.perf_counter() - start
        stdout = _decode(handle.stdout)
        stderr = _decode(handle.stderr)
        if self._closed:
            return Result(
                test_case=case,
                status=ERRORED,
                actual_output=stdout,
                duration=duration,
                diagnostic="Run interrupted; the process was killed",
                stderr=stderr,
            )
        if timed_out:
            return Result(
                test_case=case,
                status=ERRORED,
                actual_output=stdout,
                duration=duration,
                diagnostic=f"Timeout: process did not finish within {timeout:g}s and was killed",
                stderr=stderr,
            )
        if handle.truncated:
            return Result(
                test_case=case,
                status=ERRORED,
                actual_output=stdout,
                duration=duration,
                diagnostic=(
                    f"Output exceeded {self.config.max_output_bytes} bytes; "
                    "capture was truncated and the process killed"
                ),
                stderr=stderr,
            )
        return judge(case, stdout, stderr, exit_code, duration)

    def _register(self, handle: ProcessHandle) -> bool:
        with self._lock:
            if self._closed:
                return False
            self._live.add(handle)
            return True

    def _unregister(self, handle: ProcessHandle) -> None:
        with self._lock:
            self._live.discard(handle)


def judge(case: TestCase, stdout: str, stderr: str, exit_code: Optional[int], duration: float) -> Result:
    """Turn captured output into a passed/failed result."""

    if case.expected_output is None:
        if exit_code == 0:
            return Result(case, PASSED, stdout, duration, None, stderr, exit_code)
        diagnostic = f"Process exited with status {exit_code}"
        if stderr.strip():
            diagnostic += f"\n[stderr]\n{_tail(stderr)}"
        return Result(case, FAILED, stdout, duration, diagnostic, stderr, exit_code)
    comparison = compare_output(stdout, case.expected_output, case.compare)
    if comparison.passed:
        return Result(case, PASSED, stdout, duration, None, stderr, exit_code)
    lines = ["Output did not match expected", comparison.diff or ""]
    if stderr.strip():
        lines.append(f"[stderr]\n{_tail(stderr)}")
    return Result(case, FAILED, stdout, duration, "\n".join(lines), stderr, exit_code)


def build_command(case: TestCase, *, input_file: Optional[Path] = None) -> List[str]:
    """Split the runner template into argv and substitute placeholders."""

    tokens = _tokens(case, input_file)
    if sys.platform.startswith("win"):
        script = render_template(case.runner, tokens)
        return ["powershell", "-NoProfile", "-Command", script]
    try:
        parts = shlex.split(case.runner)
    except ValueError as exc:
        raise ValueError(f"Malformed runner command: {exc}") from exc
    if not parts:
        raise ValueError("Runner command is empty")
    return [render_template(part, tokens) for part in parts]


def render_template(value: str, tokens: Mapping[str, str]) -> str:
    return _PLACEHOLDER.sub(lambda match: tokens.get(match.group(1), match.group(0)), value)


def _tokens(case: TestCase, input_file: Optional[Path]) -> Dict[str, str]:
    source = case.source_file.resolve()
    tokens = {
        "input": case.input,
        "file": str(source),
        "dir": str(source.parent),
        "name": case.name,
    }
    if input_file is not None:
        tokens["input_file"] = str(input_file)
    return tokens


def _write_input_file(text: str) -> Path:
    fd, name = tempfile.mkstemp(prefix="marco-", suffix=".in")
    with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
        handle.write(text)
    return Path(name)


def _errored(case: TestCase, start: float, diagnostic: str) -> Result:
    log.debug("%s errored: %s", case.identifier(), diagnostic)
    return Result(
        test_case=case,
        status=ERRORED,
        duration=time.perf_counter() - start,
        diagnostic=diagnostic,
    )


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _tail(text: str) -> str:
    text = text.strip()
    if len(text) <= _STDERR_TAIL:
        return text
    return "..." + text[-_STDERR_TAIL:]
