"""Terminal reporter rendering progress and summaries."""
from __future__ import annotations

import threading
from typing import List, Sequence

import click

from marco.core.models import TestCase
from marco.core.results import ERRORED, FAILED, PASSED, Result, count_by_status, sort_results
from marco.spec.discovery import LoadError

from .base import Reporter

STATUS_COLORS = {
    PASSED: "green",
    FAILED: "red",
    ERRORED: "yellow",
}

STATUS_LABELS = {
    PASSED: "PASS",
    FAILED: "FAIL",
    ERRORED: "ERROR",
}


class TerminalReporter(Reporter):
    """Human-readable reporter that streams to stdout."""

    def __init__(self, *, verbose: bool = False, use_color: bool = True, threads: int = 1) -> None:
        self._verbose = verbose
        self._use_color = use_color
        self._threads = threads
        self._lock = threading.Lock()

    def on_start(self, cases: Sequence[TestCase], file_count: int) -> None:
        self._echo(
            self._styled(
                f"Found {len(cases)} test(s) in {file_count} file(s); running on {self._threads} thread(s)",
                force_color="cyan",
            )
        )

    def on_case_start(self, case: TestCase) -> None:
        if self._verbose:
            self._echo(f"{self._styled('START', force_color='cyan')} {case.name} ({case.source_file})")

    def on_case_result(self, result: Result) -> None:
        if not self._verbose:
            return
        case = result.test_case
        label = self._styled(STATUS_LABELS[result.status], force_color=STATUS_COLORS[result.status])
        self._echo(f"{label} {case.name} ({case.source_file}) in {result.duration * 1000:.0f} ms")

    def on_complete(self, results: Sequence[Result], load_errors: Sequence[LoadError], duration: float) -> None:
        for line in render_report(results, load_errors):
            self._echo(self._colorize(line))
        all_ok = not load_errors and all(result.passed for result in results)
        self._echo(
            self._styled(f"Finished in {duration:.2f}s", force_color="green" if all_ok else "red")
        )

    def _echo(self, line: str) -> None:
        # one lock per line keeps interleaved worker output readable
        with self._lock:
            click.echo(line)

    def _styled(self, text: str, *, force_color: str | None = None) -> str:
        if not self._use_color:
            return text
        color = force_color or STATUS_COLORS.get(text.lower(), None)
        if color:
            return click.style(text, fg=color)
        return text

    def _colorize(self, line: str) -> str:
        for status, label in STATUS_LABELS.items():
            prefix = f"  {label} "
            if line.startswith(prefix):
                return "  " + self._styled(label, force_color=STATUS_COLORS[status]) + line[len(prefix) - 1 :]
        return line


def render_report(results: Sequence[Result], load_errors: Sequence[LoadError]) -> List[str]:
    """Deterministic end-of-run report, independent of completion order."""

    lines: List[str] = []
    ordered = sort_results(results)
    problems = [result for result in ordered if not result.passed]
    if problems:
        lines.append("Failures:")
        for result in problems:
            case = result.test_case
            lines.append(f"  {STATUS_LABELS[result.status]} {case.name} (in {case.source_file}:{case.line})")
            for detail in (result.diagnostic or "").splitlines():
                lines.append(f"      {detail}")
    if load_errors:
        lines.append("Load errors:")
        for error in sorted(load_errors, key=lambda item: str(item.path)):
            lines.append(f"  {error.message}")
    counts = count_by_status(ordered)
    lines.append(
        f"Results: {counts[PASSED]} passed / {len(ordered)} total "
        f"({counts[FAILED]} failed, {counts[ERRORED]} errored, {len(load_errors)} file error(s))"
    )
    return lines
