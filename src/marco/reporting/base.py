"""Reporter interface definitions."""
from __future__ import annotations

from typing import List, Sequence

from marco.core.models import TestCase
from marco.core.results import Result
from marco.spec.discovery import LoadError


class Reporter:
    """Interface for output renderers.

    ``on_case_start`` and ``on_case_result`` are called from worker threads.
    """

    def on_start(self, cases: Sequence[TestCase], file_count: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def on_case_start(self, case: TestCase) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def on_case_result(self, result: Result) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def on_complete(
        self, results: Sequence[Result], load_errors: Sequence[LoadError], duration: float
    ) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class ReportManager:
    """Dispatches lifecycle callbacks to multiple reporters."""

    def __init__(self, reporters: Sequence[Reporter]) -> None:
        self._reporters = list(reporters)

    def start(self, cases: Sequence[TestCase], file_count: int) -> None:
        for reporter in self._reporters:
            reporter.on_start(cases, file_count)

    def case_started(self, case: TestCase) -> None:
        for reporter in self._reporters:
            reporter.on_case_start(case)

    def handle_result(self, result: Result) -> None:
        for reporter in self._reporters:
            reporter.on_case_result(result)

    def complete(self, results: Sequence[Result], load_errors: Sequence[LoadError], duration: float) -> None:
        for reporter in self._reporters:
            reporter.on_complete(results, load_errors, duration)

    def reporters(self) -> List[Reporter]:
        return list(self._reporters)
