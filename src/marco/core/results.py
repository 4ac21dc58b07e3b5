"""Result data structures produced by the execution engine."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .models import TestCase

PASSED = "passed"
FAILED = "failed"
ERRORED = "errored"

STATUSES = (PASSED, FAILED, ERRORED)


@dataclass(frozen=True)
class Result:
    """Outcome of executing a single test case."""

    test_case: TestCase
    status: str
    actual_output: str = ""
    duration: float = 0.0
    diagnostic: Optional[str] = None
    stderr: str = ""
    exit_code: Optional[int] = None

    @property
    def passed(self) -> bool:
        return self.status == PASSED


def sort_results(results: Iterable[Result]) -> List[Result]:
    """Order results by ``(source_file, order_index)`` regardless of completion order."""

    return sorted(results, key=lambda result: result.test_case.sort_key())


def count_by_status(results: Iterable[Result]) -> dict[str, int]:
    counts = {status: 0 for status in STATUSES}
    for result in results:
        counts[result.status] = counts.get(result.status, 0) + 1
    return counts
