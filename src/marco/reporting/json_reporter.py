"""JSON reporter emitting structured execution results."""
from __future__ import annotations

import datetime as dt
import json
import pathlib
from typing import Any, Dict, Optional, Sequence

import click
from jsonschema import validate

from marco.core.models import TestCase
from marco.core.results import ERRORED, FAILED, PASSED, Result, count_by_status, sort_results
from marco.spec.discovery import LoadError

from .base import Reporter
from .schema import JSON_SCHEMA_V1, SCHEMA_VERSION


class JsonReporter(Reporter):
    """Writes results to a JSON file (or stdout) validated against the schema."""

    def __init__(self, path: Optional[str] = None, *, threads: int = 1) -> None:
        self._path = pathlib.Path(path) if path else None
        self._threads = threads

    def on_start(self, cases: Sequence[TestCase], file_count: int) -> None:
        pass

    def on_case_start(self, case: TestCase) -> None:
        pass

    def on_case_result(self, result: Result) -> None:
        pass

    def on_complete(self, results: Sequence[Result], load_errors: Sequence[LoadError], duration: float) -> None:
        payload = build_payload(results, load_errors, duration, threads=self._threads)
        validate(instance=payload, schema=JSON_SCHEMA_V1)
        text = json.dumps(payload, indent=2)
        if self._path is None:
            click.echo(text)
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(text, encoding="utf-8")
        except OSError as exc:  # pragma: no cover - filesystem protection
            raise RuntimeError(f"Failed to write JSON report to {self._path}: {exc}") from exc
        click.echo(f"JSON report written to {self._path}", err=True)


def build_payload(
    results: Sequence[Result],
    load_errors: Sequence[LoadError],
    duration: float,
    *,
    threads: int = 1,
) -> Dict[str, Any]:
    ordered = sort_results(results)
    counts = count_by_status(ordered)
    return {
        "schema_version": SCHEMA_VERSION,
        "generated_at": dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds"),
        "summary": {
            "total": len(ordered),
            "passed": counts[PASSED],
            "failed": counts[FAILED],
            "errored": counts[ERRORED],
            "file_errors": len(load_errors),
            "duration_s": duration,
            "threads": threads,
        },
        "load_errors": [
            {"file": str(error.path), "message": error.message}
            for error in sorted(load_errors, key=lambda item: str(item.path))
        ],
        "cases": [_case_to_dict(result) for result in ordered],
    }


def _case_to_dict(result: Result) -> Dict[str, Any]:
    case = result.test_case
    record: Dict[str, Any] = {
        "id": case.identifier(),
        "file": str(case.source_file),
        "name": case.name,
        "order_index": case.order_index,
        "line": case.line,
        "status": result.status,
        "duration_ms": result.duration * 1000,
        "runner": case.runner,
        "exit_code": result.exit_code,
    }
    if result.diagnostic:
        record["diagnostic"] = result.diagnostic
    if not result.passed:
        record["actual_output"] = result.actual_output
        record["expected_output"] = case.expected_output
    return record
