"""Top-level run: discover, load, schedule, report."""
from __future__ import annotations

import logging
import time
from typing import Optional

import click
from colorama import just_fix_windows_console

from marco.config import RunConfig
from marco.engine.scheduler import Scheduler
from marco.reporting import JsonReporter, ReportManager, TerminalReporter
from marco.spec.discovery import discover, load_tests

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG = 2
EXIT_NO_TESTS = 3

log = logging.getLogger(__name__)


def run(
    config: RunConfig,
    *,
    report_format: str = "terminal",
    report_path: Optional[str] = None,
) -> int:
    """Execute every discovered test; returns the process exit code."""

    just_fix_windows_console()
    files = discover(config.input_pattern)
    if not files:
        _notice(f"No test files found for `{config.input_pattern}`", report_format)
        return EXIT_NO_TESTS
    loaded = load_tests(files, default_runner=config.default_runner)
    cases = loaded.cases
    if not cases and not loaded.errors:
        _notice(f"No tests found in {len(files)} file(s) for `{config.input_pattern}`", report_format)
        return EXIT_NO_TESTS

    if report_format == "json":
        manager = ReportManager([JsonReporter(report_path, threads=config.max_concurrency)])
    else:
        manager = ReportManager(
            [
                TerminalReporter(
                    verbose=config.verbose,
                    use_color=config.use_color,
                    threads=config.max_concurrency,
                )
            ]
        )

    start = time.perf_counter()
    manager.start(cases, len(files))
    results = Scheduler(config).run(cases, on_start=manager.case_started, on_result=manager.handle_result)
    duration = time.perf_counter() - start
    manager.complete(results, loaded.errors, duration)
    failures = sum(1 for result in results if not result.passed)
    log.debug("run finished: %d result(s), %d failure(s), %d file error(s)", len(results), failures, len(loaded.errors))
    return EXIT_OK if failures == 0 and not loaded.errors else EXIT_FAILURES


def _notice(message: str, report_format: str) -> None:
    click.echo(message, err=report_format == "json")
