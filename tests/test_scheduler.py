from __future__ import annotations

import sys
import threading
import time
from pathlib import Path

import pytest

from marco.config import RunConfig
from marco.core import ERRORED, PASSED, Result
from marco.engine import Executor, Scheduler
from marco.reporting import render_report

pytestmark = pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX runner commands")


def _suite(make_case, tmp_path: Path, count: int = 50):
    cases = []
    for index in range(count):
        source = tmp_path / ("a.marco.md" if index % 2 else "b.marco.md")
        expected = f"value {index}" if index % 5 else "something else"
        cases.append(
            make_case(
                "cat",
                f"value {index}\n",
                expected,
                name=f"case {index}",
                order_index=index // 2,
                source_file=source,
            )
        )
    return cases


def test_every_case_gets_exactly_one_result(make_case, tmp_path: Path) -> None:
    cases = _suite(make_case, tmp_path, count=20)
    results = Scheduler(RunConfig(max_concurrency=4)).run(cases)
    assert len(results) == len(cases)
    assert sorted(result.test_case.identifier() for result in results) == sorted(
        case.identifier() for case in cases
    )


def test_report_is_identical_across_thread_counts(make_case, tmp_path: Path) -> None:
    cases = _suite(make_case, tmp_path)
    parallel = Scheduler(RunConfig(max_concurrency=4)).run(cases)
    serial = Scheduler(RunConfig(max_concurrency=1)).run(cases)
    assert render_report(parallel, []) == render_report(serial, [])
    assert render_report(serial, [])[-1] == "Results: 40 passed / 50 total (10 failed, 0 errored, 0 file error(s))"


def test_callbacks_fire_once_per_case(make_case, tmp_path: Path) -> None:
    cases = _suite(make_case, tmp_path, count=8)
    started, finished = [], []
    lock = threading.Lock()

    def on_start(case) -> None:
        with lock:
            started.append(case.name)

    def on_result(result) -> None:
        with lock:
            finished.append(result.test_case.name)

    Scheduler(RunConfig(max_concurrency=3)).run(cases, on_start=on_start, on_result=on_result)
    names = sorted(case.name for case in cases)
    assert sorted(started) == names
    assert sorted(finished) == names


def test_tests_run_in_parallel(make_case) -> None:
    cases = [make_case("sleep 1", name=f"sleeper {index}", order_index=index) for index in range(4)]
    start = time.perf_counter()
    results = Scheduler(RunConfig(max_concurrency=4)).run(cases)
    duration = time.perf_counter() - start
    assert all(result.status == PASSED for result in results)
    assert duration < 3.5


class _FlakyExecutor:
    def execute(self, case):
        if case.name == "boom":
            raise RuntimeError("executor exploded")
        return Result(test_case=case, status=PASSED)

    def shutdown(self) -> None:
        pass


def test_internal_error_becomes_errored_result(make_case) -> None:
    cases = [make_case("cat", name="fine"), make_case("cat", name="boom", order_index=1)]
    results = Scheduler(RunConfig(max_concurrency=2), executor=_FlakyExecutor()).run(cases)
    by_name = {result.test_case.name: result for result in results}
    assert by_name["fine"].status == PASSED
    assert by_name["boom"].status == ERRORED
    assert "RuntimeError: executor exploded" in by_name["boom"].diagnostic


def test_empty_case_list() -> None:
    assert Scheduler(RunConfig(max_concurrency=4)).run([]) == []


def test_interrupt_kills_running_tests_and_propagates(make_case, tmp_path: Path, gone) -> None:
    slow = make_case("sh -c 'echo $$ > slow.pid; exec sleep 30'", name="slow")
    trigger = make_case("true", name="trigger", order_index=1)
    pid_file = tmp_path / "slow.pid"
    executor = Executor(RunConfig(max_concurrency=2, timeout=60))

    def on_start(case) -> None:
        if case.name != "trigger":
            return
        deadline = time.monotonic() + 5
        while not pid_file.exists() and time.monotonic() < deadline:
            time.sleep(0.05)
        raise KeyboardInterrupt

    start = time.perf_counter()
    with pytest.raises(KeyboardInterrupt):
        Scheduler(RunConfig(max_concurrency=2), executor=executor).run([slow, trigger], on_start=on_start)
    assert time.perf_counter() - start < 15
    assert executor._live == set()
    assert gone(int(pid_file.read_text().strip()))
