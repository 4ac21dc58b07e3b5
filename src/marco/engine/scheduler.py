"""Bounded worker pool dispatching test cases to the execution engine."""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional, Sequence

from marco.config import RunConfig
from marco.core.models import TestCase
from marco.core.results import ERRORED, Result

from .executor import Executor

log = logging.getLogger(__name__)

StartCallback = Callable[[TestCase], None]
ResultCallback = Callable[[Result], None]


class Scheduler:
    """Runs every case exactly once on a pool of ``max_concurrency`` threads."""

    def __init__(self, config: RunConfig, executor: Optional[Executor] = None) -> None:
        self.config = config
        self.executor = executor or Executor(config)

    def run(
        self,
        cases: Sequence[TestCase],
        *,
        on_start: Optional[StartCallback] = None,
        on_result: Optional[ResultCallback] = None,
    ) -> List[Result]:
        """Block until every case has a result; results come back in completion order.

        ``on_start`` and ``on_result`` are invoked from worker threads.
        """

        results: List[Result] = []
        if not cases:
            return results
        workers = max(1, min(self.config.max_concurrency, len(cases)))
        log.debug("scheduling %d test(s) on %d worker(s)", len(cases), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="marco-worker") as pool:
            futures: Dict[Future, TestCase] = {
                pool.submit(self._run_case, case, on_start, on_result): case for case in cases
            }
            try:
                for future in as_completed(futures):
                    results.append(self._collect(future, futures[future]))
            except KeyboardInterrupt:
                log.debug("interrupted; cancelling pending tests and killing running ones")
                for future in futures:
                    future.cancel()
                self.executor.shutdown()
                raise
        return results

    def _run_case(
        self,
        case: TestCase,
        on_start: Optional[StartCallback],
        on_result: Optional[ResultCallback],
    ) -> Result:
        if on_start:
            on_start(case)
        result = self.executor.execute(case)
        if on_result:
            on_result(result)
        return result

    def _collect(self, future: Future, case: TestCase) -> Result:
        try:
            return future.result()
        except Exception as exc:
            log.debug("worker failed for %s", case.identifier(), exc_info=True)
            return Result(
                test_case=case,
                status=ERRORED,
                duration=0.0,
                diagnostic=f"Internal error while running test: {type(exc).__name__}: {exc}",
            )
