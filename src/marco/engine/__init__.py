"""Execution engine and scheduler exports."""
from .executor import Executor, build_command, judge
from .process import ProcessHandle
from .scheduler import Scheduler

__all__ = [
    "Executor",
    "ProcessHandle",
    "Scheduler",
    "build_command",
    "judge",
]
