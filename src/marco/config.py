"""Run configuration resolved once at startup."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from marco.core.errors import ConfigError

THREADS_ENV = "MARCO_MAX_THREADS"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_OUTPUT = 1024 * 1024


@dataclass(frozen=True)
class RunConfig:
    input_pattern: str = "**/*.marco.md"
    default_runner: Optional[str] = None
    max_concurrency: int = 1
    timeout: float = DEFAULT_TIMEOUT
    max_output_bytes: int = DEFAULT_MAX_OUTPUT
    verbose: bool = False
    use_color: bool = True


def build_config(
    *,
    input_pattern: str = "**/*.marco.md",
    runner: Optional[str] = None,
    threads: Optional[int] = None,
    timeout: Optional[float] = None,
    max_output: Optional[int] = None,
    verbose: bool = False,
    use_color: bool = True,
    environ: Optional[Mapping[str, str]] = None,
) -> RunConfig:
    """Build the run configuration; raises :class:`ConfigError` on invalid values."""

    environ = os.environ if environ is None else environ
    if timeout is not None and timeout <= 0:
        raise ConfigError(f"timeout must be positive, got {timeout}")
    if max_output is not None and max_output < 1:
        raise ConfigError(f"max output must be at least 1 byte, got {max_output}")
    return RunConfig(
        input_pattern=input_pattern,
        default_runner=runner.strip() if runner and runner.strip() else None,
        max_concurrency=resolve_max_concurrency(threads, environ),
        timeout=float(timeout) if timeout is not None else DEFAULT_TIMEOUT,
        max_output_bytes=max_output if max_output is not None else DEFAULT_MAX_OUTPUT,
        verbose=verbose,
        use_color=use_color,
    )


def resolve_max_concurrency(threads: Optional[int], environ: Mapping[str, str]) -> int:
    """``--threads`` flag, then ``MARCO_MAX_THREADS``, then the CPU count."""

    if threads is not None:
        return _validate_threads(threads, "--threads")
    raw = environ.get(THREADS_ENV)
    if raw is not None and raw.strip():
        try:
            value = int(raw.strip())
        except ValueError as exc:
            raise ConfigError(f"{THREADS_ENV} must be an integer, got {raw!r}") from exc
        return _validate_threads(value, THREADS_ENV)
    return os.cpu_count() or 1


def _validate_threads(value: int, source: str) -> int:
    if value < 1:
        raise ConfigError(f"{source} must be at least 1, got {value}")
    return value
