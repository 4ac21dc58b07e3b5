"""Owned subprocess handle: spawn, bounded capture, kill, and reap."""
from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
import threading
from pathlib import Path
from typing import IO, List, Mapping, Optional, Sequence

log = logging.getLogger(__name__)

_CHUNK = 64 * 1024
_JOIN_TIMEOUT = 5.0
_GRACE = 0.5
_IS_WINDOWS = sys.platform.startswith("win")


class _BoundedReader(threading.Thread):
    """Drains one pipe, keeping at most ``limit`` bytes."""

    def __init__(self, stream: IO[bytes], limit: int, on_overflow, name: str) -> None:
        super().__init__(name=name, daemon=True)
        self._stream = stream
        self._limit = limit
        self._on_overflow = on_overflow
        self._chunks: List[bytes] = []
        self._size = 0
        self.truncated = False

    def run(self) -> None:
        try:
            while True:
                chunk = self._stream.read1(_CHUNK)
                if not chunk:
                    break
                if self.truncated:
                    continue
                room = self._limit - self._size
                if len(chunk) > room:
                    self._chunks.append(chunk[:room])
                    self._size = self._limit
                    self.truncated = True
                    self._on_overflow()
                    continue
                self._chunks.append(chunk)
                self._size += len(chunk)
        except (OSError, ValueError) as exc:
            # pipe closed underneath us during teardown
            log.debug("reader %s stopped: %s", self.name, exc)

    def data(self) -> bytes:
        return b"".join(self._chunks)


class ProcessHandle:
    """Context manager owning one child process and its process group.

    On every exit path the group is killed if anything in it is still alive,
    the reader threads are joined, the pipes closed, and the child reaped.
    """

    def __init__(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        stdin_data: bytes = b"",
        max_output_bytes: int,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.argv = list(argv)
        self.cwd = cwd
        self.stdin_data = stdin_data
        self.max_output_bytes = max_output_bytes
        self.env = dict(env) if env is not None else None
        self.process: Optional[subprocess.Popen] = None
        self._readers: List[_BoundedReader] = []
        self._writer: Optional[threading.Thread] = None

    def __enter__(self) -> "ProcessHandle":
        self.process = subprocess.Popen(
            self.argv,
            cwd=str(self.cwd) if self.cwd else None,
            env=self.env,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            **_group_kwargs(),
        )
        log.debug("spawned pid=%s argv=%s cwd=%s", self.process.pid, self.argv, self.cwd)
        assert self.process.stdout is not None and self.process.stderr is not None
        self._readers = [
            _BoundedReader(self.process.stdout, self.max_output_bytes, self.kill, f"stdout-{self.process.pid}"),
            _BoundedReader(self.process.stderr, self.max_output_bytes, self.kill, f"stderr-{self.process.pid}"),
        ]
        for reader in self._readers:
            reader.start()
        self._writer = threading.Thread(target=self._feed_stdin, name=f"stdin-{self.process.pid}", daemon=True)
        self._writer.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def wait(self, timeout: Optional[float]) -> int:
        """Wait for exit; raises :class:`subprocess.TimeoutExpired` after ``timeout``."""

        assert self.process is not None
        return self.process.wait(timeout=timeout)

    def kill(self) -> None:
        """Kill the whole process group. Safe to call repeatedly and from any thread."""

        process = self.process
        if process is None:
            return
        if _IS_WINDOWS:
            _kill_tree_windows(process)
            return
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            pass

    @property
    def truncated(self) -> bool:
        return any(reader.truncated for reader in self._readers)

    @property
    def stdout(self) -> bytes:
        return self._readers[0].data() if self._readers else b""

    @property
    def stderr(self) -> bytes:
        return self._readers[1].data() if len(self._readers) > 1 else b""

    def close(self) -> None:
        process = self.process
        if process is None:
            return
        if _IS_WINDOWS:
            if process.poll() is None:
                self.kill()
        else:
            # the group outlives a leader that backgrounded children
            self.kill()
        for reader in self._readers:
            reader.join(_GRACE)
        if any(reader.is_alive() for reader in self._readers):
            # descendants outlived the leader and still hold the pipes
            self.kill()
        for thread in [*self._readers, self._writer]:
            if thread is not None:
                thread.join(_JOIN_TIMEOUT)
        for stream in (process.stdin, process.stdout, process.stderr):
            if stream is not None:
                try:
                    stream.close()
                except OSError:
                    pass
        process.wait()
        log.debug("reaped pid=%s returncode=%s", process.pid, process.returncode)

    def _feed_stdin(self) -> None:
        assert self.process is not None and self.process.stdin is not None
        stdin = self.process.stdin
        try:
            if self.stdin_data:
                stdin.write(self.stdin_data)
            stdin.close()
        except (BrokenPipeError, OSError, ValueError) as exc:
            # the child exited or closed stdin without reading all input
            log.debug("stdin for pid=%s closed early: %s", self.process.pid, exc)


def _group_kwargs() -> dict:
    if _IS_WINDOWS:
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}  # type: ignore[attr-defined]
    return {"start_new_session": True}


def _kill_tree_windows(process: subprocess.Popen) -> None:
    subprocess.run(
        ["taskkill", "/F", "/T", "/PID", str(process.pid)],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        check=False,
    )
    if process.poll() is None:
        process.kill()
