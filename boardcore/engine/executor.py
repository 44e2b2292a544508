"""Single-threaded execution contexts.

A SerialExecutor owns one daemon thread draining a FIFO queue, so every
task submitted to it runs in order and never concurrently with another
task on the same executor.  The interactive surface owns one (all
presentation and selection state is touched only there) and the game
mutator owns another.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)

R = TypeVar("R")

_STOP = object()


class ExecutorClosed(RuntimeError):
    pass


class SerialExecutor:
    """Runs queued callables sequentially on a background thread."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._queue: queue.Queue[Any] = queue.Queue()
        self._closed = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def start(self) -> SerialExecutor:
        """Start the worker thread (idempotent)."""
        with self._lock:
            if self._closed.is_set():
                raise ExecutorClosed(f"executor {self.name!r} is shut down")
            if self._thread is not None and self._thread.is_alive():
                return self
            self._thread = threading.Thread(
                target=self._run, daemon=True, name=f"boardcore-{self.name}"
            )
            self._thread.start()
        return self

    def _run(self) -> None:
        while True:
            task = self._queue.get()
            try:
                if task is _STOP:
                    return
                task()
            except Exception:
                log.exception("[%s] task failed", self.name)
            finally:
                self._queue.task_done()

    def is_current(self) -> bool:
        return self._thread is not None and threading.current_thread() is self._thread

    def submit(self, fn: Callable[[], R]) -> Future[R]:
        """Queue fn; the returned future carries its result or exception."""
        fut: Future[R] = Future()

        def task() -> None:
            if not fut.set_running_or_notify_cancel():
                return
            try:
                fut.set_result(fn())
            except BaseException as e:
                fut.set_exception(e)
                raise

        with self._lock:
            if self._closed.is_set():
                raise ExecutorClosed(f"executor {self.name!r} is shut down")
            self._queue.put(task)
        return fut

    def call(self, fn: Callable[[], R], timeout: float | None = None) -> R:
        """Run fn on this executor's thread and return its result."""
        if self.is_current():
            return fn()
        return self.submit(fn).result(timeout=timeout)

    def drain(self, timeout: float | None = None) -> bool:
        """Wait until everything queued so far has run."""
        if self.is_current():
            return True
        try:
            self.submit(lambda: None).result(timeout=timeout)
        except ExecutorClosed:
            return True
        except FutureTimeout:
            return False
        return True

    def shutdown(self, wait: bool = True, timeout: float | None = 5.0) -> None:
        with self._lock:
            if self._closed.is_set():
                return
            self._closed.set()
            self._queue.put(_STOP)
            thread = self._thread
        if wait and thread is not None and not self.is_current():
            thread.join(timeout)
            if thread.is_alive():
                log.warning("[%s] worker did not stop within %ss", self.name, timeout)
