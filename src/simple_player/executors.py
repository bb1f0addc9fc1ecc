"""Single-threaded executors used by the event bus.

`SerialExecutor` is a dedicated worker thread draining a FIFO command queue,
so everything submitted to it runs one at a time in submission order.
`LoopExecutor` forwards callables onto an asyncio loop (the Textual UI loop)
with `call_soon_threadsafe`.
"""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Protocol, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Executor(Protocol):
    """Minimal executor contract consumed by `EventBus`."""

    def submit(self, func: Callable[..., T], /, *args: Any) -> Future[T]: ...

    def is_current(self) -> bool: ...


@dataclass
class _Task:
    call: Callable[[], Any]
    future: Future[Any]


class SerialExecutor:
    """Named worker thread that runs submitted callables one at a time."""

    def __init__(self, name: str, *, join_timeout_s: float = 2.0) -> None:
        self._name = name
        self._join_timeout_s = join_timeout_s
        self._queue: queue.Queue[_Task | None] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, func: Callable[..., T], /, *args: Any) -> Future[T]:
        future: Future[T] = Future()
        with self._lock:
            if self._closed:
                raise RuntimeError(f"{self._name} executor is closed.")
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._thread_main, name=self._name, daemon=True
                )
                self._thread.start()
            self._queue.put(_Task(partial(func, *args), future))
        return future

    def is_current(self) -> bool:
        thread = self._thread
        return thread is not None and thread.ident == threading.get_ident()

    def shutdown(self, *, wait: bool = True) -> None:
        """Stop after draining already-queued work; idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._thread
            self._queue.put(None)
        if not wait or thread is None or self.is_current():
            return
        thread.join(timeout=self._join_timeout_s)
        if thread.is_alive():
            raise RuntimeError(
                f"{self._name} thread did not stop within "
                f"{self._join_timeout_s} seconds."
            )

    def _thread_main(self) -> None:
        while True:
            task = self._queue.get()
            if task is None:
                return
            if not task.future.set_running_or_notify_cancel():
                continue
            try:
                result = task.call()
            except Exception as exc:
                task.future.set_exception(exc)
            else:
                task.future.set_result(result)


class LoopExecutor:
    """Executor adapter for an asyncio loop owned by another thread.

    Must be constructed on the loop's own thread so `is_current()` can tell
    UI-thread callers apart.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._thread_id = threading.get_ident()

    def submit(self, func: Callable[..., T], /, *args: Any) -> Future[T]:
        future: Future[T] = Future()

        def _call() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(func(*args))
            except Exception as exc:
                future.set_exception(exc)

        self._loop.call_soon_threadsafe(_call)
        return future

    def is_current(self) -> bool:
        return threading.get_ident() == self._thread_id
