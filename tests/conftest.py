"""Test configuration."""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from simple_player.bus import EventBus  # noqa: E402
from simple_player.executors import SerialExecutor  # noqa: E402

UI_THREAD_NAME = "test-ui"


class Recorder:
    """Thread-safe event sink used as a bus handler."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[object] = []
        self.threads: list[str] = []

    def __call__(self, event: object) -> None:
        with self._lock:
            self._events.append(event)
            self.threads.append(threading.current_thread().name)

    @property
    def events(self) -> list[object]:
        with self._lock:
            return list(self._events)

    def of_type(self, *types: type) -> list[object]:
        return [event for event in self.events if isinstance(event, types)]

    def wait_for(
        self, predicate: Callable[[list[object]], bool], timeout: float = 5.0
    ) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate(self.events):
                return True
            time.sleep(0.005)
        return predicate(self.events)


@pytest.fixture
def ui_executor() -> Iterator[SerialExecutor]:
    """Stand-in UI thread so UI-mode deliveries are queued like in the app."""
    executor = SerialExecutor(UI_THREAD_NAME)
    yield executor
    executor.shutdown()


@pytest.fixture
def bus(ui_executor: SerialExecutor) -> Iterator[EventBus]:
    event_bus = EventBus(ui_executor=ui_executor)
    yield event_bus
    event_bus.close()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
