"""Fake audio engine for deterministic testing and the headless demo."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Literal

from .audio_engine import CompletionCallback, EngineError

EngineStatus = Literal[
    "idle", "initialized", "prepared", "started", "paused", "completed", "released"
]


@dataclass
class _EngineState:
    status: EngineStatus = "idle"
    source: str | None = None
    position_ms: int = 0
    started_at: float | None = None
    duration_ms: int = 0


class FakeAudioEngine:
    """In-memory engine whose playhead advances with a monotonic clock.

    Completion is detected by a ticker thread owned by the engine, so the
    completion callback arrives on a thread the controller does not own, the
    same way a real decoder reports end-of-media. `fail_on` names commands
    that raise `EngineError` until removed.
    """

    def __init__(
        self,
        *,
        duration_ms: int = 180_000,
        tick_interval_ms: int = 10,
        fail_on: Iterable[str] = (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if duration_ms < 1:
            raise ValueError("duration_ms must be >= 1")
        self._default_duration_ms = duration_ms
        self._tick_interval = tick_interval_ms / 1000
        self._clock = clock
        self._state = _EngineState()
        self._lock = threading.Lock()
        self._on_completion: CompletionCallback | None = None
        self._stop_event = threading.Event()
        self._ticker: threading.Thread | None = None
        self.fail_on: set[str] = set(fail_on)
        self.calls: list[str] = []

    @property
    def status(self) -> EngineStatus:
        with self._lock:
            return self._state.status

    def set_source(self, path: str) -> None:
        with self._lock:
            self._command("set_source", {"idle"})
            self._state.source = path
            self._state.status = "initialized"

    def prepare(self) -> None:
        with self._lock:
            self._command("prepare", {"initialized"})
            self._state.duration_ms = self._default_duration_ms
            self._state.position_ms = 0
            self._state.status = "prepared"

    def start(self) -> None:
        with self._lock:
            self._command("start", {"prepared", "started", "paused", "completed"})
            if self._state.status == "started":
                return
            if self._state.position_ms >= self._state.duration_ms:
                self._state.position_ms = 0
            self._state.started_at = self._clock()
            self._state.status = "started"
        self._ensure_ticker()

    def pause(self) -> None:
        with self._lock:
            self._command("pause", {"started", "paused"})
            if self._state.status == "started":
                self._state.position_ms = self._position_locked()
                self._state.started_at = None
                self._state.status = "paused"

    def reset(self) -> None:
        with self._lock:
            self._command(
                "reset",
                {"idle", "initialized", "prepared", "started", "paused", "completed"},
            )
            self._state = _EngineState()

    def seek_to(self, position_ms: int) -> None:
        with self._lock:
            self._command("seek_to", {"prepared", "started", "paused", "completed"})
            target = _clamp(int(position_ms), 0, self._state.duration_ms)
            self._state.position_ms = target
            if self._state.status == "started":
                self._state.started_at = self._clock()

    def is_playing(self) -> bool:
        with self._lock:
            return self._state.status == "started"

    def get_current_position(self) -> int:
        with self._lock:
            return self._position_locked()

    def get_duration(self) -> int:
        with self._lock:
            if self._state.status in {"idle", "initialized", "released"}:
                return 0
            return self._state.duration_ms

    def set_on_completion(self, callback: CompletionCallback | None) -> None:
        with self._lock:
            self._on_completion = callback

    def release(self) -> None:
        with self._lock:
            if self._state.status == "released":
                return
            self.calls.append("release")
            self._state = _EngineState(status="released")
            self._on_completion = None
            ticker = self._ticker
            self._ticker = None
        self._stop_event.set()
        if ticker is not None and ticker is not threading.current_thread():
            ticker.join(timeout=1.0)

    def _command(self, name: str, allowed: set[str]) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise EngineError(f"{name}() failed")
        if self._state.status not in allowed:
            raise EngineError(f"{name}() called in state {self._state.status}")

    def _position_locked(self) -> int:
        state = self._state
        if state.status != "started" or state.started_at is None:
            return state.position_ms
        elapsed_ms = int((self._clock() - state.started_at) * 1000)
        return min(state.position_ms + elapsed_ms, state.duration_ms)

    def _ensure_ticker(self) -> None:
        with self._lock:
            if self._ticker is not None:
                return
            self._stop_event.clear()
            self._ticker = threading.Thread(
                target=self._ticker_loop, name="fake-engine-ticker", daemon=True
            )
            self._ticker.start()

    def _ticker_loop(self) -> None:
        while not self._stop_event.wait(self._tick_interval):
            self._tick()

    def _tick(self) -> None:
        with self._lock:
            state = self._state
            if state.status != "started":
                return
            if self._position_locked() < state.duration_ms:
                return
            state.position_ms = state.duration_ms
            state.started_at = None
            state.status = "completed"
            callback = self._on_completion
        if callback is not None:
            callback()


def _clamp(value: int, min_value: int, max_value: int) -> int:
    return max(min_value, min(value, max_value))
