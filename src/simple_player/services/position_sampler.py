"""Fixed-rate position sampler running on its own thread."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

SAMPLE_INTERVAL_MS = 100
THREAD_NAME = "simple-player-sampler"


class PositionSampler:
    """Polls a position reader every `interval_ms` and publishes what it reads.

    `read_position` returns the engine position while it plays and `None`
    otherwise; only non-`None` readings reach `publish`. Each run owns one
    thread and one stop flag. `stop()` joins that thread, so nothing from the
    run is published after it returns.
    """

    def __init__(
        self,
        read_position: Callable[[], int | None],
        publish: Callable[[int], None],
        *,
        interval_ms: int = SAMPLE_INTERVAL_MS,
        join_timeout_s: float = 1.0,
    ) -> None:
        if interval_ms < 1:
            raise ValueError("interval_ms must be >= 1")
        self._read_position = read_position
        self._publish = publish
        self._interval = interval_ms / 1000
        self._join_timeout_s = join_timeout_s
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._stop_event: threading.Event | None = None

    @property
    def interval_ms(self) -> int:
        return int(self._interval * 1000)

    @property
    def running(self) -> bool:
        with self._lock:
            return self._thread is not None

    def start(self) -> bool:
        """Start a run; returns False when one is already active."""
        with self._lock:
            if self._thread is not None:
                return False
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run, args=(stop_event,), name=THREAD_NAME, daemon=True
            )
            self._thread = thread
            self._stop_event = stop_event
        thread.start()
        logger.debug("Position sampler started (%s ms)", self.interval_ms)
        return True

    def stop(self) -> bool:
        """Stop the active run; returns False when nothing was running."""
        with self._lock:
            thread = self._thread
            stop_event = self._stop_event
            self._thread = None
            self._stop_event = None
        if thread is None or stop_event is None:
            return False
        stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=self._join_timeout_s)
            if thread.is_alive():
                logger.warning(
                    "Position sampler did not stop within %.1f seconds",
                    self._join_timeout_s,
                )
        logger.debug("Position sampler stopped")
        return True

    def _run(self, stop_event: threading.Event) -> None:
        next_tick = time.monotonic()
        failures = 0
        while not stop_event.is_set():
            if not self._tick(stop_event, failures):
                failures += 1
            next_tick += self._interval
            delay = next_tick - time.monotonic()
            if delay < 0:
                # Fell behind; skip missed ticks instead of bursting.
                next_tick = time.monotonic()
                delay = 0
            if stop_event.wait(delay):
                return

    def _tick(self, stop_event: threading.Event, failures: int) -> bool:
        """Sample once; returns False when the read raised."""
        try:
            position = self._read_position()
        except Exception as exc:
            if failures == 0:
                logger.warning("Position read failed: %s", exc, exc_info=True)
            else:
                logger.debug("Position read failed again (%s)", failures + 1)
            return False
        if position is not None and not stop_event.is_set():
            self._publish(position)
        return True
