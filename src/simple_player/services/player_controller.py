"""Playback controller mediating between bus intents and the audio engine.

`PlayerController` is the playback authority. Every intent runs on the bus
background worker, so controller state and the activity log are only mutated
there. The controller drives the engine through the transitions allowed by
`player_state`, owns the position sampler while playing, and publishes
telemetry for UI subscribers.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any

from simple_player.bus import EventBus, ThreadMode
from simple_player.events import (
    INTENT_EVENTS,
    DurationChanged,
    LogUpdated,
    NoticePosted,
    PausePlayback,
    PlaybackCompleted,
    PositionChanged,
    ResetPlayback,
    SeekTo,
    StartPlayback,
    StartPositionUpdates,
    StateChanged,
    StopPositionUpdates,
)
from simple_player.services.audio_engine import AudioEngine, EngineError, MediaSource
from simple_player.services.fake_engine import FakeAudioEngine
from simple_player.services.playback_log import PlaybackLog
from simple_player.services.player_state import (
    PLAYABLE_STATES,
    RESET_STATES,
    SEEKABLE_STATES,
    PlayerState,
    can_transition,
)
from simple_player.services.position_sampler import (
    SAMPLE_INTERVAL_MS,
    PositionSampler,
)

logger = logging.getLogger(__name__)

PAUSE_REJECTED_NOTICE = "Can't pause if not playing"

EngineFactory = Callable[[], AudioEngine]


class PlayerController:
    """Owns the engine handle and the playback state machine."""

    def __init__(
        self,
        source: MediaSource,
        bus: EventBus,
        *,
        engine_factory: EngineFactory = FakeAudioEngine,
        sample_interval_ms: int = SAMPLE_INTERVAL_MS,
    ) -> None:
        self._source = source
        self._bus = bus
        self._engine_factory = engine_factory
        self._sample_interval_ms = sample_interval_ms
        self._state = PlayerState.IDLE
        self._engine: AudioEngine | None = None
        # Held for exactly one engine call; the sampler reads concurrently.
        self._engine_lock = threading.Lock()
        self._sampler: PositionSampler | None = None
        self._duration_ms = 0
        self._log = PlaybackLog()
        self._seek_after_completion_ms: int | None = None
        # Bumped whenever a playback run begins or ends; completions carry it.
        self._run_id = 0
        self._telemetry_open = True

    @property
    def state(self) -> PlayerState:
        return self._state

    @property
    def source(self) -> MediaSource:
        return self._source

    @property
    def duration_ms(self) -> int:
        return self._duration_ms

    @property
    def log_messages(self) -> tuple[str, ...]:
        return self._log.messages

    @property
    def sampler_running(self) -> bool:
        return self._sampler is not None and self._sampler.running

    def create(self) -> Future[None]:
        """Subscribe to intents, allocate the engine and load the source."""
        if self._state is PlayerState.RELEASED:
            return self._on_worker(self._create)
        self._bus.subscribe(
            self._on_intent,
            event_types=INTENT_EVENTS,
            thread_mode=ThreadMode.BACKGROUND,
        )
        return self._on_worker(self._create)

    def play(self) -> Future[None]:
        return self._on_worker(self._play)

    def pause(self) -> Future[None]:
        return self._on_worker(self._pause)

    def reset(self) -> Future[None]:
        return self._on_worker(self._reset)

    def seek_to(self, position_ms: int) -> Future[None]:
        return self._on_worker(self._seek_to, position_ms)

    def start_position_updates(self) -> Future[None]:
        return self._on_worker(self._start_position_updates)

    def stop_position_updates(self) -> Future[None]:
        return self._on_worker(self._stop_position_updates)

    def release(self, timeout: float | None = None) -> None:
        """Release synchronously; idempotent and callable from any thread.

        Waits for intents already queued on the worker, so `timeout` is None
        unless the caller accepts a release that finishes after it returns.
        """
        if self._bus.is_background_thread():
            self._release()
            return
        try:
            future = self._bus.run_in_background(self._release)
        except RuntimeError:
            logger.debug("Bus worker closed; releasing on caller thread")
            self._release()
            return
        future.result(timeout)

    def _on_worker(self, func: Callable[..., None], *args: Any) -> Future[None]:
        if not self._bus.is_background_thread():
            return self._bus.run_in_background(func, *args)
        future: Future[None] = Future()
        try:
            func(*args)
        except Exception as exc:
            future.set_exception(exc)
        else:
            future.set_result(None)
        return future

    def _on_intent(self, event: object) -> None:
        if self._state is PlayerState.RELEASED:
            return
        if isinstance(event, StartPlayback):
            self._play()
        elif isinstance(event, PausePlayback):
            self._pause()
        elif isinstance(event, ResetPlayback):
            self._reset()
        elif isinstance(event, SeekTo):
            self._seek_to(event.position_ms)
        elif isinstance(event, StartPositionUpdates):
            self._start_position_updates()
        elif isinstance(event, StopPositionUpdates):
            self._stop_position_updates()

    def _create(self) -> None:
        if self._state is PlayerState.RELEASED:
            self._bus.unsubscribe(self._on_intent)
        if self._state is not PlayerState.IDLE:
            self._reject("create()")
            return
        try:
            engine = self._engine_factory()
            engine.set_on_completion(self._on_engine_completion)
        except EngineError as exc:
            self._log_engine_failure("create", exc)
            return
        with self._engine_lock:
            self._engine = engine
        self._log_to_ui("audio engine created")
        self._transition(PlayerState.INITIALIZED)
        if self._load():
            self._init_seekbar()
            self._transition(PlayerState.PREPARED)

    def _load(self) -> bool:
        path = str(self._source.path)
        self._log_to_ui("load() {1. setDataSource}")
        try:
            self._engine_call("set_source", path)
        except EngineError as exc:
            self._log_engine_failure("setDataSource", exc)
            return False
        self._log_to_ui("load() {2. prepare}")
        try:
            self._engine_call("prepare")
        except EngineError as exc:
            self._log_engine_failure("prepare", exc)
            return False
        return True

    def _init_seekbar(self) -> None:
        try:
            duration = int(self._engine_call("get_duration"))
        except EngineError as exc:
            self._log_engine_failure("getDuration", exc)
            duration = 0
        self._duration_ms = max(0, duration)
        self._publish(DurationChanged(self._duration_ms))
        self._log_to_ui(f"setting seekbar max {self._duration_ms // 1000} sec")

    def _play(self) -> None:
        if self._state not in PLAYABLE_STATES:
            self._reject("play()")
            return
        self._log_to_ui(f"start() {self._source.name}")
        self._run_id += 1
        try:
            if self._state is PlayerState.COMPLETED:
                self._engine_call("seek_to", self._seek_after_completion_ms or 0)
            self._engine_call("start")
        except EngineError as exc:
            self._log_engine_failure("start", exc)
            return
        self._seek_after_completion_ms = None
        self._transition(PlayerState.PLAYING)

    def _pause(self) -> None:
        if self._state is not PlayerState.PLAYING:
            self._publish(NoticePosted(PAUSE_REJECTED_NOTICE))
            self._reject("pause()")
            return
        self._log_to_ui("pause()")
        try:
            self._engine_call("pause")
        except EngineError as exc:
            self._log_engine_failure("pause", exc)
            return
        self._transition(PlayerState.PAUSED)

    def _reset(self) -> None:
        if self._state not in RESET_STATES:
            self._reject("reset()")
            return
        self._log_to_ui("reset()")
        was_playing = self._state is PlayerState.PLAYING
        self._run_id += 1
        self._stop_sampler()
        self._publish(PositionChanged(0))
        try:
            self._engine_call("reset")
        except EngineError as exc:
            self._log_engine_failure("reset", exc)
            if was_playing:
                self._start_sampler()
            return
        self._seek_after_completion_ms = None
        target = PlayerState.PREPARED if self._load() else PlayerState.INITIALIZED
        self._transition(target, reset=True)

    def _seek_to(self, position_ms: int) -> None:
        if self._state not in SEEKABLE_STATES:
            self._reject(f"seekTo() {position_ms} ms")
            return
        target = max(0, int(position_ms))
        if self._duration_ms > 0:
            target = min(target, self._duration_ms)
        if target != position_ms:
            logger.debug("Seek to %s ms clamped to %s ms", position_ms, target)
        self._log_to_ui(f"seekTo() {target} ms")
        try:
            self._engine_call("seek_to", target)
        except EngineError as exc:
            self._log_engine_failure("seekTo", exc)
            return
        if self._state is PlayerState.COMPLETED:
            self._seek_after_completion_ms = target

    def _start_position_updates(self) -> None:
        if self._state is not PlayerState.PLAYING:
            logger.info("Position updates not started in state %s", self._state)
            return
        self._start_sampler()

    def _stop_position_updates(self) -> None:
        self._stop_sampler()

    def _release(self) -> None:
        if self._state is PlayerState.RELEASED:
            return
        self._bus.unsubscribe(self._on_intent)
        self._run_id += 1
        self._stop_sampler()
        self._sampler = None
        self._log_to_ui("release()")
        with self._engine_lock:
            engine = self._engine
            self._engine = None
        if engine is not None:
            try:
                engine.set_on_completion(None)
                engine.release()
            except EngineError as exc:
                self._log_engine_failure("release", exc)
        self._transition(PlayerState.RELEASED)
        self._telemetry_open = False

    def _on_engine_completion(self) -> None:
        # Engine thread: hand off to the worker, never touch state here.
        run_id = self._run_id
        try:
            self._bus.run_in_background(self._handle_completion, run_id)
        except RuntimeError:
            logger.debug("Completion after bus shutdown ignored")

    def _handle_completion(self, run_id: int) -> None:
        if self._state is not PlayerState.PLAYING:
            logger.debug("Ignoring stale completion in state %s", self._state)
            return
        if run_id != self._run_id:
            logger.debug(
                "Ignoring completion from run %s (now %s)", run_id, self._run_id
            )
            return
        try:
            still_playing = bool(self._engine_call("is_playing"))
        except EngineError:
            still_playing = False
        if still_playing:
            logger.debug("Ignoring completion while the engine still plays")
            return
        self._stop_sampler()
        self._log_to_ui("playback completed")
        self._publish(PlaybackCompleted())
        self._publish(PositionChanged(0))
        self._transition(PlayerState.COMPLETED)

    def _transition(self, target: PlayerState, *, reset: bool = False) -> bool:
        current = self._state
        if not can_transition(current, target, reset=reset):
            logger.info("Rejected transition %s -> %s", current, target)
            return False
        if current is PlayerState.PLAYING:
            self._stop_sampler()
        self._state = target
        self._log_to_ui(f"state {current} -> {target}")
        self._publish(StateChanged(target))
        if target is PlayerState.PLAYING:
            self._start_sampler()
        return True

    def _start_sampler(self) -> None:
        if self._sampler is None:
            self._sampler = PositionSampler(
                self._read_position,
                self._publish_position,
                interval_ms=self._sample_interval_ms,
            )
        self._sampler.start()

    def _stop_sampler(self) -> None:
        if self._sampler is not None:
            self._sampler.stop()

    def _read_position(self) -> int | None:
        # Sampler thread: read-only engine queries.
        with self._engine_lock:
            engine = self._engine
            if engine is None or not engine.is_playing():
                return None
            return max(0, int(engine.get_current_position()))

    def _publish_position(self, position_ms: int) -> None:
        self._publish(PositionChanged(position_ms))

    def _engine_call(self, name: str, *args: Any) -> Any:
        with self._engine_lock:
            engine = self._engine
            if engine is None:
                raise EngineError(f"{name}() called without an engine")
            return getattr(engine, name)(*args)

    def _reject(self, operation: str) -> None:
        if self._state is PlayerState.RELEASED:
            logger.debug("%s after release dropped", operation)
            return
        logger.info("%s ignored in state %s", operation, self._state)
        self._log_to_ui(f"{operation} ignored in state {self._state}")

    def _log_engine_failure(self, operation: str, exc: Exception) -> None:
        logger.warning("Engine %s failed: %s", operation, exc)
        self._log_to_ui(f"{operation}() failed: {exc}")

    def _log_to_ui(self, message: str) -> None:
        logger.debug("Player log: %s", message)
        self._publish(LogUpdated(self._log.append(message)))

    def _publish(self, event: object) -> None:
        if not self._telemetry_open:
            return
        self._bus.publish(event)
