"""Tests for the fake audio engine."""

from __future__ import annotations

import threading

import pytest

from simple_player.services.audio_engine import EngineError
from simple_player.services.fake_engine import FakeAudioEngine


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: int) -> None:
        self.now += ms / 1000


def _prepared(clock: _Clock, **kwargs) -> FakeAudioEngine:
    engine = FakeAudioEngine(clock=clock, **kwargs)
    engine.set_source("song.mp3")
    engine.prepare()
    return engine


def test_lifecycle_and_duration() -> None:
    clock = _Clock()
    engine = FakeAudioEngine(duration_ms=5_000, clock=clock)
    assert engine.status == "idle"
    assert engine.get_duration() == 0
    engine.set_source("song.mp3")
    assert engine.status == "initialized"
    engine.prepare()
    assert engine.get_duration() == 5_000
    assert engine.get_current_position() == 0
    engine.release()
    assert engine.status == "released"
    assert engine.get_duration() == 0


def test_playhead_advances_with_clock_and_freezes_on_pause() -> None:
    clock = _Clock()
    engine = _prepared(clock, duration_ms=10_000)
    try:
        engine.start()
        assert engine.is_playing() is True
        clock.advance_ms(1_500)
        assert engine.get_current_position() == 1_500
        engine.pause()
        assert engine.is_playing() is False
        clock.advance_ms(2_000)
        assert engine.get_current_position() == 1_500
        engine.start()
        clock.advance_ms(500)
        assert engine.get_current_position() == 2_000
    finally:
        engine.release()


def test_seek_clamps_to_media_bounds() -> None:
    clock = _Clock()
    engine = _prepared(clock, duration_ms=3_000)
    engine.seek_to(-50)
    assert engine.get_current_position() == 0
    engine.seek_to(9_999)
    assert engine.get_current_position() == 3_000
    engine.seek_to(1_200)
    assert engine.get_current_position() == 1_200
    engine.release()


def test_commands_out_of_order_raise() -> None:
    engine = FakeAudioEngine()
    with pytest.raises(EngineError, match="start\\(\\) called in state idle"):
        engine.start()
    with pytest.raises(EngineError, match="prepare"):
        engine.prepare()
    engine.release()
    with pytest.raises(EngineError):
        engine.set_source("late.mp3")


def test_fail_on_injects_errors_and_records_calls() -> None:
    engine = FakeAudioEngine(fail_on={"prepare"})
    engine.set_source("song.mp3")
    with pytest.raises(EngineError, match="prepare\\(\\) failed"):
        engine.prepare()
    engine.fail_on.clear()
    engine.prepare()
    assert engine.calls == ["set_source", "prepare", "prepare"]
    engine.release()


def test_reset_returns_to_idle() -> None:
    clock = _Clock()
    engine = _prepared(clock)
    engine.reset()
    assert engine.status == "idle"
    assert engine.get_duration() == 0
    engine.set_source("again.mp3")
    engine.prepare()
    assert engine.status == "prepared"
    engine.release()


def test_completion_fires_on_ticker_thread() -> None:
    fired = threading.Event()
    threads: list[str] = []

    def on_completion() -> None:
        threads.append(threading.current_thread().name)
        fired.set()

    engine = FakeAudioEngine(duration_ms=30, tick_interval_ms=5)
    engine.set_on_completion(on_completion)
    engine.set_source("short.mp3")
    engine.prepare()
    engine.start()
    try:
        assert fired.wait(2.0)
        assert threads == ["fake-engine-ticker"]
        assert engine.status == "completed"
        assert engine.is_playing() is False
        assert engine.get_current_position() == 30
    finally:
        engine.release()


def test_start_after_completion_restarts_from_zero() -> None:
    clock = _Clock()
    engine = _prepared(clock, duration_ms=1_000)
    engine.seek_to(1_000)
    engine.start()
    assert engine.get_current_position() == 0
    engine.release()


def test_release_is_idempotent() -> None:
    engine = FakeAudioEngine()
    engine.release()
    engine.release()
    assert engine.calls.count("release") == 1
    assert engine.is_playing() is False


def test_rejects_non_positive_duration() -> None:
    with pytest.raises(ValueError, match="duration_ms must be >= 1"):
        FakeAudioEngine(duration_ms=0)
