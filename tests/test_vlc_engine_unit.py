"""Unit tests for the VLC engine command mapping without libVLC."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

import simple_player.services.vlc_engine as vlc_engine
from simple_player.services.audio_engine import EngineError
from simple_player.services.vlc_engine import VLCAudioEngine

_END_REACHED = "MediaPlayerEndReached"


class _ParsedStatus:
    skipped = "skipped"
    failed = "failed"
    timeout = "timeout"
    done = "done"


class _DummyMedia:
    def __init__(self, path: str, *, status: str = "done", duration: int = 4_000):
        self.path = path
        self._status = status
        self._duration = duration
        self.parse_calls: list[tuple[object, int]] = []
        self.released = False

    def parse_with_options(self, flag: object, timeout_ms: int) -> int:
        self.parse_calls.append((flag, timeout_ms))
        return 0

    def get_parsed_status(self) -> str:
        return self._status

    def get_duration(self) -> int:
        return self._duration

    def release(self) -> None:
        self.released = True


class _DummyEventManager:
    def __init__(self) -> None:
        self.handlers: dict[object, object] = {}

    def event_attach(self, event_type: object, handler) -> None:
        self.handlers[event_type] = handler

    def event_detach(self, event_type: object) -> None:
        self.handlers.pop(event_type, None)


class _DummyPlayer:
    def __init__(self) -> None:
        self.media = None
        self.playing = False
        self.time_ms = 0
        self.length_ms = 0
        self.calls: list[str] = []
        self.events = _DummyEventManager()
        self.play_result = 0

    def event_manager(self) -> _DummyEventManager:
        return self.events

    def set_media(self, media) -> None:
        self.media = media

    def play(self) -> int:
        self.calls.append("play")
        self.playing = self.play_result == 0
        return self.play_result

    def set_pause(self, flag: int) -> None:
        self.calls.append(f"set_pause({flag})")
        self.playing = False

    def stop(self) -> None:
        self.calls.append("stop")
        self.playing = False

    def set_time(self, time_ms: int) -> int:
        self.calls.append(f"set_time({time_ms})")
        self.time_ms = time_ms
        return 0

    def get_time(self) -> int:
        return self.time_ms

    def get_length(self) -> int:
        return self.length_ms

    def is_playing(self) -> int:
        return 1 if self.playing else 0

    def release(self) -> None:
        self.calls.append("release")


class _DummyInstance:
    def __init__(self, player: _DummyPlayer, media_status: str) -> None:
        self.player = player
        self.media_status = media_status
        self.medias: list[_DummyMedia] = []
        self.released = False

    def media_player_new(self) -> _DummyPlayer:
        return self.player

    def media_new_path(self, path: str) -> _DummyMedia:
        media = _DummyMedia(path, status=self.media_status)
        self.medias.append(media)
        return media

    def release(self) -> None:
        self.released = True


@pytest.fixture
def fake_vlc(monkeypatch):
    player = _DummyPlayer()
    state = SimpleNamespace(player=player, instance=None, status="done")

    def make_instance(*args: str) -> _DummyInstance:
        state.instance = _DummyInstance(player, state.status)
        state.instance_args = args
        return state.instance

    module = SimpleNamespace(
        Instance=make_instance,
        EventType=SimpleNamespace(MediaPlayerEndReached=_END_REACHED),
        MediaParseFlag=SimpleNamespace(local="local"),
        MediaParsedStatus=_ParsedStatus,
    )
    monkeypatch.setattr(vlc_engine, "_load_vlc", lambda: module)
    return state


def _prepared(engine: VLCAudioEngine) -> VLCAudioEngine:
    engine.set_source("/music/song.mp3")
    engine.prepare()
    return engine


def test_prepare_parses_local_media_and_reads_duration(fake_vlc) -> None:
    engine = _prepared(VLCAudioEngine(prepare_timeout_ms=1_000))
    media = fake_vlc.instance.medias[0]
    assert media.path == "/music/song.mp3"
    assert media.parse_calls == [("local", 1_000)]
    assert engine.get_duration() == 4_000
    assert fake_vlc.instance_args == ("--no-video", "--quiet")


def test_prepare_failure_raises_engine_error(fake_vlc) -> None:
    fake_vlc.status = "failed"
    engine = VLCAudioEngine()
    engine.set_source("/music/broken.mp3")
    with pytest.raises(EngineError, match="parse status failed"):
        engine.prepare()
    assert engine.get_duration() == 0


def test_seek_before_start_is_applied_on_play(fake_vlc) -> None:
    engine = _prepared(VLCAudioEngine())
    engine.seek_to(1_500)
    assert engine.get_current_position() == 1_500
    assert "set_time(1500)" not in fake_vlc.player.calls
    engine.start()
    assert fake_vlc.player.calls[-2:] == ["play", "set_time(1500)"]
    assert engine.is_playing() is True


def test_start_before_prepare_raises(fake_vlc) -> None:
    engine = VLCAudioEngine()
    with pytest.raises(EngineError, match="before prepare"):
        engine.start()


def test_play_refused_raises(fake_vlc) -> None:
    engine = _prepared(VLCAudioEngine())
    fake_vlc.player.play_result = -1
    with pytest.raises(EngineError, match="refused"):
        engine.start()


def test_end_reached_invokes_completion_and_restart_stops_first(fake_vlc) -> None:
    engine = _prepared(VLCAudioEngine())
    completions: list[int] = []
    engine.set_on_completion(lambda: completions.append(1))
    engine.start()
    fake_vlc.player.events.handlers[_END_REACHED](object())
    assert completions == [1]
    assert engine.get_current_position() == 4_000
    engine.seek_to(0)
    engine.start()
    assert fake_vlc.player.calls[-4:] == ["play", "stop", "play", "set_time(0)"]


def test_pause_maps_to_set_pause(fake_vlc) -> None:
    engine = _prepared(VLCAudioEngine())
    with pytest.raises(EngineError, match="before start"):
        engine.pause()
    engine.start()
    engine.pause()
    assert fake_vlc.player.calls[-1] == "set_pause(1)"
    assert engine.is_playing() is False


def test_reset_releases_media_and_allows_reload(fake_vlc) -> None:
    engine = _prepared(VLCAudioEngine())
    first = fake_vlc.instance.medias[0]
    engine.reset()
    assert first.released is True
    assert fake_vlc.player.media is None
    assert engine.get_duration() == 0
    _prepared(engine)
    assert len(fake_vlc.instance.medias) == 2


def test_release_detaches_and_is_idempotent(fake_vlc) -> None:
    engine = _prepared(VLCAudioEngine())
    engine.set_on_completion(lambda: None)
    engine.release()
    engine.release()
    assert fake_vlc.player.calls.count("release") == 1
    assert fake_vlc.instance.released is True
    assert _END_REACHED not in fake_vlc.player.events.handlers
    assert engine.is_playing() is False
    assert engine.get_current_position() == 0
    with pytest.raises(EngineError, match="already released"):
        engine.start()


def test_missing_libvlc_raises_engine_error(monkeypatch) -> None:
    def fail():
        raise OSError("libvlc.so not found")

    monkeypatch.setattr(vlc_engine, "_load_vlc", fail)
    with pytest.raises(EngineError, match="VLC backend unavailable"):
        VLCAudioEngine()
