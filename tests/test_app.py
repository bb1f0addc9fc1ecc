"""Textual app tests running the real controller on the fake engine."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

import simple_player.app as app_module
from simple_player.app import SimplePlayerApp
from simple_player.bus import EventBus
from simple_player.events import NoticePosted
from simple_player.services.audio_engine import MediaSource
from simple_player.services.player_state import PlayerState
from simple_player.ui.player_pane import PlayerPane
from simple_player.ui.seek_bar import SeekBar, SeekBarChanged
from simple_player.ui.transport_controls import TransportControls


def _run(coro):
    return asyncio.run(coro)


async def _wait_until(predicate, timeout: float = 5.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture(autouse=True)
def run_blocking_inline(monkeypatch: pytest.MonkeyPatch):
    """Run blocking adapters inline so app shutdown stays on the loop thread."""

    async def _inline(func, /, *args, **kwargs):
        return func(*args, **kwargs)

    monkeypatch.setattr(app_module, "run_blocking", _inline)


@pytest.fixture
def app_bus():
    bus = EventBus()
    yield bus
    bus.close()


def test_app_composes_player_pane(app_bus) -> None:
    app = SimplePlayerApp(
        MediaSource(Path("song.mp3")), bus=app_bus, auto_init=False
    )

    async def run_app() -> None:
        async with app.run_test():
            await asyncio.sleep(0)
            pane = app.query_one(PlayerPane)
            assert app.query_one(TransportControls)
            assert pane.query_one(SeekBar) is pane.seek_bar
            assert app.sub_title == "song"
            assert app.controller is None
            app.exit()

    _run(run_app())


def test_app_plays_pauses_and_releases(app_bus) -> None:
    app = SimplePlayerApp(
        MediaSource(Path("song.mp3")), duration_ms=60_000, bus=app_bus
    )

    async def run_app() -> None:
        async with app.run_test() as pilot:
            pane = app.query_one(PlayerPane)
            await _wait_until(lambda: pane.state is PlayerState.PREPARED)
            assert pane.seek_bar.maximum_ms == 60_000
            await pilot.press("p")
            await _wait_until(lambda: pane.state is PlayerState.PLAYING)
            await pilot.click("#transport-pause")
            await _wait_until(lambda: pane.state is PlayerState.PAUSED)
            assert app.controller is not None
            assert app.controller.sampler_running is False
            app.exit()

    _run(run_app())
    assert app.controller is not None
    assert app.controller.state is PlayerState.RELEASED
    assert app.startup_failed is False


def test_app_seek_bar_release_seeks_controller(app_bus) -> None:
    app = SimplePlayerApp(
        MediaSource(Path("song.mp3")), duration_ms=60_000, bus=app_bus
    )

    async def run_app() -> None:
        async with app.run_test():
            pane = app.query_one(PlayerPane)
            await _wait_until(lambda: pane.state is PlayerState.PREPARED)
            app.on_seek_bar_changed(SeekBarChanged(12_000, is_final=False))
            assert app.adapter is not None
            assert app.adapter.is_user_seeking is True
            app.on_seek_bar_changed(SeekBarChanged(15_000, is_final=True))
            assert app.adapter.is_user_seeking is False
            assert app.controller is not None
            await _wait_until(
                lambda: "seekTo() 15000 ms" in app.controller.log_messages
            )
            app.exit()

    _run(run_app())


def test_app_startup_failure_sets_flag(app_bus, monkeypatch) -> None:
    def broken_factory(*args, **kwargs):
        def factory():
            raise RuntimeError("device exploded")

        return factory

    monkeypatch.setattr(app_module, "build_engine_factory", broken_factory)
    app = SimplePlayerApp(MediaSource(Path("song.mp3")), bus=app_bus)
    notices: list[str] = []
    app_bus.subscribe(
        lambda event: notices.append(event.message), event_types=(NoticePosted,)
    )

    async def run_app() -> None:
        async with app.run_test():
            await _wait_until(lambda: app.startup_failed)
            app.exit()

    _run(run_app())
    app_bus.flush()
    assert notices == ["Failed to start playback engine. See the log file."]
