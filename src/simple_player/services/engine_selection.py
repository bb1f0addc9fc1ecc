"""Audio engine selection shared by the TUI and the headless CLI."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from simple_player.runtime_config import resolve_backend_name
from simple_player.services.audio_engine import (
    AudioEngine,
    EngineError,
    MediaSource,
    MediaSourceError,
)
from simple_player.services.fake_engine import FakeAudioEngine
from simple_player.services.vlc_engine import VLCAudioEngine

logger = logging.getLogger(__name__)

DEMO_MEDIA_NAME = "demo-track.mp3"
VLC_FALLBACK_NOTICE = "VLC backend unavailable; using fake backend."


def build_engine_factory(
    backend_name: str | None,
    *,
    duration_ms: int | None = None,
    on_fallback: Callable[[str], None] | None = None,
) -> Callable[[], AudioEngine]:
    """Return an engine factory; a VLC factory degrades to the fake engine."""
    name = resolve_backend_name(backend_name)
    logger.info("Playback backend selected: %s", name)

    def fake() -> AudioEngine:
        if duration_ms is None:
            return FakeAudioEngine()
        return FakeAudioEngine(duration_ms=duration_ms)

    if name != "vlc":
        return fake

    def vlc_or_fake() -> AudioEngine:
        try:
            return VLCAudioEngine()
        except EngineError as exc:
            logger.exception("Failed to start backend vlc: %s", exc)
            if on_fallback is not None:
                on_fallback(VLC_FALLBACK_NOTICE)
            return fake()

    return vlc_or_fake


def resolve_media_source(media: str | None, backend_name: str | None) -> MediaSource:
    """Resolve the CLI media argument.

    The fake engine never opens the file, so any name works and a demo name
    is used when none is given. Real backends require an existing file.
    """
    if resolve_backend_name(backend_name) == "fake":
        return MediaSource(Path(media or DEMO_MEDIA_NAME))
    if media is None:
        raise MediaSourceError("A media file path is required for the vlc backend.")
    return MediaSource.from_path(media)
