"""VLC audio engine using python-vlc."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from typing import Any

from .audio_engine import CompletionCallback, EngineError

logger = logging.getLogger(__name__)

_PARSE_POLL_S = 0.01


def _load_vlc() -> Any:
    import vlc

    return vlc


class VLCAudioEngine:
    """Audio engine backed by a libVLC media player.

    libVLC decodes on its own threads and reports end-of-media from one of
    them, so the completion callback never runs on the caller's thread.
    libVLC forbids calling back into the player from inside that event, the
    handler only records the end and forwards it.
    """

    def __init__(
        self,
        *,
        prepare_timeout_ms: int = 5_000,
        instance_args: Sequence[str] = ("--no-video", "--quiet"),
    ) -> None:
        try:
            self._vlc = _load_vlc()
            self._instance = self._vlc.Instance(*instance_args)
            self._player = self._instance.media_player_new()
        except Exception as exc:  # pragma: no cover - depends on VLC install
            raise EngineError(
                "VLC backend unavailable. Ensure VLC/libVLC is installed."
            ) from exc
        self._prepare_timeout_s = prepare_timeout_ms / 1000
        self._media: Any = None
        self._prepared = False
        self._started = False
        self._ended = False
        self._pending_seek_ms: int | None = None
        self._duration_ms = 0
        self._on_completion: CompletionCallback | None = None
        self._callback_lock = threading.Lock()
        self._released = False
        self._events = self._player.event_manager()
        self._events.event_attach(
            self._vlc.EventType.MediaPlayerEndReached, self._handle_end_reached
        )

    def set_source(self, path: str) -> None:
        self._ensure_alive()
        if self._media is not None:
            raise EngineError("set_source() called while a source is loaded")
        self._media = self._instance.media_new_path(path)
        self._player.set_media(self._media)

    def prepare(self) -> None:
        self._ensure_alive()
        if self._media is None:
            raise EngineError("prepare() called without a source")
        vlc = self._vlc
        self._media.parse_with_options(
            vlc.MediaParseFlag.local, int(self._prepare_timeout_s * 1000)
        )
        finished = (
            vlc.MediaParsedStatus.skipped,
            vlc.MediaParsedStatus.failed,
            vlc.MediaParsedStatus.timeout,
            vlc.MediaParsedStatus.done,
        )
        deadline = time.monotonic() + self._prepare_timeout_s
        status = self._media.get_parsed_status()
        while (
            not any(status == value for value in finished)
            and time.monotonic() < deadline
        ):
            time.sleep(_PARSE_POLL_S)
            status = self._media.get_parsed_status()
        if status != vlc.MediaParsedStatus.done:
            raise EngineError(f"prepare() failed: parse status {status}")
        self._duration_ms = max(int(self._media.get_duration()), 0)
        self._prepared = True
        self._started = False
        self._ended = False

    def start(self) -> None:
        self._ensure_alive()
        if not self._prepared:
            raise EngineError("start() called before prepare()")
        if self._ended:
            # An ended libVLC player only restarts from stopped.
            self._player.stop()
            self._ended = False
            self._started = False
        if self._player.play() == -1:
            raise EngineError("start() failed: libVLC refused to play")
        self._started = True
        if self._pending_seek_ms is not None:
            self._player.set_time(self._pending_seek_ms)
            self._pending_seek_ms = None

    def pause(self) -> None:
        self._ensure_alive()
        if not self._started:
            raise EngineError("pause() called before start()")
        self._player.set_pause(1)

    def reset(self) -> None:
        self._ensure_alive()
        self._player.stop()
        self._player.set_media(None)
        if self._media is not None:
            self._media.release()
        self._media = None
        self._prepared = False
        self._started = False
        self._ended = False
        self._pending_seek_ms = None
        self._duration_ms = 0

    def seek_to(self, position_ms: int) -> None:
        self._ensure_alive()
        if not self._prepared:
            raise EngineError("seek_to() called before prepare()")
        position = max(0, int(position_ms))
        if self._started and not self._ended:
            if self._player.set_time(position) == -1:
                raise EngineError(f"seek_to({position}) failed")
            return
        # libVLC ignores set_time() until playback runs.
        self._pending_seek_ms = position

    def is_playing(self) -> bool:
        if self._released:
            return False
        return bool(self._player.is_playing())

    def get_current_position(self) -> int:
        if self._released:
            return 0
        if self._ended:
            return self._duration_ms
        if self._pending_seek_ms is not None:
            return self._pending_seek_ms
        return max(int(self._player.get_time()), 0)

    def get_duration(self) -> int:
        if self._released or not self._prepared:
            return 0
        length = max(int(self._player.get_length()), 0)
        return length or self._duration_ms

    def set_on_completion(self, callback: CompletionCallback | None) -> None:
        with self._callback_lock:
            self._on_completion = callback

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        with self._callback_lock:
            self._on_completion = None
        self._events.event_detach(self._vlc.EventType.MediaPlayerEndReached)
        self._player.stop()
        if self._media is not None:
            self._media.release()
            self._media = None
        self._player.release()
        self._instance.release()

    def _ensure_alive(self) -> None:
        if self._released:
            raise EngineError("engine already released")

    def _handle_end_reached(self, _event: Any) -> None:
        self._ended = True
        with self._callback_lock:
            callback = self._on_completion
        if callback is None:
            return
        try:
            callback()
        except Exception:  # pragma: no cover - libVLC thread safety net
            logger.exception("Completion callback failed")
