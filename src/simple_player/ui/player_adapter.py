"""UI-side façade between widgets and the event bus.

`PlayerUiAdapter` turns user gestures into intent events and renders
telemetry through a `PlayerView`. Telemetry handlers are subscribed in
`ThreadMode.UI`, so every view call happens on the UI thread, which is also
where gestures arrive; the user-seeking flag needs no locking.
"""

from __future__ import annotations

import logging
from typing import Protocol

from simple_player.bus import EventBus, ThreadMode
from simple_player.events import (
    TELEMETRY_EVENTS,
    DurationChanged,
    LogUpdated,
    NoticePosted,
    PausePlayback,
    PlaybackCompleted,
    PositionChanged,
    ResetPlayback,
    SeekTo,
    StartPlayback,
    StateChanged,
)
from simple_player.services.player_state import PlayerState

logger = logging.getLogger(__name__)


class PlayerView(Protocol):
    """Rendering surface driven by `PlayerUiAdapter`."""

    def set_seek_maximum(self, duration_ms: int) -> None: ...

    def set_seek_position(self, position_ms: int) -> None: ...

    def show_state(self, state: PlayerState) -> None: ...

    def show_notice(self, message: str) -> None: ...

    def set_log_text(self, text: str) -> None: ...


class PlayerUiAdapter:
    def __init__(self, bus: EventBus, view: PlayerView) -> None:
        self._bus = bus
        self._view = view
        self._is_user_seeking = False
        self._user_selected_position = 0
        self._bus.subscribe(
            self._on_telemetry,
            event_types=TELEMETRY_EVENTS,
            thread_mode=ThreadMode.UI,
        )

    @property
    def is_user_seeking(self) -> bool:
        return self._is_user_seeking

    def detach(self) -> None:
        self._bus.unsubscribe(self._on_telemetry)

    def play(self) -> None:
        self._bus.publish(StartPlayback())

    def pause(self) -> None:
        self._bus.publish(PausePlayback())

    def reset(self) -> None:
        self._bus.publish(ResetPlayback())

    def seek_progress(self, position_ms: int, *, from_user: bool) -> None:
        """Track a seek-bar change; only user drags start a seek gesture."""
        if not from_user:
            return
        self._user_selected_position = max(0, int(position_ms))
        self._is_user_seeking = True

    def seek_released(self) -> None:
        """Finish the drag and ask the controller to seek once."""
        self._is_user_seeking = False
        self._bus.publish(SeekTo(self._user_selected_position))

    def _on_telemetry(self, event: object) -> None:
        if isinstance(event, DurationChanged):
            self._view.set_seek_maximum(event.duration_ms)
        elif isinstance(event, PositionChanged):
            if not self._is_user_seeking:
                self._view.set_seek_position(event.position_ms)
        elif isinstance(event, StateChanged):
            self._view.show_state(event.state)
            self._view.show_notice(f"State changed to: {event.state}")
        elif isinstance(event, NoticePosted):
            self._view.show_notice(event.message)
        elif isinstance(event, LogUpdated):
            self._view.set_log_text(event.text)
        elif isinstance(event, PlaybackCompleted):
            logger.debug("Playback completed")
