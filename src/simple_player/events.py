"""Event values carried by the bus between the UI and the controller.

Intent events flow UI -> controller; telemetry events flow controller -> UI.
All of them are frozen dataclasses so they can be shared across threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from simple_player.services.player_state import PlayerState


@dataclass(frozen=True)
class StartPlayback:
    """Intent: start or resume playback."""


@dataclass(frozen=True)
class PausePlayback:
    """Intent: pause running playback."""


@dataclass(frozen=True)
class ResetPlayback:
    """Intent: reset the engine and reload the media source."""


@dataclass(frozen=True)
class SeekTo:
    """Intent: move the playhead to an absolute position."""

    position_ms: int


@dataclass(frozen=True)
class StartPositionUpdates:
    """Intent: resume periodic position telemetry while playing."""


@dataclass(frozen=True)
class StopPositionUpdates:
    """Intent: stop periodic position telemetry for the current run."""


@dataclass(frozen=True)
class DurationChanged:
    """Telemetry: total media duration in milliseconds."""

    duration_ms: int


@dataclass(frozen=True)
class PositionChanged:
    """Telemetry: engine-reported playhead position in milliseconds."""

    position_ms: int


@dataclass(frozen=True)
class StateChanged:
    """Telemetry: controller entered a new playback state."""

    state: PlayerState


@dataclass(frozen=True)
class PlaybackCompleted:
    """Telemetry: the engine reached the end of the media."""


@dataclass(frozen=True)
class LogUpdated:
    """Telemetry: full numbered activity log after an append."""

    text: str


@dataclass(frozen=True)
class NoticePosted:
    """Telemetry: short-lived notice for the user."""

    message: str


INTENT_EVENTS: tuple[type, ...] = (
    StartPlayback,
    PausePlayback,
    ResetPlayback,
    SeekTo,
    StartPositionUpdates,
    StopPositionUpdates,
)

TELEMETRY_EVENTS: tuple[type, ...] = (
    DurationChanged,
    PositionChanged,
    StateChanged,
    PlaybackCompleted,
    LogUpdated,
    NoticePosted,
)
