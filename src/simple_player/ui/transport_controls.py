"""Play / pause / reset buttons for the player pane."""

from __future__ import annotations

from typing import Literal

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.events import Click, Key
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Static

from simple_player.services.player_state import PlayerState

Action = Literal["play", "pause", "reset"]


class TransportAction(Message):
    bubble = True

    def __init__(self, action: Action) -> None:
        super().__init__()
        self.action = action


class TransportControls(Widget):
    DEFAULT_CSS = """
    TransportControls {
        height: 1;
    }

    #transport-play, #transport-pause, #transport-reset {
        width: 9;
        margin-right: 1;
    }

    #transport-state {
        width: 1fr;
        content-align: right middle;
    }

    TransportControls .transport-button {
        background: $panel;
        color: $text;
        height: 1;
        padding: 0 1;
        content-align: center middle;
    }

    TransportControls .transport-button:focus {
        background: $boost;
        color: $text;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._play_button = TransportButton("PLAY", action="play", id="transport-play")
        self._pause_button = TransportButton(
            "PAUSE", action="pause", id="transport-pause"
        )
        self._reset_button = TransportButton(
            "RESET", action="reset", id="transport-reset"
        )
        self._state_label = Static("Idle", id="transport-state")

    def compose(self) -> ComposeResult:
        yield Horizontal(
            self._play_button,
            self._pause_button,
            self._reset_button,
            self._state_label,
        )

    def update_state(self, state: PlayerState) -> None:
        self._state_label.update(str(state))


class TransportButton(Static):
    def __init__(self, label: str, *, action: Action, **kwargs) -> None:
        super().__init__(label, classes="transport-button", **kwargs)
        self.action = action
        self.can_focus = True

    def on_click(self, event: Click) -> None:
        self._emit()
        event.stop()

    def on_key(self, event: Key) -> None:
        if event.key not in {"enter", "space"}:
            return
        self._emit()
        event.stop()

    def _emit(self) -> None:
        self.post_message(TransportAction(self.action))
