"""Player pane: transport buttons, seek bar and the scrolling activity log."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widget import Widget
from textual.widgets import Static

from simple_player.services.player_state import PlayerState
from simple_player.ui.seek_bar import SeekBar
from simple_player.ui.transport_controls import TransportControls

NOTICE_TIMEOUT_S = 2.0


class PlayerPane(Widget):
    """Textual rendering of `PlayerView`."""

    DEFAULT_CSS = """
    PlayerPane {
        layout: vertical;
    }

    #seek-bar {
        width: 1fr;
        min-width: 20;
    }

    #log-scroll {
        height: 1fr;
        border: solid white;
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._transport = TransportControls(id="transport-controls")
        self._seek_bar = SeekBar(id="seek-bar")
        self._log_text = Static("", id="log-text")
        self._log_scroll = VerticalScroll(self._log_text, id="log-scroll")
        self._state = PlayerState.IDLE

    @property
    def seek_bar(self) -> SeekBar:
        return self._seek_bar

    @property
    def state(self) -> PlayerState:
        return self._state

    def compose(self) -> ComposeResult:
        yield self._transport
        yield self._seek_bar
        yield self._log_scroll

    def set_seek_maximum(self, duration_ms: int) -> None:
        self._seek_bar.set_maximum(duration_ms)

    def set_seek_position(self, position_ms: int) -> None:
        self._seek_bar.set_position(position_ms)

    def show_state(self, state: PlayerState) -> None:
        self._state = state
        self._transport.update_state(state)

    def show_notice(self, message: str) -> None:
        self.app.notify(message, timeout=NOTICE_TIMEOUT_S)

    def set_log_text(self, text: str) -> None:
        self._log_text.update(text)
        self._log_scroll.scroll_end(animate=False)
