"""Seek bar widget measured in milliseconds."""

from __future__ import annotations

from time import monotonic

from rich.text import Text
from textual.events import Blur, Key, MouseDown, MouseMove, MouseUp
from textual.message import Message
from textual.widget import Widget

from simple_player.utils.time_format import format_time_pair_ms


class SeekBarChanged(Message):
    """Posted while the user moves the thumb; `is_final` marks the release."""

    def __init__(self, position_ms: int, is_final: bool) -> None:
        super().__init__()
        self.position_ms = position_ms
        self.is_final = is_final


class SeekBar(Widget):
    """Single-line seek bar with mouse drag and keyboard stepping."""

    DEFAULT_CSS = """
    SeekBar {
        height: 1;
    }
    SeekBar:focus {
        background: $boost;
    }
    """

    def __init__(
        self,
        *,
        label: str = "TIME",
        maximum_ms: int = 0,
        position_ms: int = 0,
        key_step_ms: int = 5_000,
        emit_interval: float = 0.05,
        **kwargs,
    ) -> None:
        if key_step_ms <= 0:
            raise ValueError("key_step_ms must be > 0")
        if emit_interval < 0:
            raise ValueError("emit_interval must be >= 0")
        super().__init__(**kwargs)
        self.label = label
        self.maximum_ms = max(0, int(maximum_ms))
        self.position_ms = self._clamp(position_ms)
        self.key_step_ms = key_step_ms
        self.emit_interval = emit_interval
        self._dragging = False
        self._last_emit = 0.0
        self._bar_start = 0
        self._bar_length = 0
        self.can_focus = True

    @property
    def is_dragging(self) -> bool:
        return self._dragging

    def set_maximum(self, maximum_ms: int) -> None:
        self.maximum_ms = max(0, int(maximum_ms))
        self.position_ms = self._clamp(self.position_ms)
        self.refresh()

    def set_position(self, position_ms: int) -> None:
        self.position_ms = self._clamp(position_ms)
        self.refresh()

    @property
    def fraction(self) -> float:
        if self.maximum_ms <= 0:
            return 0.0
        return self.position_ms / self.maximum_ms

    def render(self) -> Text:
        width = self.size.width
        if width <= 0:
            return Text("")
        position, duration = format_time_pair_ms(self.position_ms, self.maximum_ms)
        label_text = f"{self.label:<4}"
        value_text = f"{position}/{duration}"
        bar_length = width - len(label_text) - 2 - len(value_text)
        if bar_length < 3:
            value_text = ""
            bar_length = width - len(label_text) - 1
        if bar_length < 1:
            self._bar_start = 0
            self._bar_length = 0
            return Text(label_text[:width], no_wrap=True)
        self._bar_start = len(label_text) + 1
        self._bar_length = bar_length
        text = f"{label_text} {self._render_bar(bar_length)}"
        if value_text:
            text = f"{text} {value_text}"
        return Text(text[:width], no_wrap=True)

    def on_mouse_down(self, event: MouseDown) -> None:
        if event.button != 1 or not self._point_in_bar(event.x):
            return
        self.focus()
        self._dragging = True
        self.capture_mouse()
        self._set_from_x(event.x, is_final=False)
        event.stop()

    def on_mouse_move(self, event: MouseMove) -> None:
        if not self._dragging:
            return
        self._set_from_x(event.x, is_final=False)
        event.stop()

    def on_mouse_up(self, event: MouseUp) -> None:
        if not self._dragging:
            return
        self._dragging = False
        self.release_mouse()
        self._set_from_x(event.x, is_final=True)
        event.stop()

    def on_blur(self, event: Blur) -> None:
        if not self._dragging:
            return
        # Losing focus mid-drag still has to end the gesture with a seek.
        self._dragging = False
        self.release_mouse()
        self._set_position(self.position_ms, is_final=True)
        event.stop()

    def on_key(self, event: Key) -> None:
        if event.key not in {"left", "right"}:
            return
        delta = -self.key_step_ms if event.key == "left" else self.key_step_ms
        self._set_position(self.position_ms + delta, is_final=True)
        event.stop()

    def _render_bar(self, bar_length: int) -> str:
        if bar_length == 1:
            return "●"
        thumb_index = int(round(self.fraction * (bar_length - 1)))
        thumb_index = max(0, min(thumb_index, bar_length - 1))
        chars = ["-"] * bar_length
        for index in range(thumb_index):
            chars[index] = "="
        chars[thumb_index] = "●"
        return "".join(chars)

    def _point_in_bar(self, x: int) -> bool:
        if self._bar_length <= 0:
            return False
        return self._bar_start <= x < self._bar_start + self._bar_length

    def _set_from_x(self, x: int, *, is_final: bool) -> None:
        if self._bar_length <= 0:
            return
        relative = x - self._bar_start
        fraction = 0.0 if self._bar_length == 1 else relative / (self._bar_length - 1)
        fraction = max(0.0, min(fraction, 1.0))
        self._set_position(int(round(fraction * self.maximum_ms)), is_final=is_final)

    def _set_position(self, position_ms: int, *, is_final: bool) -> None:
        self.position_ms = self._clamp(position_ms)
        now = monotonic()
        if is_final or now - self._last_emit >= self.emit_interval:
            self._last_emit = now
            self.post_message(SeekBarChanged(self.position_ms, is_final))
        self.refresh()

    def _clamp(self, position_ms: int) -> int:
        return max(0, min(int(position_ms), self.maximum_ms))
