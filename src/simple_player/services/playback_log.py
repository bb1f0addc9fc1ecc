"""Append-only activity log rendered as numbered lines."""

from __future__ import annotations


class PlaybackLog:
    """Ordered message history shown in the UI log view.

    Every append re-renders the whole history. That is quadratic over a long
    session; the log only holds a handful of lines per user action.
    """

    def __init__(self) -> None:
        self._messages: list[str] = []

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def messages(self) -> tuple[str, ...]:
        return tuple(self._messages)

    def append(self, message: str) -> str:
        """Record `message` and return the full rendered log."""
        self._messages.append(message)
        return self.render()

    def render(self) -> str:
        return "\n".join(
            f"{index} - {message}" for index, message in enumerate(self._messages)
        )
