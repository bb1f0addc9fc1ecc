"""Playback states and the table of legal transitions between them."""

from __future__ import annotations

from enum import Enum


class PlayerState(Enum):
    IDLE = "Idle"
    INITIALIZED = "Initialized"
    PREPARED = "Prepared"
    PLAYING = "Playing"
    PAUSED = "Paused"
    COMPLETED = "Completed"
    RELEASED = "Released"

    def __str__(self) -> str:
        return self.value


_NON_RELEASED = frozenset(PlayerState) - {PlayerState.RELEASED}

# Release is legal from everywhere except RELEASED itself. Reset lands on
# PREPARED, or on INITIALIZED when the reload after an engine reset fails.
_TRANSITIONS: dict[PlayerState, frozenset[PlayerState]] = {
    PlayerState.IDLE: frozenset({PlayerState.INITIALIZED}),
    PlayerState.INITIALIZED: frozenset({PlayerState.PREPARED}),
    PlayerState.PREPARED: frozenset({PlayerState.PLAYING}),
    PlayerState.PLAYING: frozenset({PlayerState.PAUSED, PlayerState.COMPLETED}),
    PlayerState.PAUSED: frozenset({PlayerState.PLAYING}),
    PlayerState.COMPLETED: frozenset({PlayerState.PLAYING}),
    PlayerState.RELEASED: frozenset(),
}

RESET_STATES = _NON_RELEASED - {PlayerState.IDLE}
SEEKABLE_STATES = frozenset(
    {
        PlayerState.PREPARED,
        PlayerState.PLAYING,
        PlayerState.PAUSED,
        PlayerState.COMPLETED,
    }
)
PLAYABLE_STATES = frozenset(
    {PlayerState.PREPARED, PlayerState.PAUSED, PlayerState.COMPLETED}
)


def can_transition(
    current: PlayerState, target: PlayerState, *, reset: bool = False
) -> bool:
    """Return whether `current -> target` is legal.

    `reset=True` admits the reset edges into PREPARED/INITIALIZED from any
    state that owns an engine.
    """
    if current is PlayerState.RELEASED:
        return False
    if target is PlayerState.RELEASED:
        return True
    if reset:
        return current in RESET_STATES and target in {
            PlayerState.PREPARED,
            PlayerState.INITIALIZED,
        }
    return target in _TRANSITIONS[current]
