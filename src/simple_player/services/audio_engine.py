"""Audio engine contract and media source handle.

`PlayerController` depends on this protocol to stay engine-agnostic. Concrete
implementations (fake/VLC) expose a blocking, MediaPlayer-style command set;
the controller serializes every call onto its worker thread, except for the
read-only position queries issued by the sampler thread.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

CompletionCallback = Callable[[], None]


class EngineError(RuntimeError):
    """Raised when the engine rejects or fails a command."""


class MediaSourceError(ValueError):
    """Raised when a media source cannot be resolved."""


@dataclass(frozen=True)
class MediaSource:
    """Immutable handle to the single audio payload a controller plays."""

    path: Path

    @property
    def name(self) -> str:
        return self.path.stem

    @classmethod
    def from_path(cls, path: str | Path) -> MediaSource:
        resolved = Path(path).expanduser()
        if not resolved.is_file():
            raise MediaSourceError(f"Media file not found: {resolved}")
        return cls(resolved.resolve())


class AudioEngine(Protocol):
    """Decoder/output device commanded by `PlayerController`."""

    def set_source(self, path: str) -> None: ...

    def prepare(self) -> None: ...

    def start(self) -> None: ...

    def pause(self) -> None: ...

    def reset(self) -> None: ...

    def seek_to(self, position_ms: int) -> None: ...

    def is_playing(self) -> bool: ...

    def get_current_position(self) -> int: ...

    def get_duration(self) -> int: ...

    def set_on_completion(self, callback: CompletionCallback | None) -> None: ...

    def release(self) -> None: ...
