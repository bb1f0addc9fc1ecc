"""Headless command-line player.

Runs the same controller and bus as the TUI, with a console thread standing
in for the UI thread: it prints each new activity-log line and exits when
playback completes.
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path
from typing import TextIO

from . import __version__
from .bus import EventBus, ThreadMode
from .events import (
    TELEMETRY_EVENTS,
    LogUpdated,
    PositionChanged,
    SeekTo,
    StartPlayback,
    StateChanged,
)
from .executors import SerialExecutor
from .logging_utils import setup_logging
from .paths import log_dir
from .runtime_config import (
    BACKENDS,
    resolve_backend_name,
    resolve_fake_duration_ms,
    resolve_log_level,
)
from .services.audio_engine import MediaSourceError
from .services.engine_selection import build_engine_factory, resolve_media_source
from .services.player_controller import PlayerController
from .services.player_state import PlayerState
from .utils.time_format import format_time_ms

CONSOLE_THREAD_NAME = "simple-player-console"


class ConsoleReporter:
    """Prints telemetry; runs on the console executor."""

    def __init__(self, out: TextIO, *, show_positions: bool = False) -> None:
        self._out = out
        self._show_positions = show_positions
        self._printed_lines = 0
        self.finished = threading.Event()
        self.final_state: PlayerState | None = None

    def __call__(self, event: object) -> None:
        if isinstance(event, LogUpdated):
            lines = event.text.splitlines()
            for line in lines[self._printed_lines :]:
                print(line, file=self._out)
            self._printed_lines = len(lines)
        elif isinstance(event, PositionChanged) and self._show_positions:
            print(f"   position {format_time_ms(event.position_ms)}", file=self._out)
        elif isinstance(event, StateChanged):
            self.final_state = event.state
            if event.state in {PlayerState.COMPLETED, PlayerState.RELEASED}:
                self.finished.set()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="simple-player-cli", description="Play one audio file headless."
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument("--log-file", help="Write logs to a file path")
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default="fake",
        help="Playback backend to use (fake or vlc).",
    )
    parser.add_argument(
        "--duration-ms",
        type=int,
        help="Media length simulated by the fake backend.",
    )
    parser.add_argument(
        "--seek-ms", type=int, help="Seek to this position once playback starts."
    )
    parser.add_argument(
        "--positions", action="store_true", help="Print sampled positions."
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Give up after this many seconds (default: wait for completion).",
    )
    parser.add_argument("media", nargs="?", help="Audio file to play.")
    return parser


def play_headless(
    controller: PlayerController,
    bus: EventBus,
    reporter: ConsoleReporter,
    *,
    seek_ms: int | None = None,
    timeout: float | None = None,
) -> bool:
    """Create, play and wait; returns True when playback completed."""
    bus.subscribe(reporter, event_types=TELEMETRY_EVENTS, thread_mode=ThreadMode.UI)
    try:
        controller.create().result(timeout=30.0)
        if controller.state is not PlayerState.PREPARED:
            return False
        bus.publish(StartPlayback())
        if seek_ms is not None:
            bus.publish(SeekTo(seek_ms))
        reporter.finished.wait(timeout)
        return reporter.final_state is PlayerState.COMPLETED
    finally:
        controller.release()
        bus.flush()
        bus.unsubscribe(reporter)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = logging.getLogger(__name__)
    console = SerialExecutor(CONSOLE_THREAD_NAME)
    bus = EventBus(ui_executor=console)
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
        )
        logger.info("Starting simple-player CLI")
        backend_name = resolve_backend_name(args.backend)
        source = resolve_media_source(args.media, backend_name)
        controller = PlayerController(
            source,
            bus,
            engine_factory=build_engine_factory(
                backend_name, duration_ms=resolve_fake_duration_ms(args.duration_ms)
            ),
        )
        reporter = ConsoleReporter(sys.stdout, show_positions=args.positions)
        completed = play_headless(
            controller, bus, reporter, seek_ms=args.seek_ms, timeout=args.timeout
        )
        return 0 if completed else 1
    except MediaSourceError as exc:
        logger.error("Invalid media source: %s", exc)
        print(str(exc), file=sys.stderr)
        return 1
    except Exception as exc:  # pragma: no cover - top-level safety net
        logger.exception("Unhandled error: %s", exc)
        print("Unexpected error. Re-run with --verbose for details.", file=sys.stderr)
        return 1
    finally:
        bus.close()
        console.shutdown()


if __name__ == "__main__":
    raise SystemExit(main())
