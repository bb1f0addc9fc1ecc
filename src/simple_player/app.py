"""Textual TUI app for simple-player."""

from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import Future
from pathlib import Path

from textual.app import App, ComposeResult
from textual.widgets import Footer, Header

from . import __version__
from .bus import EventBus, default_bus
from .events import NoticePosted
from .executors import LoopExecutor
from .logging_utils import setup_logging
from .paths import log_dir
from .runtime_config import (
    BACKENDS,
    resolve_backend_name,
    resolve_fake_duration_ms,
    resolve_log_level,
)
from .services.audio_engine import MediaSource, MediaSourceError
from .services.engine_selection import build_engine_factory, resolve_media_source
from .services.player_controller import PlayerController
from .ui.player_adapter import PlayerUiAdapter
from .ui.player_pane import PlayerPane
from .ui.seek_bar import SeekBarChanged
from .ui.transport_controls import TransportAction
from .utils.async_utils import run_blocking
from .version import build_help_epilog

logger = logging.getLogger(__name__)


class SimplePlayerApp(App):
    TITLE = "simple-player"
    CSS = """
    Screen {
        layout: vertical;
    }

    #player-pane {
        height: 1fr;
        padding: 0 1;
    }
    """
    BINDINGS = [
        ("p", "play", "Play"),
        ("s", "pause", "Pause"),
        ("r", "reset", "Reset"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        source: MediaSource,
        *,
        backend_name: str | None = None,
        duration_ms: int | None = None,
        bus: EventBus | None = None,
        auto_init: bool = True,
    ) -> None:
        super().__init__()
        self.source = source
        self.bus = bus or default_bus()
        self._backend_name = backend_name
        self._duration_ms = duration_ms
        self._auto_init = auto_init
        self.adapter: PlayerUiAdapter | None = None
        self.controller: PlayerController | None = None
        self.startup_failed = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield PlayerPane(id="player-pane")
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = self.source.name
        self.bus.bind_ui_executor(LoopExecutor())
        self.adapter = PlayerUiAdapter(self.bus, self.query_one(PlayerPane))
        if self._auto_init:
            self.start_controller()

    def start_controller(self) -> None:
        factory = build_engine_factory(
            self._backend_name,
            duration_ms=self._duration_ms,
            on_fallback=self._post_notice,
        )
        self.controller = PlayerController(self.source, self.bus, engine_factory=factory)
        self.controller.create().add_done_callback(self._on_controller_created)

    async def on_unmount(self) -> None:
        if self.adapter is not None:
            self.adapter.detach()
        if self.controller is not None:
            await run_blocking(self.controller.release)
        self.bus.bind_ui_executor(None)

    def action_play(self) -> None:
        if self.adapter is not None:
            self.adapter.play()

    def action_pause(self) -> None:
        if self.adapter is not None:
            self.adapter.pause()

    def action_reset(self) -> None:
        if self.adapter is not None:
            self.adapter.reset()

    def on_transport_action(self, message: TransportAction) -> None:
        if message.action == "play":
            self.action_play()
        elif message.action == "pause":
            self.action_pause()
        else:
            self.action_reset()

    def on_seek_bar_changed(self, message: SeekBarChanged) -> None:
        if self.adapter is None:
            return
        self.adapter.seek_progress(message.position_ms, from_user=True)
        if message.is_final:
            self.adapter.seek_released()

    def _on_controller_created(self, future: Future[None]) -> None:
        exc = future.exception()
        if exc is None:
            return
        logger.error("Failed to create player controller", exc_info=exc)
        self.startup_failed = True
        self._post_notice("Failed to start playback engine. See the log file.")

    def _post_notice(self, message: str) -> None:
        # Routed through the bus so it lands on the UI thread from any caller.
        self.bus.publish(NoticePosted(message))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="simple-player",
        description="Single-track terminal audio player.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=build_help_epilog(),
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
    parser.add_argument("media", nargs="?", help="Audio file to play.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
            console=False,
        )
        logger.info("Starting simple-player")
        backend_name = resolve_backend_name(args.backend)
        source = resolve_media_source(args.media, backend_name)
        app = SimplePlayerApp(
            source,
            backend_name=backend_name,
            duration_ms=resolve_fake_duration_ms(args.duration_ms),
        )
        app.run()
        return 1 if app.startup_failed else 0
    except MediaSourceError as exc:
        logger.error("Invalid media source: %s", exc)
        print(str(exc), file=sys.stderr)
        return 1
    except Exception as exc:  # pragma: no cover - top-level safety net
        logger.exception("Fatal startup error: %s", exc)
        print(
            "Startup failed. Verify backend/log configuration and re-run with --verbose.",
            file=sys.stderr,
        )
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
