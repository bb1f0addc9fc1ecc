"""Headless CLI tests on the fake engine."""

from __future__ import annotations

import logging
import sys

import pytest

import simple_player.cli as cli_module
from simple_player.events import LogUpdated


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    yield
    for handler in root.handlers:
        if handler not in original_handlers:
            handler.close()
    root.handlers.clear()
    for handler in original_handlers:
        root.addHandler(handler)
    root.setLevel(original_level)


def test_cli_plays_to_completion(tmp_path, capsys) -> None:
    log_file = tmp_path / "cli.log"
    rc = cli_module.main(
        ["--duration-ms", "200", "--log-file", str(log_file), "--quiet", "demo.mp3"]
    )
    out = capsys.readouterr().out
    lines = out.splitlines()

    assert rc == 0
    assert lines[0] == "0 - audio engine created"
    assert "start() demo" in out
    assert "playback completed" in out
    assert "state Playing -> Completed" in out
    assert lines[-1].endswith("state Completed -> Released")
    numbers = [int(line.split(" - ", 1)[0]) for line in lines]
    assert numbers == list(range(len(lines)))
    assert log_file.exists()


def test_cli_seek_and_positions(tmp_path, capsys) -> None:
    rc = cli_module.main(
        [
            "--duration-ms",
            "400",
            "--seek-ms",
            "300",
            "--positions",
            "--log-file",
            str(tmp_path / "cli.log"),
            "--quiet",
        ]
    )
    out = capsys.readouterr().out
    assert rc == 0
    assert "seekTo() 300 ms" in out
    assert "start() demo-track" in out


def test_cli_timeout_returns_nonzero(tmp_path, capsys) -> None:
    rc = cli_module.main(
        [
            "--duration-ms",
            "600000",
            "--timeout",
            "0.2",
            "--log-file",
            str(tmp_path / "cli.log"),
            "--quiet",
        ]
    )
    out = capsys.readouterr().out
    assert rc == 1
    assert "state Playing -> Released" in out


def test_cli_reports_missing_media_for_vlc(tmp_path, capsys) -> None:
    rc = cli_module.main(
        ["--backend", "vlc", "--log-file", str(tmp_path / "cli.log"), "--quiet"]
    )
    assert rc == 1
    assert "media file path is required" in capsys.readouterr().err


def test_console_reporter_prints_only_new_lines(capsys) -> None:
    reporter = cli_module.ConsoleReporter(sys.stdout)
    reporter(LogUpdated("0 - a"))
    reporter(LogUpdated("0 - a\n1 - b"))
    assert capsys.readouterr().out == "0 - a\n1 - b\n"
