"""Runtime configuration normalization helpers.

These helpers keep CLI flag interpretation deterministic across entrypoints.
"""

from __future__ import annotations

BACKENDS = ("fake", "vlc")
DEFAULT_BACKEND = "fake"
MIN_FAKE_DURATION_MS = 1


def resolve_log_level(*, verbose: bool, quiet: bool) -> str:
    """Resolve effective log level from CLI flags.

    Precedence is deterministic: --quiet overrides --verbose.
    """
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    return "INFO"


def resolve_backend_name(value: str | None) -> str:
    """Normalize a backend name, falling back to the fake engine."""
    if value is None:
        return DEFAULT_BACKEND
    normalized = value.strip().lower()
    if normalized in BACKENDS:
        return normalized
    return DEFAULT_BACKEND


def resolve_fake_duration_ms(value: int | None) -> int | None:
    """Validate the fake engine duration override; None keeps its default."""
    if value is None:
        return None
    return max(MIN_FAKE_DURATION_MS, int(value))
