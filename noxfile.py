"""Nox sessions for lint, type checks and the pytest suite."""

from __future__ import annotations

import nox

nox.options.sessions = ["lint", "typecheck", "tests"]


@nox.session
def lint(session: nox.Session) -> None:
    """Check lint and formatting without touching files."""
    session.install("ruff")
    session.run("ruff", "check", ".")
    session.run("ruff", "format", "--check", ".")


@nox.session(name="lint-fix")
def lint_fix(session: nox.Session) -> None:
    session.install("ruff")
    session.run("ruff", "check", "--fix", ".")
    session.run("ruff", "format", ".")


@nox.session
def typecheck(session: nox.Session) -> None:
    """Type-check the simple_player package."""
    session.install("mypy")
    session.install("-e", ".")
    session.run("mypy", "src/simple_player")


@nox.session
def tests(session: nox.Session) -> None:
    """Run the pytest suite against an editable install."""
    session.install("-e", ".[test]")
    session.run("pytest", *session.posargs)


@nox.session(python=False)
def local(session: nox.Session) -> None:
    """Run the same gates from the current environment, no virtualenv."""
    session.run("ruff", "check", "--fix", ".", external=True)
    session.run("ruff", "format", ".", external=True)
    session.run("mypy", "src/simple_player", external=True)
    session.run("pytest", external=True)
