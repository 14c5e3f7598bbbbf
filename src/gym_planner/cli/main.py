"""
CLI entry point using Typer.

Provides commands for program and session management:
- import-program / programs / delete-program: manage templates
- start: begin a session from a program
- runs / show / toggle / set-weight / finish / delete-run: work a session
- history / stats / progress: look back at finished sessions
"""

from .app import app
from .commands import analysis, programs, sessions  # noqa: F401  (registers commands)

__all__ = ["app"]


if __name__ == "__main__":
    app()
