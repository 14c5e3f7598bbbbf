"""Shared Typer app object, shared option types, logging and store utility."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..io.config_loader import load_settings
from ..io.gym_store import GymStore
from ..io.gym_store import get_store as _store_for_dir

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-p", help="Directory holding programs and sessions"),
]

ForceOption = Annotated[
    bool,
    typer.Option("--force", "-f", help="Skip the confirmation prompt"),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="gym-planner",
    help="Workout programs, live session tracking and training statistics.",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False) -> None:
    """Route log records through rich; --verbose wins over the settings file."""
    level = "DEBUG" if verbose else load_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """
    Workout planner. Build programs, run sessions set by set, track progress.
    """
    setup_logging(verbose)


def get_store(data_dir: Path | None) -> GymStore:
    """Get the store from an explicit directory or the configured default."""
    if data_dir is None:
        data_dir = load_settings().data_dir
    return _store_for_dir(data_dir)


def weight_unit() -> str:
    """Weight label from settings."""
    return load_settings().weight_unit
