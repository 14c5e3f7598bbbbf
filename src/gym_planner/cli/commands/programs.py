"""Program commands: import-program, programs, delete-program, start."""

import json
from pathlib import Path
from typing import Annotated

import typer
import yaml

from ...core.sessions import start_run
from ...io.serializers import ValidationError, dict_to_program
from .. import views
from ..app import DataDirOption, ForceOption, app, get_store


def _read_program_file(path: Path) -> object:
    """Parse a YAML or JSON program file (JSON is valid YAML, but keep errors precise)."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON in {path}: {e}") from e
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in {path}: {e}") from e


@app.command("import-program")
def import_program(
    file: Annotated[
        Path,
        typer.Argument(help="YAML or JSON program file", exists=True, dir_okay=False),
    ],
    data_dir: DataDirOption = None,
) -> None:
    """
    Add a program (or replace one with the same id) from a file.

    Example file:

      title: Push day
      sections:
        - title: Chest
          items:
            - {title: Bench press, reps: 4, weight: 60}
    """
    store = get_store(data_dir)

    try:
        program = dict_to_program(_read_program_file(file))
    except (OSError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    try:
        store.save_program(program)
    except OSError as e:
        views.print_error(f"Could not save program: {e}")
        raise typer.Exit(1)

    views.print_success(
        f"Saved program '{program.title}' ({views.short_id(program.id)}), "
        f"{program.exercise_count} exercises"
    )


@app.command("programs")
def list_programs(data_dir: DataDirOption = None) -> None:
    """
    List saved programs.
    """
    store = get_store(data_dir)
    views.print_programs(store.load_programs())


@app.command("delete-program")
def delete_program(
    program_id: Annotated[str, typer.Argument(help="Program id or unique prefix")],
    data_dir: DataDirOption = None,
    force: ForceOption = False,
) -> None:
    """
    Delete a program. Sessions already started from it are kept.
    """
    store = get_store(data_dir)

    try:
        program = store.get_program(program_id)
    except KeyError as e:
        views.print_error(e.args[0])
        raise typer.Exit(1)

    if not force and not views.confirm_action(f"Delete program '{program.title}'?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        store.delete_program(program.id)
    except (KeyError, OSError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Deleted program '{program.title}'")


@app.command("start")
def start(
    program_id: Annotated[str, typer.Argument(help="Program id or unique prefix")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Start a new session from a program.
    """
    store = get_store(data_dir)

    try:
        program = store.get_program(program_id)
    except KeyError as e:
        views.print_error(e.args[0])
        raise typer.Exit(1)

    run = start_run(program)

    try:
        store.save_run(run)
    except OSError as e:
        views.print_error(f"Could not save session: {e}")
        raise typer.Exit(1)

    views.print_success(f"Started '{run.title}' ({views.short_id(run.id)})")
    views.print_run(run)
