"""Session commands: runs, show, toggle, set-weight, notes, finish, delete-run, history."""

from typing import Annotated

import typer

from ...core.analytics import active_runs, finished_runs
from ...core.models import RunInstance
from ...core.sessions import SessionFinishedError, finish_run, set_weight, toggle_set, update_notes
from ...io.gym_store import GymStore
from .. import views
from ..app import DataDirOption, ForceOption, app, get_store, weight_unit

RunIdArg = Annotated[str, typer.Argument(help="Session id or unique prefix")]
ExerciseArg = Annotated[str, typer.Argument(help="Exercise id prefix or exact title")]
SetArg = Annotated[int, typer.Argument(help="Set number, starting at 1", min=1)]


def _load_run(store: GymStore, run_id: str) -> RunInstance:
    try:
        return store.get_run(run_id)
    except KeyError as e:
        views.print_error(e.args[0])
        raise typer.Exit(1)


def _resolve_exercise(run: RunInstance, ident: str) -> str:
    """Match an exercise by id prefix, falling back to a case-insensitive title."""
    records = list(run.iter_exercises())
    by_id = [r for r in records if r.id.startswith(ident)]
    if len(by_id) == 1:
        return by_id[0].id
    by_title = [r for r in records if r.title.strip().lower() == ident.strip().lower()]
    if len(by_title) == 1:
        return by_title[0].id
    if by_id or by_title:
        views.print_error(f"Exercise {ident!r} is ambiguous in this session")
    else:
        views.print_error(f"Exercise {ident!r} not found in this session")
    raise typer.Exit(1)


def _save(store: GymStore, run: RunInstance) -> None:
    try:
        store.save_run(run)
    except OSError as e:
        views.print_error(f"Could not save session: {e}")
        raise typer.Exit(1)


@app.command("runs")
def list_runs(data_dir: DataDirOption = None) -> None:
    """
    List sessions in progress.
    """
    store = get_store(data_dir)
    views.print_runs(
        active_runs(store.load_runs()),
        title="Sessions in progress",
        empty_message="No session in progress. Use 'start' to begin one.",
    )


@app.command("show")
def show(run_id: RunIdArg, data_dir: DataDirOption = None) -> None:
    """
    Show a session set by set.
    """
    store = get_store(data_dir)
    views.print_run(_load_run(store, run_id), unit=weight_unit())


@app.command("toggle")
def toggle(
    run_id: RunIdArg,
    exercise: ExerciseArg,
    set_number: SetArg,
    data_dir: DataDirOption = None,
) -> None:
    """
    Mark a set done, or undo it.
    """
    store = get_store(data_dir)
    run = _load_run(store, run_id)
    exercise_id = _resolve_exercise(run, exercise)

    try:
        updated = toggle_set(run, exercise_id, set_number - 1)
    except (SessionFinishedError, IndexError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    _save(store, updated)
    views.print_run(updated, unit=weight_unit())


@app.command("set-weight")
def set_weight_cmd(
    run_id: RunIdArg,
    exercise: ExerciseArg,
    set_number: SetArg,
    value: Annotated[str, typer.Argument(help="Weight; non-numeric input counts as 0")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Change the weight of one set.
    """
    store = get_store(data_dir)
    run = _load_run(store, run_id)
    exercise_id = _resolve_exercise(run, exercise)

    try:
        updated = set_weight(run, exercise_id, set_number - 1, value)
    except (SessionFinishedError, IndexError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    _save(store, updated)
    views.print_run(updated, unit=weight_unit())


@app.command("notes")
def notes(
    run_id: RunIdArg,
    exercise: ExerciseArg,
    text: Annotated[str, typer.Argument(help="Note text; an empty string clears it")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Attach a note to an exercise in a session.
    """
    store = get_store(data_dir)
    run = _load_run(store, run_id)
    exercise_id = _resolve_exercise(run, exercise)

    try:
        updated = update_notes(run, exercise_id, text)
    except SessionFinishedError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    _save(store, updated)
    views.print_run(updated, unit=weight_unit())


@app.command("finish")
def finish(run_id: RunIdArg, data_dir: DataDirOption = None, force: ForceOption = False) -> None:
    """
    Finish a session. Finished sessions go to the history and count in stats.
    """
    store = get_store(data_dir)
    run = _load_run(store, run_id)

    if run.is_finished:
        views.print_error(f"Session '{run.title}' is already finished")
        raise typer.Exit(1)

    if not force and not views.confirm_action(f"Finish '{run.title}'?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        updated = finish_run(run)
    except SessionFinishedError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    _save(store, updated)
    views.print_success(f"Finished '{updated.title}'")


@app.command("delete-run")
def delete_run(run_id: RunIdArg, data_dir: DataDirOption = None, force: ForceOption = False) -> None:
    """
    Delete a session permanently.
    """
    store = get_store(data_dir)
    run = _load_run(store, run_id)

    if not force and not views.confirm_action(f"Delete session '{run.title}'?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        store.delete_run(run.id)
    except (KeyError, OSError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Deleted session '{run.title}' ({views.short_id(run.id)})")


@app.command("history")
def history(data_dir: DataDirOption = None) -> None:
    """
    List finished sessions, most recent first.
    """
    store = get_store(data_dir)
    views.print_runs(
        finished_runs(store.load_runs()),
        title="Workout History",
        empty_message="No finished sessions yet.",
    )
