"""Running a single exercise and resetting it."""

from __future__ import annotations

import subprocess

import click

from . import ui
from .exercise import CompilationError, Exercise, Mode, RunError
from .verify import test


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run one exercise; raise ExerciseFailed if it does not pass."""
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            test(exercise, verbose)
        case Mode.COMPILE | Mode.CLIPPY:
            _compile_and_run(exercise)


def reset(exercise: Exercise) -> subprocess.Popen:
    """Start `git stash -- <path>` for the exercise and return the process."""
    return subprocess.Popen(["git", "stash", "--", str(exercise.path)])


def _compile_and_run(exercise: Exercise) -> None:
    try:
        compiled = exercise.compile()
    except CompilationError as exc:
        ui.warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
        click.echo(exc.output.stderr)
        raise

    with compiled:
        try:
            output = compiled.run()
        except RunError as exc:
            click.echo(exc.output.stdout)
            click.echo(exc.output.stderr)
            ui.warn(f"Ran {exercise} with errors")
            raise

    click.echo(output.stdout)
    ui.success(f"Successfully ran {exercise}")