"""Checking exercises one after another, with progress and completion prompts."""

from __future__ import annotations

from collections.abc import Iterable

import click

from . import ui
from .exercise import (
    CompilationError,
    CompiledExercise,
    Exercise,
    ExerciseFailed,
    Mode,
    RunError,
)

_BAR_WIDTH = 60


def _percentage(done: int, total: int) -> float:
    return done / total * 100.0 if total else 0.0


def _bar(done: int, total: int) -> str:
    filled = min(_BAR_WIDTH * done // total, _BAR_WIDTH) if total else _BAR_WIDTH
    if filled >= _BAR_WIDTH:
        return click.style("#" * _BAR_WIDTH, fg="green")
    rest = "-" * (_BAR_WIDTH - filled - 1)
    return click.style("#" * filled + ">", fg="green") + click.style(rest, fg="red")


def _show_progress(done: int, total: int, percentage: float) -> None:
    click.echo(f"Progress: [{_bar(done, total)}] {done}/{total} ({percentage:.1f} %)")


def _separator() -> str:
    return click.style("====================", bold=True)


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> Exercise | None:
    """Check exercises in order; return the first one that is not finished, or None."""
    done, total = progress
    percentage = _percentage(done, total)
    _show_progress(done, total, percentage)

    for exercise in exercises:
        try:
            match exercise.mode:
                case Mode.TEST | Mode.BUILD_SCRIPT:
                    passed = _compile_and_test(exercise, True, verbose, success_hints)
                case Mode.COMPILE:
                    passed = _compile_and_run_interactively(exercise, success_hints)
                case Mode.CLIPPY:
                    passed = _compile_only(exercise, success_hints)
        except ExerciseFailed:
            passed = False
        if not passed:
            return exercise
        done += 1
        if total:
            percentage += 100.0 / total
        _show_progress(done, total, percentage)
    return None


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run the exercise's test harness; raise ExerciseFailed on failure."""
    _compile_and_test(exercise, False, verbose, False)


def _compile(exercise: Exercise) -> CompiledExercise:
    try:
        return exercise.compile()
    except CompilationError as exc:
        ui.warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        click.echo(exc.output.stderr)
        raise


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    _compile(exercise).close()
    return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    with _compile(exercise) as compiled:
        try:
            output = compiled.run()
        except RunError as exc:
            ui.warn(f"Ran {exercise} with errors")
            click.echo(exc.output.stdout)
            click.echo(exc.output.stderr)
            raise
    return prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, interactive: bool, verbose: bool, success_hints: bool
) -> bool:
    with _compile(exercise) as compiled:
        try:
            output = compiled.run()
        except RunError as exc:
            ui.warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
            click.echo(exc.output.stdout)
            raise
    if verbose:
        click.echo(output.stdout)
    if interactive:
        return prompt_for_completion(exercise, None, success_hints)
    return True


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool = False
) -> bool:
    """Return True when the exercise is done; otherwise show where the marker is."""
    state = exercise.state()
    if state.is_done:
        return True

    match exercise.mode:
        case Mode.COMPILE:
            ui.success(f"Successfully ran {exercise}!")
        case Mode.TEST:
            ui.success(f"Successfully tested {exercise}!")
        case Mode.CLIPPY | Mode.BUILD_SCRIPT:
            ui.success(f"Successfully compiled {exercise}!")

    plain = ui.no_emoji()
    clippy_message = (
        "The code is compiling, and Clippy is happy!"
        if plain
        else "The code is compiling, and 📎 Clippy 📎 is happy!"
    )
    success_message = {
        Mode.COMPILE: "The code is compiling!",
        Mode.TEST: "The code is compiling, and the tests pass!",
        Mode.CLIPPY: clippy_message,
        Mode.BUILD_SCRIPT: "Build script works!",
    }[exercise.mode]

    click.echo()
    if plain:
        click.echo(f"~*~ {success_message} ~*~")
    else:
        click.echo(f"🎉 🎉  {success_message} 🎉 🎉")
    click.echo()

    if prompt_output is not None:
        click.echo("Output:")
        click.echo(_separator())
        click.echo(prompt_output)
        click.echo(_separator())
        click.echo()
    if success_hints:
        click.echo("Hints:")
        click.echo(_separator())
        click.echo(exercise.hint)
        click.echo(_separator())
        click.echo()

    click.echo("You can keep working on this exercise,")
    click.echo(
        "or jump into the next one by removing the "
        f"{click.style('`I AM NOT DONE`', bold=True)} comment:"
    )
    click.echo()
    for context_line in state.context:
        text = click.style(context_line.line, bold=True) if context_line.important else context_line.line
        number = click.style(f"{context_line.number:>2}", fg="blue", bold=True)
        click.echo(f"{number} {click.style('|', fg='blue')}  {text}")

    return False