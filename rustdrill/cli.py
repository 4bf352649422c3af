"""Command-line entry point."""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import click

from . import ui
from .checklist import cicv_verify
from .exercise import Exercise, ExerciseFailed, load_exercises
from .project import RustAnalyzerProject
from .run import reset, run
from .verify import verify
from .watch import WatchStatus, watch

VERSION = "5.5.1"
INFO_FILE = "info.toml"

WELCOME = """       welcome to...
  _ __ _   _ ___| |_ __| |_ __(_) | |
 | '__| | | / __| __/ _` | '__| | | |
 | |  | |_| \\__ \\ || (_| | |  | | | |
 |_|   \\__,_|___/\\__\\__,_|_|  |_|_|_|"""

DEFAULT_OUT = """Thanks for installing rustdrill!

Is this your first time? Don't worry, these exercises are made for beginners!
Here's a couple of notes about how things work:

1. The central concept is that you solve exercises. These exercises usually
   have some sort of syntax error in them, which will cause them to fail
   compilation or testing. Sometimes there's a logic error instead. No matter
   what error, it's your job to find it and fix it! You'll know when you fixed
   it because then the exercise will compile and you can move on to the next one.
2. If you run in watch mode (which we recommend), it'll automatically start with
   the first exercise. Don't get confused by an error message popping up as soon
   as you start! This is part of the exercise that you're supposed to solve, so
   open the exercise file in an editor and start your detective work!
3. If you're stuck on an exercise, there is a helpful hint you can view by typing
   'hint' (in watch mode), or running `rustdrill hint exercise_name`.
4. If you want to use `rust-analyzer` with exercises, which provides features
   like autocompletion, run the command `rustdrill lsp`.

Got all that? Great! To get started, run `rustdrill watch` in order to get the
first exercise. Make sure to have your editor open!"""

FINISH_LINE = """+----------------------------------------------------+
|          You made it to the Fe-nish line!          |
+----------------------------------------------------+

We hope you enjoyed learning about the various aspects of Rust!
If you noticed any issues, please don't hesitate to report them.
You can also contribute your own exercises to help the greater community!"""


class _Exit(Exception):
    def __init__(self, code: int) -> None:
        super().__init__(code)
        self.code = code


@dataclass
class _Session:
    exercises: list[Exercise]
    verbose: bool


def rustc_exists() -> bool:
    """True when `rustc --version` can be started and succeeds."""
    try:
        result = subprocess.run(
            ["rustc", "--version"], stdout=subprocess.DEVNULL, check=False
        )
    except OSError:
        return False
    return result.returncode == 0


def find_exercise(name: str, exercises: Iterable[Exercise]) -> Exercise:
    """Find an exercise by name, or the first unfinished one for "next"."""
    if name == "next":
        found = next((e for e in exercises if not e.looks_done()), None)
        if found is None:
            raise LookupError(
                "🎉 Congratulations! You have done all the exercises!\n"
                "🔚 There are no more exercises to do next!"
            )
        return found
    found = next((e for e in exercises if e.name == name), None)
    if found is None:
        raise LookupError(f"No exercise found for '{name}'!")
    return found


def list_exercises(
    exercises: Iterable[Exercise],
    paths: bool = False,
    names: bool = False,
    filter_text: str | None = None,
    unsolved: bool = False,
    solved: bool = False,
) -> list[str]:
    """Return the lines of the exercise listing, ending with the progress line."""
    exercises = list(exercises)
    lines = []
    if not paths and not names:
        lines.append(f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}")
    filters = [f for f in (filter_text or "").lower().split(",") if f.strip()]
    done_count = 0
    for exercise in exercises:
        fname = str(exercise.path)
        matches = any(f in exercise.name or f in fname for f in filters)
        done = exercise.looks_done()
        if done:
            done_count += 1
        status = "Done" if done else "Pending"
        wanted = (done and solved) or (not done and unsolved) or (not solved and not unsolved)
        if wanted and (matches or filter_text is None):
            if paths:
                lines.append(fname)
            elif names:
                lines.append(exercise.name)
            else:
                lines.append(f"{exercise.name:<17}\t{fname:<46}\t{status:<7}")
    percentage = done_count / len(exercises) * 100.0 if exercises else float("nan")
    lines.append(
        f"Progress: You completed {done_count} / {len(exercises)} exercises ({percentage:.1f} %)."
    )
    return lines


def _find_or_exit(name: str, exercises: list[Exercise]) -> Exercise:
    try:
        return find_exercise(name, exercises)
    except LookupError as exc:
        click.echo(str(exc))
        raise _Exit(1) from exc


@click.group(invoke_without_command=True)
@click.option("--nocapture", is_flag=True, help="show outputs from the test exercises")
@click.option("-v", "--version", "show_version", is_flag=True, help="show the executable version")
@click.pass_context
def _cli(ctx: click.Context, nocapture: bool, show_version: bool) -> None:
    """Small exercises to get you used to writing and reading Rust code."""
    if show_version:
        click.echo(f"v{VERSION}")
        raise _Exit(0)
    if ctx.invoked_subcommand is None:
        click.echo(f"\n{WELCOME}\n")
    if not Path(INFO_FILE).exists():
        click.echo(f"{sys.argv[0]} must be run from the rustdrill directory")
        click.echo("Try `cd rustdrill/`!")
        raise _Exit(1)
    if not rustc_exists():
        click.echo("We cannot find `rustc`.")
        click.echo("Try running `rustc --version` to diagnose your problem.")
        click.echo("For instructions on how to install Rust, check the README.")
        raise _Exit(1)
    ctx.obj = _Session(exercises=load_exercises(INFO_FILE), verbose=nocapture)
    if ctx.invoked_subcommand is None:
        click.echo(f"{DEFAULT_OUT}\n")
        raise _Exit(0)


@_cli.command("list")
@click.option("-p", "--paths", is_flag=True, help="show only the paths of the exercises")
@click.option("-n", "--names", is_flag=True, help="show only the names of the exercises")
@click.option("-f", "--filter", "filter_text", default=None,
              help="comma separated patterns to match exercise names")
@click.option("-u", "--unsolved", is_flag=True, help="display only exercises not yet solved")
@click.option("-s", "--solved", is_flag=True, help="display only exercises that have been solved")
@click.pass_obj
def _list(session: _Session, paths, names, filter_text, unsolved, solved) -> None:
    """Lists the exercises."""
    lines = list_exercises(session.exercises, paths, names, filter_text, unsolved, solved)
    try:
        for line in lines:
            click.echo(line)
    except BrokenPipeError as exc:
        raise _Exit(0) from exc
    except OSError as exc:
        raise _Exit(1) from exc
    raise _Exit(0)


@_cli.command("run")
@click.argument("name")
@click.pass_obj
def _run(session: _Session, name: str) -> None:
    """Runs/Tests a single exercise."""
    exercise = _find_or_exit(name, session.exercises)
    try:
        run(exercise, session.verbose)
    except ExerciseFailed as exc:
        raise _Exit(1) from exc


@_cli.command("reset")
@click.argument("name")
@click.pass_obj
def _reset(session: _Session, name: str) -> None:
    """Resets a single exercise using "git stash -- <filename>"."""
    exercise = _find_or_exit(name, session.exercises)
    try:
        reset(exercise).wait()
    except OSError as exc:
        raise _Exit(1) from exc


@_cli.command("hint")
@click.argument("name")
@click.pass_obj
def _hint(session: _Session, name: str) -> None:
    """Returns a hint for the given exercise."""
    click.echo(_find_or_exit(name, session.exercises).hint)


@_cli.command("verify")
@click.pass_obj
def _verify(session: _Session) -> None:
    """Verifies all exercises according to the recommended order."""
    exercises = session.exercises
    if verify(exercises, (0, len(exercises)), session.verbose, False) is not None:
        raise _Exit(1)


@_cli.command("cicvverify")
@click.pass_obj
def _cicv_verify(session: _Session) -> None:
    """Checks every exercise and writes a JSON report."""
    cicv_verify(session.exercises)


@_cli.command("lsp")
@click.pass_obj
def _lsp(session: _Session) -> None:
    """Enable rust-analyzer for exercises."""
    project = RustAnalyzerProject()
    try:
        project.get_sysroot_src()
    except OSError as exc:
        click.echo("Couldn't find toolchain path, do you have `rustc` installed?")
        raise _Exit(1) from exc
    project.exercises_to_json()
    if not project.crates:
        click.echo("Failed find any exercises, make sure you're in the `rustdrill` folder")
        return
    try:
        project.write_to_disk()
    except OSError:
        click.echo("Failed to write rust-project.json to disk for rust-analyzer")
        return
    click.echo("Successfully generated rust-project.json")
    click.echo("rust-analyzer will now parse exercises, restart your language server or editor")


@_cli.command("watch")
@click.option("--success-hints", is_flag=True, help="show hints on success")
@click.pass_obj
def _watch(session: _Session, success_hints: bool) -> None:
    """Reruns `verify` when files were edited."""
    try:
        status = watch(session.exercises, session.verbose, success_hints)
    except OSError as exc:
        click.echo(f"Error: Could not watch your progress. Error message was {exc!r}.")
        click.echo(
            "Most likely you've run out of disk space or your 'inotify limit' has been reached."
        )
        raise _Exit(1) from exc
    if status is WatchStatus.FINISHED:
        emoji = "★" if ui.no_emoji() else "🎉"
        click.echo(f"{emoji} All exercises completed! {emoji}")
        click.echo(f"\n{FINISH_LINE}\n")
    else:
        click.echo("We hope you're enjoying learning about Rust!")
        click.echo(
            "If you want to continue working on the exercises at a later point, "
            "you can simply run `rustdrill watch` again"
        )


def main(argv: list[str] | None = None) -> int:
    """Run the command line and return the exit code."""
    try:
        result = _cli.main(args=argv, prog_name="rustdrill", standalone_mode=False)
    except _Exit as exc:
        return exc.code
    except click.MissingParameter as exc:
        if isinstance(exc.param, click.Argument):
            click.echo(
                f"Required positional arguments not provided:\n    {exc.param.name}", err=True
            )
        else:
            click.echo(f"Error: {exc.format_message()}", err=True)
        return 1
    except click.ClickException as exc:
        click.echo(f"Error: {exc.format_message()}", err=True)
        return 1
    return result if isinstance(result, int) else 0