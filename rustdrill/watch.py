"""Watch mode: re-check exercises when their files change."""

from __future__ import annotations

import errno
import itertools
import queue
import subprocess
import sys
import threading
from collections.abc import Iterable, Iterator
from enum import Enum
from pathlib import Path

import click
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exercise import Exercise
from .verify import verify

EXERCISES_DIR = "./exercises"
_POLL_SECONDS = 1.0
_DEBOUNCE_SECONDS = 0.5

_HELP_TEXT = """Commands available to you in watch mode:
  hint   - prints the current exercise's hint
  clear  - clears the screen
  quit   - quits watch mode
  !<cmd> - executes a command, like `!rustc --explain E0381`
  help   - displays this help message

Watch mode automatically re-evaluates the current exercise
when you edit a file's contents."""


class WatchStatus(Enum):
    """How a watch session ended."""

    FINISHED = "finished"
    UNFINISHED = "unfinished"


class WatchShell:
    """Interprets the commands typed while watch mode is running."""

    def __init__(self, hint: str | None = None) -> None:
        self.hint = hint
        self.should_quit = threading.Event()

    def handle(self, line: str) -> None:
        """Carry out one command line."""
        command = line.strip()
        if command == "hint":
            if self.hint is not None:
                click.echo(self.hint)
        elif command == "clear":
            click.echo("\x1b[2J\x1b[1;1H")
        elif command == "quit":
            self.should_quit.set()
            click.echo("Bye!")
        elif command == "help":
            click.echo(_HELP_TEXT)
        elif command.startswith("!"):
            self._execute(command[1:])
        else:
            click.echo(f"unknown command: {command}")

    @staticmethod
    def _execute(cmd: str) -> None:
        parts = cmd.split()
        if not parts:
            click.echo("no command provided")
            return
        try:
            subprocess.run(parts, check=False)
        except OSError as exc:
            click.echo(f"failed to execute command `{cmd}`: {exc}")

    def _serve(self) -> None:
        while True:
            try:
                line = sys.stdin.readline()
            except (OSError, ValueError) as exc:
                click.echo(f"error reading command: {exc}")
                continue
            if not line:
                return
            self.handle(line)

    def _spawn(self) -> threading.Thread:
        click.echo(
            "Welcome to watch mode! You can type 'help' to get an overview "
            "of the commands you can use here."
        )
        thread = threading.Thread(target=self._serve, daemon=True)
        thread.start()
        return thread


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, changes: queue.Queue[str]) -> None:
        super().__init__()
        self._changes = changes

    def on_created(self, event: FileSystemEvent) -> None:
        self._push(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._push(event)

    def _push(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = event.src_path
        if isinstance(path, bytes):
            path = path.decode(sys.getfilesystemencoding(), errors="replace")
        self._changes.put(path)


def _clear_screen() -> None:
    click.echo("\x1bc")


def _ends_with(full: Path, suffix: Path) -> bool:
    tail = suffix.parts
    if len(tail) > len(full.parts):
        return False
    return not tail or full.parts[-len(tail):] == tail


def _collect_changes(changes: queue.Queue[str]) -> list[str]:
    try:
        first = changes.get(timeout=_POLL_SECONDS)
    except queue.Empty:
        return []
    paths = [first]
    while True:
        try:
            following = changes.get(timeout=_DEBOUNCE_SECONDS)
        except queue.Empty:
            return paths
        if following not in paths:
            paths.append(following)


def _pending_after_change(filepath: Path, exercises: list[Exercise]) -> Iterator[Exercise]:
    current = next((e for e in exercises if _ends_with(filepath, e.path)), None)
    others = (
        e for e in exercises if not e.looks_done() and not _ends_with(filepath, e.path)
    )
    return itertools.chain([current] if current is not None else [], others)


def watch(
    exercises: Iterable[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify exercises, then re-verify on every change until done or told to quit."""
    exercises = list(exercises)
    root = Path(EXERCISES_DIR)
    if not root.is_dir():
        raise FileNotFoundError(errno.ENOENT, "No such directory", str(root))

    changes: queue.Queue[str] = queue.Queue()
    observer = Observer()
    observer.schedule(_ChangeHandler(changes), str(root), recursive=True)
    observer.start()
    try:
        return _watch_loop(exercises, changes, verbose, success_hints)
    finally:
        observer.stop()
        observer.join()


def _watch_loop(
    exercises: list[Exercise],
    changes: queue.Queue[str],
    verbose: bool,
    success_hints: bool,
) -> WatchStatus:
    _clear_screen()
    failed = verify(exercises, (0, len(exercises)), verbose, success_hints)
    if failed is None:
        return WatchStatus.FINISHED

    shell = WatchShell(failed.hint)
    shell._spawn()
    while True:
        for changed in _collect_changes(changes):
            path = Path(changed)
            if path.suffix != ".rs" or not path.exists():
                continue
            filepath = path.resolve()
            pending = _pending_after_change(filepath, exercises)
            num_done = sum(1 for e in exercises if e.looks_done())
            _clear_screen()
            failed = verify(pending, (num_done, len(exercises)), verbose, success_hints)
            if failed is None:
                return WatchStatus.FINISHED
            shell.hint = failed.hint
        if shell.should_quit.is_set():
            return WatchStatus.UNFINISHED