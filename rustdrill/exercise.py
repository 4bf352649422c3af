"""Exercises, their completion state and the compile/run cycle."""

from __future__ import annotations

import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from . import ui

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"


def temp_file() -> str:
    """Return a temporary binary name unique to this process and thread."""
    return f"./temp_{os.getpid()}_ThreadId{threading.get_ident()}"


def clean() -> None:
    """Remove the temporary binary, ignoring a missing file."""
    try:
        os.remove(temp_file())
    except OSError:
        pass


class Mode(Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class State:
    """Completion state: done when there is no pending context."""

    context: tuple[ContextLine, ...] = ()

    @property
    def is_done(self) -> bool:
        return not self.context


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a finished process."""

    stdout: str
    stderr: str


class ExerciseFailed(Exception):
    """An exercise step failed; carries the captured output."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr or output.stdout)
        self.output = output


class CompilationError(ExerciseFailed):
    """The exercise did not compile."""


class RunError(ExerciseFailed):
    """The compiled exercise exited with a failure."""


def _capture(command: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(command, capture_output=True, check=False)


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def _output_of(result: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(stdout=_decode(result.stdout), stderr=_decode(result.stderr))


def _cargo_toml(name: str) -> str:
    return "\n".join(
        [
            "[package]",
            f'name = "{name}"',
            'version = "0.0.1"',
            'edition = "2021"',
            "[[bin]]",
            f'name = "{name}"',
            f'path = "{name}.rs"',
        ]
    )


def _write_cargo_toml(path: str, name: str) -> None:
    message = (
        "Failed to write Clippy Cargo.toml file."
        if ui.no_emoji()
        else "Failed to write 📎 Clippy 📎 Cargo.toml file."
    )
    try:
        Path(path).write_text(_cargo_toml(name))
    except OSError as exc:
        raise OSError(message) from exc


def _source_lines(source: str) -> list[str]:
    if not source:
        return []
    parts = source.split("\n")
    if source.endswith("\n"):
        parts.pop()
    return [part.removesuffix("\r") for part in parts]


@dataclass
class Exercise:
    """One exercise as described in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.mode = Mode(self.mode)

    def __str__(self) -> str:
        return str(self.path)

    def compile(self) -> CompiledExercise:
        """Build the exercise; raise CompilationError on failure."""
        path = str(self.path)
        rustc_common = [*RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]
        match self.mode:
            case Mode.COMPILE:
                result = _capture(["rustc", path, "-o", temp_file(), *rustc_common])
            case Mode.TEST:
                result = _capture(["rustc", "--test", path, "-o", temp_file(), *rustc_common])
            case Mode.CLIPPY:
                _write_cargo_toml(CLIPPY_CARGO_TOML_PATH, self.name)
                # Build a binary too so clippy exercises can be run afterwards.
                _capture(["rustc", path, "-o", temp_file(), *rustc_common])
                _capture(["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH, *RUSTC_COLOR_ARGS])
                result = _capture(
                    [
                        "cargo", "clippy", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                        *RUSTC_COLOR_ARGS,
                        "--", "-D", "warnings", "-D", "clippy::float_cmp",
                    ]
                )
            case Mode.BUILD_SCRIPT:
                _write_cargo_toml(BUILD_SCRIPT_CARGO_TOML_PATH, self.name)
                result = _capture(["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH])

        if result.returncode == 0:
            return CompiledExercise(self)
        clean()
        raise CompilationError(_output_of(result))

    def _run(self) -> ExerciseOutput:
        if self.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput(stdout="", stderr="")
        arg = "--show-output" if self.mode is Mode.TEST else ""
        result = _capture([temp_file(), arg])
        output = _output_of(result)
        if result.returncode != 0:
            raise RunError(output)
        return output

    def state(self) -> State:
        """Read the source and locate the first pending marker."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_REGEX.search(source):
            return State()
        lines = _source_lines(source)
        matched = next(
            (index for index, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)),
            None,
        )
        if matched is None:
            raise RuntimeError("pending marker matched the file but no single line")
        low = max(matched - CONTEXT, 0)
        high = matched + CONTEXT
        return State(
            tuple(
                ContextLine(line=line, number=index + 1, important=index == matched)
                for index, line in enumerate(lines)
                if low <= index <= high
            )
        )

    def looks_done(self) -> bool:
        """True when the pending marker has been removed."""
        return self.state().is_done


class CompiledExercise:
    """A successfully built exercise; removes its binary on close."""

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise
        self._closed = False

    def run(self) -> ExerciseOutput:
        """Run the built binary; raise RunError if it fails."""
        return self.exercise._run()

    def close(self) -> None:
        """Delete the temporary binary."""
        if not self._closed:
            self._closed = True
            clean()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


_REQUIRED_KEYS = ("name", "path", "mode", "hint")


def load_exercises(path: str | os.PathLike) -> list[Exercise]:
    """Load the exercise list from an info.toml file."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    exercises = []
    for entry in data.get("exercises", []):
        missing = [key for key in _REQUIRED_KEYS if key not in entry]
        if missing:
            raise ValueError(f"exercise entry is missing {', '.join(missing)}")
        exercises.append(
            Exercise(
                name=entry["name"],
                path=Path(entry["path"]),
                mode=Mode(entry["mode"]),
                hint=entry["hint"],
            )
        )
    return exercises