# rustdrill

A runner for a collection of small Rust exercises. Each exercise is a `.rs`
file that starts out broken: it fails to compile or fails its tests. You fix
it. `rustdrill` compiles it with `rustc` (or checks it with `cargo`), runs it,
reports what happened, and treats the exercise as done once the
`I AM NOT DONE` marker comment has been removed from the file.

## Requirements

- Python 3.11 or newer
- A Rust toolchain on your `PATH`: `rustc`, and `cargo` for clippy and
  build-script exercises
- `git` for the `reset` command
- An exercise directory with an `info.toml` file that lists the exercises

## Installation

```
pip install .
```

## Usage

Run every command from the directory that holds `info.toml`. If that file is
missing, or `rustc --version` cannot be run, the command prints a message and
exits with status 1.

```
rustdrill                 # welcome text and a short introduction
rustdrill -v              # print the version
rustdrill watch           # re-verify exercises whenever a file changes
rustdrill verify          # verify all exercises in order
rustdrill run NAME        # compile and run (or test) one exercise
rustdrill run next        # run the first exercise that is not done yet
rustdrill hint NAME       # show the hint for an exercise
rustdrill reset NAME      # stash your changes to an exercise with git
rustdrill list            # table of exercises and their status
rustdrill lsp             # write rust-project.json for rust-analyzer
rustdrill cicvverify      # run every exercise and write a JSON report
```

Put `--nocapture` before the subcommand to see the output of test exercises,
for example `rustdrill --nocapture run NAME`.

`run`, `verify` and `reset` exit with status 1 when they fail, and so do
`run`, `hint` and `reset` when no exercise has the given name.

### Exercise modes

Each entry in `info.toml` has a `name`, `path`, `mode` and `hint`. The mode
is one of:

- `compile`: built with `rustc` and the binary is run
- `test`: built with `rustc --test` and the test harness is run
- `clippy`: a `Cargo.toml` is written to `./exercises/clippy/` and
  `cargo clippy` is run with warnings treated as errors
- `buildscript`: a `Cargo.toml` is written to `./exercises/tests/` and
  `cargo test` is run

### Listing exercises

`rustdrill list` takes these options:

- `-p`, `--paths`: print only the paths of the exercises
- `-n`, `--names`: print only the names
- `-f`, `--filter TEXT`: keep only exercises whose name or path contains one
  of the comma-separated patterns
- `-u`, `--unsolved`: show only exercises that are not done
- `-s`, `--solved`: show only exercises that are done

The list ends with a progress line.

### Watch mode

`rustdrill watch` verifies the exercises in order and stops at the first one
that is not finished. It then watches `./exercises` for changes to `.rs` files
and verifies again, starting with the changed exercise. While it waits you
can type:

- `hint`: show the hint for the current exercise
- `clear`: clear the screen
- `quit`: leave watch mode
- `!<cmd>`: run a command, such as `!rustc --explain E0381`. The command is
  split on whitespace and started directly, not through a shell.
- `help`: list these commands

Add `--success-hints` to see an exercise's hint once it passes.

### Grading report

`rustdrill cicvverify` runs all exercises concurrently and writes the results
to `.github/result/check_result.json`, creating the directory if needed. The
report holds one pass or fail entry per exercise, the totals of exercises,
successes and failures, and the total time in seconds. The command exits with
status 0 whatever the results are.

### Environment

Set `NO_EMOJI` to any value to print plain-text markers instead of emoji.
Set `RUST_SRC_PATH` to choose the standard-library sources that `lsp` points
rust-analyzer at. Without it, they are found through `rustc --print sysroot`.

## Python API

The modules can also be used on their own:

```python
from rustdrill.exercise import load_exercises
from rustdrill.verify import verify

exercises = load_exercises("info.toml")
pending = [e for e in exercises if not e.looks_done()]
failed = verify(pending, (len(exercises) - len(pending), len(exercises)), False, False)
```

- `rustdrill.exercise`: `Exercise`, `Mode`, `State`, `ContextLine`,
  `load_exercises`. `Exercise.compile()` returns a `CompiledExercise` (a
  context manager that removes the temporary binary) or raises
  `CompilationError`; `CompiledExercise.run()` raises `RunError` on failure.
- `rustdrill.verify`: `verify` returns the first exercise that is not
  finished, or `None`.
- `rustdrill.run`: `run` and `reset`.
- `rustdrill.checklist`: `cicv_verify` and the report classes.
- `rustdrill.project`: `RustAnalyzerProject` for `rust-project.json`.
- `rustdrill.watch`: `watch` and the `WatchShell` command handler.
- `rustdrill.cli`: `main`, `find_exercise`, `list_exercises`.

## What it does not do

The package contains only the runner. It ships no exercises and no
`info.toml`. You supply the exercise directory yourself.

## Running the tests

```
pip install ".[test]"
pytest
```