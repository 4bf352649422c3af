import json
from pathlib import Path

import pytest

from rustdrill.cli import find_exercise, list_exercises, main, rustc_exists
from rustdrill.exercise import Exercise, Mode

PENDING_SOURCE = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED_SOURCE = "// fake_exercise\n\nfn main() {\n\n}\n"

STATE_INFO = """
[[exercises]]
name = "pending_exercise"
path = "pending_exercise.rs"
mode = "compile"
hint = ""

[[exercises]]
name = "finished_exercise"
path = "finished_exercise.rs"
mode = "compile"
hint = ""
"""

FAILURE_INFO = """
[[exercises]]
name = "testFailure"
path = "testFailure.rs"
mode = "test"
hint = "Hello!"
"""


@pytest.fixture
def toolchain(tmp_path, monkeypatch):
    bindir = tmp_path / "bin"
    bindir.mkdir()
    rustc = bindir / "rustc"
    rustc.write_text("#!/bin/sh\nexit 0\n")
    rustc.chmod(0o755)
    monkeypatch.setenv("PATH", str(bindir))
    return bindir


@pytest.fixture
def state_dir(tmp_path, monkeypatch, toolchain):
    work = tmp_path / "state"
    work.mkdir()
    (work / "pending_exercise.rs").write_text(PENDING_SOURCE)
    (work / "finished_exercise.rs").write_text(FINISHED_SOURCE)
    (work / "info.toml").write_text(STATE_INFO)
    monkeypatch.chdir(work)
    return work


@pytest.fixture
def failure_dir(tmp_path, monkeypatch, toolchain):
    work = tmp_path / "failure"
    work.mkdir()
    (work / "testFailure.rs").write_text("#[test]\nfn passing() {\n    asset!(true);\n}\n")
    (work / "info.toml").write_text(FAILURE_INFO)
    monkeypatch.chdir(work)
    return work


def _exercises(root: Path) -> list[Exercise]:
    return [
        Exercise("pending_exercise", root / "pending_exercise.rs", Mode.COMPILE, ""),
        Exercise("finished_exercise", root / "finished_exercise.rs", Mode.COMPILE, ""),
    ]


def test_runs_without_arguments(state_dir, capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "welcome to..." in out
    assert "Thanks for installing rustdrill!" in out


def test_fails_when_in_wrong_dir(tmp_path, monkeypatch, toolchain, capsys):
    empty = tmp_path / "empty"
    empty.mkdir()
    monkeypatch.chdir(empty)
    assert main([]) == 1
    assert "must be run from the rustdrill directory" in capsys.readouterr().out


def test_fails_without_rustc(tmp_path, monkeypatch, capsys):
    work = tmp_path / "work"
    work.mkdir()
    (work / "info.toml").write_text(STATE_INFO)
    nobin = tmp_path / "nobin"
    nobin.mkdir()
    monkeypatch.setenv("PATH", str(nobin))
    monkeypatch.chdir(work)
    assert main(["list"]) == 1
    assert "We cannot find `rustc`." in capsys.readouterr().out


@pytest.mark.parametrize("flag", ["--version", "-v"])
def test_version(tmp_path, monkeypatch, capsys, flag):
    monkeypatch.chdir(tmp_path)
    assert main([flag]) == 0
    assert capsys.readouterr().out == "v5.5.1\n"


def test_get_hint_for_single_test(failure_dir, capsys):
    assert main(["hint", "testFailure"]) == 0
    assert capsys.readouterr().out == "Hello!\n"


def test_reset_no_exercise(state_dir, capsys):
    assert main(["reset"]) == 1
    assert "positional arguments not provided" in capsys.readouterr().err


def test_run_single_test_no_filename(state_dir):
    assert main(["run"]) == 1


def test_run_single_test_no_exercise(failure_dir, capsys):
    assert main(["run", "compNoExercise.rs"]) == 1
    assert "No exercise found for 'compNoExercise.rs'!" in capsys.readouterr().out


def test_run_single_test_not_passed(failure_dir):
    assert main(["run", "testNotPassed.rs"]) == 1


def test_unknown_subcommand(state_dir):
    assert main(["frobnicate"]) == 1


def test_list_both_done_and_pending(state_dir, capsys):
    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "Done" in out
    assert "Pending" in out


def test_list_without_pending(state_dir, capsys):
    assert main(["list", "--solved"]) == 0
    out = capsys.readouterr().out
    assert "Pending" not in out
    assert "finished_exercise" in out


def test_list_without_done(state_dir, capsys):
    assert main(["list", "--unsolved"]) == 0
    out = capsys.readouterr().out
    assert "Done" not in out
    assert "pending_exercise" in out


def test_list_exercises_paths(tmp_path):
    exercises = _exercises(tmp_path)
    (tmp_path / "pending_exercise.rs").write_text(PENDING_SOURCE)
    (tmp_path / "finished_exercise.rs").write_text(FINISHED_SOURCE)
    lines = list_exercises(exercises, paths=True)
    assert lines == [
        str(tmp_path / "pending_exercise.rs"),
        str(tmp_path / "finished_exercise.rs"),
        "Progress: You completed 1 / 2 exercises (50.0 %).",
    ]


def test_list_exercises_names_with_filter(tmp_path):
    exercises = _exercises(tmp_path)
    (tmp_path / "pending_exercise.rs").write_text(PENDING_SOURCE)
    (tmp_path / "finished_exercise.rs").write_text(FINISHED_SOURCE)
    lines = list_exercises(exercises, names=True, filter_text="FINISHED, ")
    assert lines[:-1] == ["finished_exercise"]


def test_list_exercises_table_has_header(tmp_path):
    exercises = _exercises(tmp_path)
    (tmp_path / "pending_exercise.rs").write_text(PENDING_SOURCE)
    (tmp_path / "finished_exercise.rs").write_text(FINISHED_SOURCE)
    lines = list_exercises(exercises)
    assert lines[0].split("\t")[0].strip() == "Name"
    assert len(lines) == 4
    assert lines[1].split("\t")[2].strip() == "Pending"
    assert lines[2].split("\t")[2].strip() == "Done"


def test_find_exercise_by_name_and_next(tmp_path):
    exercises = _exercises(tmp_path)
    (tmp_path / "pending_exercise.rs").write_text(PENDING_SOURCE)
    (tmp_path / "finished_exercise.rs").write_text(FINISHED_SOURCE)
    assert find_exercise("finished_exercise", exercises).name == "finished_exercise"
    assert find_exercise("next", exercises).name == "pending_exercise"


def test_find_exercise_missing(tmp_path):
    with pytest.raises(LookupError, match="No exercise found for 'nope'!"):
        find_exercise("nope", _exercises(tmp_path))


def test_find_next_when_all_done(tmp_path):
    path = tmp_path / "finished_exercise.rs"
    path.write_text(FINISHED_SOURCE)
    exercises = [Exercise("finished_exercise", path, Mode.COMPILE, "")]
    with pytest.raises(LookupError, match="no more exercises"):
        find_exercise("next", exercises)


def test_rustc_exists_with_toolchain(toolchain):
    assert rustc_exists() is True


def test_rustc_missing(tmp_path, monkeypatch):
    nobin = tmp_path / "nobin"
    nobin.mkdir()
    monkeypatch.setenv("PATH", str(nobin))
    assert rustc_exists() is False


def test_lsp_writes_project(state_dir, monkeypatch, capsys):
    monkeypatch.setenv("RUST_SRC_PATH", "/opt/rust/library")
    (state_dir / "exercises").mkdir()
    (state_dir / "exercises" / "intro1.rs").write_text("fn main() {}\n")
    assert main(["lsp"]) == 0
    assert "Successfully generated rust-project.json" in capsys.readouterr().out
    data = json.loads((state_dir / "rust-project.json").read_text())
    assert data["sysroot_src"] == "/opt/rust/library"
    assert [crate["root_module"] for crate in data["crates"]] == [
        str(Path("exercises") / "intro1.rs")
    ]


def test_lsp_without_exercises(state_dir, monkeypatch, capsys):
    monkeypatch.setenv("RUST_SRC_PATH", "/opt/rust/library")
    assert main(["lsp"]) == 0
    assert "Failed find any exercises" in capsys.readouterr().out
    assert not (state_dir / "rust-project.json").exists()