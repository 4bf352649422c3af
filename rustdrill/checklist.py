"""Concurrent checking of every exercise with a JSON result report."""

from __future__ import annotations

import json
import os
import threading
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from pathlib import Path

from .exercise import Exercise, ExerciseFailed
from .run import run

CHECK_RESULT_PATH = ".github/result/check_result.json"


@dataclass
class ExerciseResult:
    """Whether one exercise passed."""

    name: str
    result: bool


@dataclass
class ExerciseStatistics:
    """Totals over a checking session; time is in whole seconds."""

    total_exercations: int = 0
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0


@dataclass
class ExerciseCheckList:
    """The full report of a checking session."""

    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None
    statistics: ExerciseStatistics = field(default_factory=ExerciseStatistics)

    def to_json(self) -> str:
        """Return the report as indented JSON."""
        return json.dumps(asdict(self), indent=2, ensure_ascii=False)


def _now() -> int:
    return int(time.time())


def cicv_verify(
    exercises: Iterable[Exercise], output_path: str | os.PathLike = CHECK_RESULT_PATH
) -> ExerciseCheckList:
    """Run all exercises concurrently, write the report to output_path and return it."""
    exercises = list(exercises)
    total = len(exercises)
    started = _now()
    checklist = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))
    lock = threading.Lock()
    rights = 0

    def check(exercise: Exercise) -> None:
        nonlocal rights
        task_started = _now()
        try:
            run(exercise, True)
            passed = True
        except ExerciseFailed:
            passed = False
        with lock:
            if passed:
                rights += 1
                print(f"{exercise.name}执行成功")
            else:
                print(f"{exercise.name}执行失败")
            print(f"总的题目数: {total}")
            print(f"当前做正确的题目数: {rights}")
            print(f"当前修改试卷耗时: {_now() - task_started} s")
            checklist.exercises.append(ExerciseResult(name=exercise.name, result=passed))
            if passed:
                checklist.statistics.total_succeeds += 1
            else:
                checklist.statistics.total_failures += 1

    with ThreadPoolExecutor() as pool:
        for future in [pool.submit(check, exercise) for exercise in exercises]:
            future.result()

    total_time = _now() - started
    print(
        "===============================试卷批改完成,总耗时: "
        f"{total_time} s; =================================="
    )
    checklist.statistics.total_time = total_time
    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(checklist.to_json(), encoding="utf-8")
    return checklist