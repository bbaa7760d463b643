"""Models for test run results."""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from jmeter_runner.models.plan import TestPlan

type RunStatus = Literal["success", "incomplete", "skipped"]


@dataclass(frozen=True, kw_only=True)
class RunResult:
    """Outcome of running a single test plan.

    ``incomplete`` means the wait for the end of the test was cancelled before
    the engine reported it; ``skipped`` means the plan never started because
    the batch had already been cancelled. Engine failures are raised, not
    recorded here.
    """

    test_plan: TestPlan
    results_file: Path
    status: RunStatus
    duration: float
    message: str | None = None
