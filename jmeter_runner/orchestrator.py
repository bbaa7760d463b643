"""Test orchestrator for running test plans one after another."""

import io
import logging
import shlex
import threading
import time
from collections.abc import Callable, Generator, Sequence
from contextlib import contextmanager, redirect_stdout
from dataclasses import dataclass, field
from pathlib import Path

from jmeter_runner.arguments import build_arguments, results_file_name
from jmeter_runner.completion import CompletionState, LogReadError, wait_for_test_end
from jmeter_runner.engines.base import Engine
from jmeter_runner.exit_trap import (
    EngineError,
    ThreadFailure,
    exit_trap,
    invoke_trapped,
)
from jmeter_runner.models.plan import TestPlan
from jmeter_runner.models.result import RunResult
from jmeter_runner.models.settings import RunConfiguration, RunSettings
from jmeter_runner.selection import select_test_plans

log = logging.getLogger(__name__)

SECRET_FLAGS = frozenset({"-a"})


class TestRunError(Exception):
    """Raised when a test plan cannot be run to completion."""

    __test__ = False

    def __init__(self, test_plan: TestPlan, message: str) -> None:
        super().__init__(f"{test_plan}: {message}")
        self.test_plan = test_plan


class EngineExitError(TestRunError):
    """Raised when the engine exits with a nonzero status."""

    def __init__(self, test_plan: TestPlan, code: int) -> None:
        super().__init__(test_plan, f"Test failed with exit status {code}")
        self.code = code


class RunInfrastructureError(TestRunError):
    """Raised when log or results files cannot be handled, or the engine breaks."""


class _DiscardingWriter(io.TextIOBase):
    """Text stream that drops everything written to it."""

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        return len(text)


@dataclass(frozen=True, kw_only=True)
class TestOrchestrator:
    """Runs test plans sequentially on a single engine."""

    __test__ = False

    engine: Engine
    settings: RunSettings
    cancel_event: threading.Event = field(default_factory=threading.Event)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def execute_tests(self) -> Sequence[RunResult]:
        """Select test plans from the configured directory and run them."""
        test_plans = select_test_plans(
            self.settings.test_dir, self.settings.includes, self.settings.excludes
        )
        return self.run_tests(test_plans)

    def run_tests(self, test_plans: Sequence[TestPlan]) -> Sequence[RunResult]:
        """Run each test plan in order.

        Args:
            test_plans: Test plans in execution order

        Returns:
            One result per test plan, in the same order

        Raises:
            TestRunError: If a test plan fails; later plans are not run

        """
        if not test_plans:
            log.info("No test plans to run")
            return []

        log.info("Running %d test plan(s)...", len(test_plans))
        results: list[RunResult] = []
        last_index = len(test_plans) - 1
        configs = [
            self.build_run_configuration(
                test_plan, first=index == 0, last=index == last_index
            )
            for index, test_plan in enumerate(test_plans)
        ]
        _warn_on_shared_files(test_plans, configs)

        for test_plan, config in zip(test_plans, configs, strict=True):
            if self.cancel_event.is_set():
                log.info("Skipping test: %s", test_plan.name)
                results.append(
                    RunResult(
                        test_plan=test_plan,
                        results_file=results_file_name(config),
                        status="skipped",
                        duration=0.0,
                        message="Run was cancelled before this test started",
                    )
                )
                continue

            results.append(self._run_single_test(test_plan, config))

        log.info("Test execution completed")
        return results

    def build_run_configuration(
        self, test_plan: TestPlan, *, first: bool, last: bool
    ) -> RunConfiguration:
        """Build the configuration for one run from its position in the batch.

        When remote agents are started and stopped once, they are started with
        the first test plan and stopped with the last one. Otherwise every run
        starts and stops them.
        """
        every_run = not self.settings.remote_start_and_stop_once
        start_remote = every_run or first
        stop_remote = every_run or last

        return RunConfiguration(
            test_plan=test_plan.path,
            results_dir=self.settings.results_dir,
            log_file=self.settings.logs_dir / f"{test_plan.name}.log",
            remote_start_all=start_remote and self.settings.remote_start_all,
            remote_start=self.settings.remote_start if start_remote else None,
            remote_stop=stop_remote and self.settings.remote_stop,
            options=self.settings.jmeter,
        )

    def _run_single_test(
        self, test_plan: TestPlan, config: RunConfiguration
    ) -> RunResult:
        """Run one test plan and wait until the engine reports its end."""
        results_file = self._prepare_files(test_plan, config)
        arguments = build_arguments(config)

        log.info("Executing test: %s", test_plan.name)
        if log.isEnabledFor(logging.DEBUG):
            log.debug(
                "JMeter is called with the following arguments: %s",
                shlex.join(_redact(arguments)),
            )

        started = time.monotonic()
        failures: Sequence[ThreadFailure] = ()
        try:
            with self._engine_output(), exit_trap() as supervisor:
                try:
                    outcome = invoke_trapped(lambda: self.engine.start(arguments))
                    if not outcome.completed:
                        raise EngineExitError(test_plan, outcome.code or 1)
                    state = self._wait_for_end(config, supervisor.cancel_event)
                finally:
                    # engine threads may still be winding down
                    self.sleep(self.settings.exit_check_pause / 1000)
                    failures = supervisor.drain()
        except (EngineError, LogReadError) as exc:
            raise RunInfrastructureError(test_plan, str(exc)) from exc
        except TimeoutError as exc:
            raise TestRunError(test_plan, str(exc)) from exc
        finally:
            log.info("Completed test: %s", test_plan.name)

        for failure in failures:
            if failure.exit_code:
                raise EngineExitError(test_plan, failure.exit_code)

        duration = time.monotonic() - started
        if state == "cancelled":
            return RunResult(
                test_plan=test_plan,
                results_file=results_file,
                status="incomplete",
                duration=duration,
                message="Stopped waiting before the end of the test was reported",
            )

        return RunResult(
            test_plan=test_plan,
            results_file=results_file,
            status="success",
            duration=duration,
            message="; ".join(str(f) for f in failures) or None,
        )

    def _prepare_files(self, test_plan: TestPlan, config: RunConfiguration) -> Path:
        """Remove stale results and create an empty log file for the run."""
        results_file = results_file_name(config)
        try:
            results_file.unlink(missing_ok=True)
            config.results_dir.mkdir(parents=True, exist_ok=True)
            config.log_file.parent.mkdir(parents=True, exist_ok=True)
            config.log_file.write_text("", encoding="utf-8")
        except OSError as exc:
            raise RunInfrastructureError(
                test_plan, f"Can't prepare results and log files: {exc}"
            ) from exc
        return results_file

    def _wait_for_end(
        self, config: RunConfiguration, stop_event: threading.Event
    ) -> CompletionState:
        return wait_for_test_end(
            config.log_file,
            self.settings.poll_interval / 1000,
            cancel_event=self.cancel_event,
            stop_event=stop_event,
            timeout=self.settings.completion_timeout,
            sentinel=self.settings.sentinel,
        )

    @contextmanager
    def _engine_output(self) -> Generator[None]:
        """Discard engine output on stdout when suppression is configured."""
        if not self.settings.suppress_output:
            yield
            return
        with redirect_stdout(_DiscardingWriter()):
            yield


def _redact(arguments: Sequence[str]) -> list[str]:
    redacted = list(arguments)
    for index, argument in enumerate(arguments[:-1]):
        if argument in SECRET_FLAGS:
            redacted[index + 1] = "****"
    return redacted


def _warn_on_shared_files(
    test_plans: Sequence[TestPlan], configs: Sequence[RunConfiguration]
) -> None:
    """Warn when plans in different directories write the same output files."""
    owners: dict[Path, TestPlan] = {}
    for test_plan, config in zip(test_plans, configs, strict=True):
        for path in (results_file_name(config), config.log_file):
            owner = owners.setdefault(path, test_plan)
            if owner != test_plan:
                log.warning(
                    "%s and %s both write %s, the later run replaces it",
                    owner,
                    test_plan,
                    path,
                )
