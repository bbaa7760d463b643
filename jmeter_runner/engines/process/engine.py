"""Subprocess engine implementation."""

import logging
import os
import subprocess
import sys
import threading
from collections.abc import Generator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TextIO

from jmeter_runner.engines.base import Engine
from jmeter_runner.engines.process.config import ProcessEngineConfig
from jmeter_runner.exit_trap import ExitSignal

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ProcessEngine(Engine):
    """Runs JMeter in a child process.

    Output of the child is copied to whatever ``sys.stdout`` is when the run
    starts. A nonzero exit status of the child is raised as an
    :class:`ExitSignal` on the thread watching it.
    """

    config: ProcessEngineConfig
    _processes: list[subprocess.Popen[str]] = field(default_factory=list, repr=False)

    @classmethod
    @contextmanager
    def from_config(cls, config: ProcessEngineConfig) -> Generator["ProcessEngine"]:
        """Create engine that stops leftover children on exit."""
        engine = cls(config=config)
        try:
            yield engine
        finally:
            engine.terminate()

    def start(self, arguments: Sequence[str]) -> None:
        """Launch JMeter and return without waiting for it."""
        command = [*self.config.command, *arguments]
        env = {**os.environ, **self.config.env} if self.config.env else None

        log.info("Starting JMeter process: %s", command[0])
        process = subprocess.Popen(
            command,
            cwd=self.config.cwd,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
        )
        self._processes.append(process)

        threading.Thread(
            target=self._watch,
            args=(process, sys.stdout),
            name=f"jmeter-{process.pid}",
            daemon=True,
        ).start()

    @staticmethod
    def _watch(process: subprocess.Popen[str], output: TextIO) -> None:
        if process.stdout is not None:
            for line in process.stdout:
                output.write(line)

        returncode = process.wait()
        if returncode == 0:
            log.debug("JMeter process %d exited with status 0", process.pid)
            return

        log.warning("JMeter process %d exited with status %d", process.pid, returncode)
        raise ExitSignal(returncode)

    def terminate(self) -> None:
        """Stop children that are still running."""
        for process in self._processes:
            if process.poll() is not None:
                continue
            log.warning("Terminating JMeter process %d", process.pid)
            process.terminate()
            try:
                process.wait(timeout=self.config.terminate_timeout)
            except subprocess.TimeoutExpired:
                log.warning("Killing JMeter process %d", process.pid)
                process.kill()
                process.wait()
        self._processes.clear()
