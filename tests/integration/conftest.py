"""Fixtures for integration tests with a fake JMeter executable."""

import sys
import textwrap
from pathlib import Path

import pytest

from jmeter_runner.engines.process import ProcessEngineConfig

FAKE_JMETER = textwrap.dedent(
    """
    import os
    import sys
    import time

    arguments = sys.argv[1:]
    log_file = arguments[arguments.index("-j") + 1]
    results_file = arguments[arguments.index("-l") + 1]

    print("Creating summariser <summary>", flush=True)
    time.sleep(float(os.environ.get("FAKE_DELAY", "0.05")))

    status = int(os.environ.get("FAKE_STATUS", "0"))
    if status:
        sys.exit(status)

    with open(results_file, "w") as handle:
        handle.write("timeStamp,elapsed,label\\n")
    with open(log_file, "a") as handle:
        handle.write("INFO o.a.j.r.Summariser: Test has ended\\n")
    print("... end of run", flush=True)
    """
)


@pytest.fixture
def fake_jmeter(tmp_path: Path) -> Path:
    """Write a script that behaves like the JMeter launcher."""
    script = tmp_path / "fake_jmeter.py"
    script.write_text(FAKE_JMETER)
    return script


@pytest.fixture
def engine_config(fake_jmeter: Path) -> ProcessEngineConfig:
    """Engine configuration running the fake launcher."""
    return ProcessEngineConfig(command=[sys.executable, str(fake_jmeter)])
