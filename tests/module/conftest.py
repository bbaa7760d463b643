"""Fixtures for module tests running the fake engine in this interpreter."""

import json
from collections.abc import Generator
from pathlib import Path

import pytest

from jmeter_runner.engines.in_process import InProcessEngine, in_process_engine_manifest
from jmeter_runner.models.settings import RunSettings

FAKE_ENGINE_TARGET = "jmeter_runner.testing.fake_engine:main"


@pytest.fixture
def engine_config_json() -> str:
    """In-process engine configuration pointing at the fake engine."""
    return json.dumps({"target": FAKE_ENGINE_TARGET})


@pytest.fixture
def engine() -> Generator[InProcessEngine]:
    """Create the in-process engine through its manifest."""
    config = in_process_engine_manifest.config_cls(target=FAKE_ENGINE_TARGET)
    with in_process_engine_manifest.engine_factory(config) as engine:
        yield engine


@pytest.fixture
def test_dir(tmp_path: Path) -> Path:
    """Create a project layout with three plans and a non-plan file."""
    plans = tmp_path / "src" / "test" / "jmeter"
    (plans / "nested").mkdir(parents=True)
    for name in ("c.jmx", "a.jmx", "nested/b.jmx"):
        (plans / name).write_text("<jmeterTestPlan/>")
    (plans / "users.csv").write_text("user\n")
    return plans


@pytest.fixture
def settings(tmp_path: Path, test_dir: Path) -> RunSettings:
    """Run settings with short polling, writing below tmp_path."""
    return RunSettings(
        test_dir=test_dir,
        results_dir=tmp_path / "target" / "jmeter" / "results",
        logs_dir=tmp_path / "target" / "jmeter" / "logs",
        poll_interval=20,
        completion_timeout=10,
    )
