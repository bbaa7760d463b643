"""Subprocess engine module."""

from jmeter_runner.engines.process.config import ProcessEngineConfig
from jmeter_runner.engines.process.engine import ProcessEngine
from jmeter_runner.engines.process.manifest import process_engine_manifest

__all__ = ["ProcessEngine", "ProcessEngineConfig", "process_engine_manifest"]
