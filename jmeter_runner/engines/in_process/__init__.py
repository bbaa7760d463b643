"""In-process engine module."""

from jmeter_runner.engines.in_process.config import InProcessEngineConfig
from jmeter_runner.engines.in_process.engine import InProcessEngine
from jmeter_runner.engines.in_process.manifest import in_process_engine_manifest

__all__ = ["InProcessEngine", "InProcessEngineConfig", "in_process_engine_manifest"]
