"""Subprocess engine manifest."""

from jmeter_runner.engines.manifest import EngineManifest
from jmeter_runner.engines.process.config import ProcessEngineConfig
from jmeter_runner.engines.process.engine import ProcessEngine

process_engine_manifest = EngineManifest(
    config_cls=ProcessEngineConfig,
    engine_factory=ProcessEngine.from_config,
)
