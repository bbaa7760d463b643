"""In-process engine manifest."""

from jmeter_runner.engines.in_process.config import InProcessEngineConfig
from jmeter_runner.engines.in_process.engine import InProcessEngine
from jmeter_runner.engines.manifest import EngineManifest

in_process_engine_manifest = EngineManifest(
    config_cls=InProcessEngineConfig,
    engine_factory=InProcessEngine.from_config,
)
