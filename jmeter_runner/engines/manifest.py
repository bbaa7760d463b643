"""Engine manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass

from pydantic import BaseModel

from jmeter_runner.engines.base import Engine


@dataclass(frozen=True, kw_only=True)
class EngineManifest[ConfigT: BaseModel]:
    """Manifest describing an engine plugin.

    Holds the configuration class and a factory returning a context manager
    that owns the engine's resources for the duration of a batch.
    """

    config_cls: type[ConfigT]
    engine_factory: Callable[[ConfigT], AbstractContextManager[Engine]]
