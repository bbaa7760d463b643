"""In-process engine implementation."""

import importlib
import logging
from collections.abc import Callable, Generator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field

from jmeter_runner.engines.base import Engine
from jmeter_runner.engines.in_process.config import InProcessEngineConfig

log = logging.getLogger(__name__)

type EntryPoint = Callable[[list[str]], object]


def resolve_entry_point(target: str) -> EntryPoint:
    """Import the callable named by a 'module:function' target."""
    module_name, _, attribute_path = target.partition(":")
    entry_point: object = importlib.import_module(module_name)
    for attribute in attribute_path.split("."):
        entry_point = getattr(entry_point, attribute)
    if not callable(entry_point):
        raise TypeError(f"Engine entry point '{target}' is not callable")
    return entry_point


@dataclass(frozen=True, kw_only=True)
class InProcessEngine(Engine):
    """Calls an embedded engine entry point with the argument vector."""

    entry_point: EntryPoint = field(repr=False)

    @classmethod
    @contextmanager
    def from_config(
        cls, config: InProcessEngineConfig
    ) -> Generator["InProcessEngine"]:
        """Create engine for the configured entry point."""
        log.info("Using in-process engine %s", config.target)
        yield cls(entry_point=resolve_entry_point(config.target))

    def start(self, arguments: Sequence[str]) -> None:
        """Call the entry point; it may return before the test ends."""
        self.entry_point(list(arguments))
