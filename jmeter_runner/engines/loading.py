"""Loading of engines from entry points."""

from importlib.metadata import entry_points
from typing import Any

from jmeter_runner.engines.manifest import EngineManifest

ENTRY_POINT_GROUP = "jmeter_runner.engines"


class EngineNotFoundError(Exception):
    """Raised when an engine is not found."""


def load_engine_manifest(key: str) -> EngineManifest[Any]:
    """Load an engine manifest by key.

    Args:
        key: The engine key as registered in pyproject.toml
             (e.g., "subprocess", "in-process")

    Returns:
        The engine manifest instance

    Raises:
        EngineNotFoundError: If no engine with the given key is found

    """
    entries = entry_points(group=ENTRY_POINT_GROUP)

    for entry in entries:
        if entry.name == key:
            manifest: EngineManifest[Any] = entry.load()
            return manifest

    available = sorted(e.name for e in entries)
    raise EngineNotFoundError(
        f"Engine '{key}' not found. Available engines: {available}"
    )
