"""Test plan identity."""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath


@dataclass(frozen=True, kw_only=True)
class TestPlan:
    """A test plan file discovered under a source root.

    The relative path always uses ``/`` separators so that ordering and
    pattern matching do not depend on the host platform.
    """

    __test__ = False

    root: Path
    relative_path: str

    @property
    def path(self) -> Path:
        """Location of the test plan on disk."""
        return self.root / self.relative_path

    @property
    def name(self) -> str:
        """File name of the test plan, e.g. ``checkout.jmx``."""
        return PurePosixPath(self.relative_path).name

    def __str__(self) -> str:
        return self.relative_path
