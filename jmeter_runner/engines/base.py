"""Abstract base class for load-testing engines."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class Engine(ABC):
    """Abstract base for ways of starting JMeter.

    ``start`` is fire-and-forget: it may return while the test is still
    running on background threads or in a child process. The only reliable
    signal that a run is over is the end-of-test line in the log file named
    by the ``-j`` argument. An engine reports failure by raising
    ``SystemExit`` (directly or via ``sys.exit``) with a nonzero status,
    either from ``start`` or from a thread it spawned.
    """

    @abstractmethod
    def start(self, arguments: Sequence[str]) -> None:
        """Start a test run.

        Args:
            arguments: JMeter command line arguments for this run

        """
