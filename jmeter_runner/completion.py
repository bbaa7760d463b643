"""Wait for the engine to report the end of a test in its log file."""

import codecs
import logging
import os
import threading
import time
from pathlib import Path
from types import TracebackType
from typing import BinaryIO, Literal, Self

from jmeter_runner.models.settings import TEST_END_SENTINEL

log = logging.getLogger(__name__)

type CompletionState = Literal["ended", "cancelled"]


class LogReadError(OSError):
    """Raised when the engine log file cannot be read."""


class LogTail:
    """Incrementally read lines appended to a log file.

    The file may not exist yet when tailing starts. A line that has not been
    terminated yet is kept and completed by the next read. The read position
    is a byte offset, so multi-byte characters split across writes are
    decoded once they are complete.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._file: BinaryIO | None = None
        self._position = 0
        self._decoder = _new_decoder()
        self._partial = ""

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def read_lines(self) -> list[str]:
        """Return the lines appended since the previous call.

        The trailing unterminated line, if any, is included as well so that
        callers can act on it without waiting for the newline.
        """
        text = self._read_new_text()
        if not text and not self._partial:
            return []

        *lines, self._partial = (self._partial + text).split("\n")
        lines = [line.removesuffix("\r") for line in lines]
        if self._partial:
            return [*lines, self._partial]
        return lines

    def _read_new_text(self) -> str:
        try:
            if self._file is None:
                self._file = self.path.open("rb")
            elif os.fstat(self._file.fileno()).st_size < self._position:
                log.debug("Log file %s was truncated, reading from start", self.path)
                self._file.seek(0)
                self._position = 0
                self._decoder = _new_decoder()
                self._partial = ""
            data = self._file.read()
        except FileNotFoundError:
            return ""
        except OSError as exc:
            raise LogReadError(f"Can't read log file {self.path}: {exc}") from exc

        self._position += len(data)
        return self._decoder.decode(data)


def _new_decoder() -> codecs.IncrementalDecoder:
    return codecs.getincrementaldecoder("utf-8")(errors="replace")


def wait_for_test_end(
    log_path: Path,
    poll_interval: float = 1.0,
    *,
    cancel_event: threading.Event | None = None,
    stop_event: threading.Event | None = None,
    timeout: float | None = None,
    sentinel: str = TEST_END_SENTINEL,
) -> CompletionState:
    """Block until the sentinel appears in the log file.

    Args:
        log_path: Log file written by the engine
        poll_interval: Seconds between reads
        cancel_event: Setting this event stops the wait
        stop_event: Set when the engine stopped without reporting the end
            of the test; also stops the wait, checked once per poll
        timeout: Maximum wait time in seconds (default: wait forever)
        sentinel: Text marking the end of the test

    Returns:
        "ended" once the sentinel was seen, "cancelled" if the wait was
        cancelled or the engine stopped first

    Raises:
        TimeoutError: If the test does not end within timeout
        LogReadError: If the log file cannot be read

    """
    cancel_event = cancel_event or threading.Event()
    deadline = None if timeout is None else time.monotonic() + timeout

    with LogTail(log_path) as tail:
        while True:
            if any(sentinel in line for line in tail.read_lines()):
                return "ended"

            if deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError(f"Test did not end within {timeout} seconds")

            if stop_event is not None and stop_event.is_set():
                log.info("Engine stopped before %s reported the end", log_path.name)
                return "cancelled"

            if cancel_event.wait(poll_interval):
                log.info("Stopped waiting for %s", log_path.name)
                return "cancelled"
