"""Trap attempts by the engine to terminate the whole process.

JMeter reports the end of a run by exiting the process. While a trap is
active, ``sys.exit`` and ``os._exit`` raise :class:`ExitSignal` instead, and
failures on threads spawned by the engine are collected by a
:class:`ThreadSupervisor` rather than printed by the default thread hook.
Everything is restored when the trap is released.
"""

import logging
import os
import queue
import sys
import threading
from collections.abc import Callable, Generator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import NoReturn

log = logging.getLogger(__name__)

_active = threading.Lock()


class ExitSignal(SystemExit):
    """Raised in place of process termination while a trap is active."""

    code: int

    def __init__(self, code: int) -> None:
        super().__init__(code)


class EngineError(Exception):
    """Raised when the trapped action fails with something other than an exit."""


def normalize_exit_code(code: object) -> int:
    """Map a ``sys.exit`` argument to the status the interpreter would use."""
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    return 1


def _raise_exit_signal(code: object = None) -> NoReturn:
    raise ExitSignal(normalize_exit_code(code))


@dataclass(frozen=True, kw_only=True)
class ExitOutcome:
    """How the trapped action ended.

    ``code`` is None when the action returned without asking to exit.
    """

    code: int | None = None

    @property
    def completed(self) -> bool:
        """Whether the action returned normally or exited with status 0."""
        return not self.code


@dataclass(frozen=True, kw_only=True)
class ThreadFailure:
    """An unhandled exception that ended a thread spawned by the engine."""

    thread_name: str
    exception: BaseException

    @property
    def exit_code(self) -> int | None:
        """Exit status the thread asked for, None for ordinary failures."""
        if isinstance(self.exception, SystemExit):
            return normalize_exit_code(self.exception.code)
        return None

    def __str__(self) -> str:
        return f"Error in thread {self.thread_name}: {self.exception!r}"


@dataclass(frozen=True, kw_only=True)
class ThreadSupervisor:
    """Collects failures of threads that die while a trap is active.

    A thread asking for a nonzero exit also sets ``cancel_event`` so that a
    pending wait for the end of the test stops early.
    """

    cancel_event: threading.Event = field(default_factory=threading.Event)
    _failures: queue.SimpleQueue[ThreadFailure] = field(
        default_factory=queue.SimpleQueue, repr=False
    )

    def excepthook(self, args: threading.ExceptHookArgs) -> None:
        """Replacement for ``threading.excepthook``."""
        exception = args.exc_value
        if exception is None:
            return
        if isinstance(exception, SystemExit) and not normalize_exit_code(exception.code):
            return

        name = args.thread.name if args.thread is not None else "<unknown>"
        failure = ThreadFailure(thread_name=name, exception=exception)
        log.error("%s", failure)
        self._failures.put(failure)

        if failure.exit_code:
            self.cancel_event.set()

    def drain(self) -> Sequence[ThreadFailure]:
        """Return and forget the failures collected so far."""
        failures: list[ThreadFailure] = []
        while True:
            try:
                failures.append(self._failures.get_nowait())
            except queue.Empty:
                return failures


@contextmanager
def exit_trap(
    cancel_event: threading.Event | None = None,
) -> Generator[ThreadSupervisor]:
    """Intercept process termination until the context exits.

    Args:
        cancel_event: Event set when an engine thread exits with a nonzero
            status. A fresh event is used when omitted.

    Raises:
        RuntimeError: If another trap is already active

    """
    if not _active.acquire(blocking=False):
        raise RuntimeError("An exit trap is already active")

    supervisor = ThreadSupervisor(cancel_event=cancel_event or threading.Event())
    previous_exit = sys.exit
    previous_os_exit = os._exit
    previous_hook = threading.excepthook

    sys.exit = _raise_exit_signal
    os._exit = _raise_exit_signal
    threading.excepthook = supervisor.excepthook
    try:
        yield supervisor
    finally:
        sys.exit = previous_exit
        os._exit = previous_os_exit
        threading.excepthook = previous_hook
        _active.release()


def invoke_trapped(action: Callable[[], object]) -> ExitOutcome:
    """Call action, turning a request to exit into an outcome.

    Raises:
        EngineError: If action fails with anything other than an exit

    """
    try:
        action()
    except SystemExit as exc:
        code = normalize_exit_code(exc.code)
        log.debug("Engine requested exit with status %d", code)
        return ExitOutcome(code=code)
    except Exception as exc:
        raise EngineError(f"Engine invocation failed: {exc}") from exc
    return ExitOutcome()


def with_exit_trap(action: Callable[[], object]) -> ExitOutcome:
    """Run action inside a fresh exit trap."""
    with exit_trap():
        return invoke_trapped(action)
