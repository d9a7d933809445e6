"""Race between readiness, process failure and the startup timeout."""

import queue
from typing import Callable

from .errors import (
    ProcessClosedError,
    ProcessExitedError,
    ProcessSpawnError,
    StartupError,
    StartupTimeoutError,
)
from .output import OutputBuffer
from .process import ManagedProcess, ProcessEvent
from .readiness import ReadinessDetector
from .timers import StartupTimer


class StartupRace:
    """Waits for the first of: ready, process failure, timeout.

    Subscribes to the process on construction so no event published after
    that point is missed. Whichever signal arrives first decides the outcome;
    later events for this attempt are ignored. On failure the captured output
    is replayed and ``cleanup`` is called before the error is raised.
    """

    def __init__(
        self,
        process: ManagedProcess,
        detector: ReadinessDetector,
        timeout_msecs: int,
        output: OutputBuffer,
        cleanup: Callable[[], None],
    ):
        self.process = process
        self.detector = detector
        self.timeout_msecs = timeout_msecs
        self.output = output
        self.cleanup = cleanup
        self.settled = False
        self._events: queue.Queue[ProcessEvent] = queue.Queue()
        self._listener = self._events.put
        process.add_listener(self._listener)

    def wait(self):
        """Block until ready. Raises a StartupError subclass otherwise."""
        timer = StartupTimer(self.timeout_msecs / 1000)
        timer.start()

        while not self.settled:
            if timer.expired():
                self._fail(StartupTimeoutError(self.timeout_msecs))
            try:
                event = self._events.get(timeout=timer.remaining())
            except queue.Empty:
                continue
            self._handle(event)

    def _handle(self, event: ProcessEvent):
        if event.kind == "output":
            chunk = event.chunk
            if chunk.stream == "stdout" and self.detector.feed(chunk.content):
                self._settle()
        elif event.kind == "exit":
            self._fail(ProcessExitedError(event.exit_code))
        elif event.kind == "closed":
            self._fail(ProcessClosedError(event.exit_code))
        elif event.kind == "error":
            error = ProcessSpawnError(self.process.command, event.error)
            self._fail(error, cause=event.error)

    def _settle(self):
        self.settled = True
        self.process.remove_listener(self._listener)

    def _fail(self, error: StartupError, cause: BaseException | None = None):
        self._settle()
        self.output.replay()
        self.cleanup()
        raise error from cause
