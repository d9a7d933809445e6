"""Errors raised by the application lifecycle."""

from typing import Optional


class ComputeApplicationError(Exception):
    """Base class for all compute_testing errors."""


class AlreadyStartedError(ComputeApplicationError):
    def __init__(self):
        super().__init__("Already started")


class NotStartedError(ComputeApplicationError):
    def __init__(self):
        super().__init__("ComputeApplication must be started before fetch()")


class InvalidAppRootError(ComputeApplicationError, ValueError):
    def __init__(self, app_root: str, reason: str = "is not a directory"):
        self.app_root = app_root
        super().__init__(f"Specified appRoot '{app_root}' {reason}.")


class CrossOriginError(ComputeApplicationError):
    """Raised when fetch() targets a host other than the started application."""

    def __init__(self, url: str, origin: str):
        self.url = url
        self.origin = origin
        super().__init__(
            f"fetch() must be made on same host as ComputeApplication "
            f"(got {url}, expected host of {origin})"
        )


class StartupError(ComputeApplicationError):
    """A start attempt failed after the process was spawned.

    By the time this reaches the caller the captured output has been replayed
    and the process tree has been shut down.
    """


class ProcessSpawnError(StartupError):
    def __init__(self, command: str, cause: Optional[BaseException] = None):
        self.command = command
        self.cause = cause
        message = f"Server process error: {command}"
        if cause is not None:
            message += f" ({cause})"
        super().__init__(message)


class ProcessExitedError(StartupError):
    def __init__(self, exit_code: Optional[int]):
        self.exit_code = exit_code
        super().__init__(f"Server process exited with code {exit_code}.")


class ProcessClosedError(StartupError):
    def __init__(self, exit_code: Optional[int]):
        self.exit_code = exit_code
        super().__init__(f"Server process closed with code {exit_code}.")


class StartupTimeoutError(StartupError):
    def __init__(self, timeout_msecs: int):
        self.timeout_msecs = timeout_msecs
        super().__init__(f"Server start timeout after {timeout_msecs}ms")
