"""Start, address and stop Fastly Compute applications from tests."""

from .application import ComputeApplication
from .config import DEFAULT_ADDR, DEFAULT_START_TIMEOUT_MSECS, StartMode, StartOptions
from .errors import (
    AlreadyStartedError,
    ComputeApplicationError,
    CrossOriginError,
    InvalidAppRootError,
    NotStartedError,
    ProcessClosedError,
    ProcessExitedError,
    ProcessSpawnError,
    StartupError,
    StartupTimeoutError,
)
from .output import OutputChunk
from .readiness import READY_MARKERS, ReadinessDetector


__all__ = [
    "ComputeApplication",
    "StartOptions",
    "StartMode",
    "DEFAULT_ADDR",
    "DEFAULT_START_TIMEOUT_MSECS",
    "OutputChunk",
    "READY_MARKERS",
    "ReadinessDetector",
    "ComputeApplicationError",
    "AlreadyStartedError",
    "NotStartedError",
    "InvalidAppRootError",
    "CrossOriginError",
    "StartupError",
    "ProcessSpawnError",
    "ProcessExitedError",
    "ProcessClosedError",
    "StartupTimeoutError",
]
