"""Start options and defaults."""

import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import httpx
import yaml


DEFAULT_ADDR = "http://127.0.0.1:7676/"
DEFAULT_START_TIMEOUT_MSECS = 30000
DEFAULT_TERMINATE_TIMEOUT_SEC = 5.0

FASTLY_CLI_ENV = "FASTLY_CLI"

# Option names as used in JavaScript test suites
_KEY_ALIASES = {
    "appRoot": "app_root",
    "startCommand": "start_command",
    "startTimeoutMsecs": "start_timeout_msecs",
    "logDir": "log_dir",
}


class StartMode(Enum):
    ATTACHED = "attached"
    COMMAND_IN_DIRECTORY = "command_in_directory"
    CUSTOM_COMMAND = "custom_command"


@dataclass
class StartOptions:
    """Options for a single ComputeApplication.start() call."""
    addr: str = DEFAULT_ADDR
    app_root: Optional[str] = None
    start_command: Optional[str] = None
    start_timeout_msecs: int = DEFAULT_START_TIMEOUT_MSECS
    log_dir: Optional[str] = None

    def __post_init__(self):
        timeout = self.start_timeout_msecs
        if isinstance(timeout, bool) or not isinstance(timeout, int):
            raise ValueError(f"start_timeout_msecs must be an integer, got {timeout!r}")
        if timeout < 0:
            raise ValueError(f"start_timeout_msecs must be >= 0, got {timeout}")

    @property
    def mode(self) -> StartMode:
        if self.start_command is not None:
            return StartMode.CUSTOM_COMMAND
        if self.app_root is not None:
            return StartMode.COMMAND_IN_DIRECTORY
        return StartMode.ATTACHED

    @classmethod
    def from_dict(cls, data: dict) -> "StartOptions":
        normalized = {_KEY_ALIASES.get(key, key): value for key, value in data.items()}
        return cls(**normalized)

    @classmethod
    def load(cls, config_file: Path) -> "StartOptions":
        """Load options from a YAML file; a missing file gives the defaults."""
        config_file = Path(config_file)
        if config_file.exists():
            with open(config_file) as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError(f"{config_file}: expected a mapping of start options")
            return cls.from_dict(data)

        return cls()


def get_fastly_cli() -> str:
    """Locate the Fastly CLI binary."""
    return os.environ.get(FASTLY_CLI_ENV) or shutil.which("fastly") or "fastly"


def build_serve_command(origin: httpx.URL) -> str:
    """Default start command: serve the app in the current directory on origin's address."""
    port = origin.port
    if port is None:
        port = 443 if origin.scheme == "https" else 80
    host = origin.host
    if ":" in host:
        host = f"[{host}]"  # IPv6 literal
    return f'{get_fastly_cli()} compute serve --addr="{host}:{port}"'
