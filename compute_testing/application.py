"""Lifecycle management for a Compute application under test."""

import dataclasses
from pathlib import Path
from typing import Optional

import httpx

from .app_root import resolve_app_root
from .config import (
    DEFAULT_TERMINATE_TIMEOUT_SEC,
    StartMode,
    StartOptions,
    build_serve_command,
)
from .errors import AlreadyStartedError, CrossOriginError, NotStartedError
from .output import OutputBuffer
from .process import ManagedProcess
from .readiness import ReadinessDetector
from .startup import StartupRace


class ComputeApplication:
    """Starts, addresses and stops one Compute application.

    Three ways to start:

    1. ``start_command``: run the command in ``app_root`` (default ``./``).
    2. ``app_root`` only: run ``fastly compute serve`` there, on ``addr``.
    3. neither: attach to an app already running at ``addr``, possibly remote.

    Modes 1 and 2 own a child process, which is considered ready once its
    output shows the local server listening, and which is killed together
    with all of its descendants on shutdown(). Mode 3 owns nothing.
    """

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        terminate_timeout: float = DEFAULT_TERMINATE_TIMEOUT_SEC,
    ):
        self.http_client = http_client
        self.terminate_timeout = terminate_timeout
        self._origin: Optional[httpx.URL] = None
        self._mode: Optional[StartMode] = None
        self._process: Optional[ManagedProcess] = None
        self._starting = False

    @property
    def origin(self) -> Optional[httpx.URL]:
        return self._origin

    @property
    def mode(self) -> Optional[StartMode]:
        return self._mode

    @property
    def pid(self) -> Optional[int]:
        process = self._process
        return process.pid if process is not None else None

    @property
    def is_started(self) -> bool:
        return self._origin is not None

    def __enter__(self) -> "ComputeApplication":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    def start(self, options: Optional[StartOptions] = None, **overrides) -> None:
        """Start (or attach to) the application and wait until it is ready."""
        if self._starting or self._origin is not None or self._process is not None:
            raise AlreadyStartedError()

        if options is None:
            options = StartOptions(**overrides)
        elif overrides:
            options = dataclasses.replace(options, **overrides)

        self._starting = True
        try:
            origin = httpx.URL(options.addr)
            mode = options.mode
            if mode is not StartMode.ATTACHED:
                self._start_process(options, origin)
            self._origin = origin
            self._mode = mode
        except BaseException:
            self.shutdown()
            raise
        finally:
            self._starting = False

    def _start_process(self, options: StartOptions, origin: httpx.URL):
        cwd = resolve_app_root(options.app_root if options.app_root is not None else "./")
        command = options.start_command
        if command is None:
            command = build_serve_command(origin)

        log_dir = Path(options.log_dir) if options.log_dir is not None else None
        process = ManagedProcess.spawn(command, cwd, log_dir=log_dir)
        self._process = process

        output = OutputBuffer()

        def buffer_output(event):
            if event.kind == "output":
                output.record(event.chunk)

        process.add_listener(buffer_output)
        race = StartupRace(
            process,
            ReadinessDetector(),
            options.start_timeout_msecs,
            output,
            cleanup=self.shutdown,
        )
        process.watch()
        race.wait()

        # Captured output is only kept for diagnosing a failed start
        process.remove_listener(buffer_output)

    def shutdown(self) -> None:
        """Stop the application's process tree, if any. Safe to call repeatedly."""
        process, self._process = self._process, None
        if process is not None:
            process.terminate_tree(timeout=self.terminate_timeout)
        self._origin = None
        self._mode = None

    def resolve_url(self, target: str | httpx.URL | httpx.Request = "/") -> httpx.URL:
        """Resolve a fetch target against the origin, enforcing same host."""
        origin = self._origin
        if origin is None:
            raise NotStartedError()

        if isinstance(target, httpx.Request):
            url = target.url
        elif isinstance(target, httpx.URL):
            url = origin.join(target) if target.is_relative_url else target
        else:
            url = origin.join(target)

        if url.host != origin.host:
            raise CrossOriginError(str(url), str(origin))
        return url

    def fetch(
        self,
        target: str | httpx.URL | httpx.Request = "/",
        method: str = "GET",
        **kwargs,
    ) -> httpx.Response:
        """Send a request to the application and return the response unmodified.

        Args:
            target: Path relative to the origin, absolute URL on the same
                host, or a prepared httpx.Request.
            method: HTTP method, ignored for httpx.Request targets.
            **kwargs: Passed through to httpx.Client.request (headers,
                content, timeout, ...).
        """
        url = self.resolve_url(target)

        if self.http_client is not None:
            return self._send(self.http_client, target, url, method, kwargs)
        with httpx.Client() as client:
            return self._send(client, target, url, method, kwargs)

    @staticmethod
    def _send(client: httpx.Client, target, url: httpx.URL, method: str, kwargs: dict) -> httpx.Response:
        if isinstance(target, httpx.Request):
            return client.send(target)
        return client.request(method, url, **kwargs)
