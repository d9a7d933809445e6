"""Managed OS process and process-tree termination."""

import os
import signal
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Literal, Optional

import psutil

from .errors import ProcessSpawnError
from .output import OutputChunk, Stream


@dataclass(frozen=True)
class ProcessEvent:
    """Something that happened to a managed process."""
    kind: Literal["output", "exit", "closed", "error"]
    chunk: Optional[OutputChunk] = None
    exit_code: Optional[int] = None
    error: Optional[BaseException] = None


Listener = Callable[[ProcessEvent], None]


def _process_tree(pid: int) -> list[psutil.Process]:
    """Collect pid, its descendants, and the rest of its process group."""
    members: dict[int, psutil.Process] = {}

    try:
        root = psutil.Process(pid)
        members[pid] = root
        for child in root.children(recursive=True):
            members[child.pid] = child
    except psutil.NoSuchProcess:
        pass

    # Orphans re-parented after their parent exited stay in the session's
    # process group, so walk the process table for them too.
    if hasattr(os, "getpgid"):
        for proc in psutil.process_iter():
            if proc.pid in members or proc.pid == os.getpid():
                continue
            try:
                if os.getpgid(proc.pid) == pid:
                    members[proc.pid] = proc
            except (ProcessLookupError, PermissionError, psutil.NoSuchProcess):
                continue

    return list(members.values())


def kill_process_tree(pid: int, timeout: float = 5.0) -> None:
    """Terminate a process and every descendant, waiting until they are gone.

    Sends SIGTERM first; anything still alive after timeout gets SIGKILL.
    """
    procs = _process_tree(pid)
    if not procs:
        return

    for proc in procs:
        try:
            proc.terminate()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            continue

    _, alive = psutil.wait_procs(procs, timeout=timeout)
    if not alive:
        return

    for proc in alive:
        try:
            proc.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    psutil.wait_procs(alive, timeout=timeout)


def _open_log_files(log_dir: Path) -> dict:
    log_dir.mkdir(parents=True, exist_ok=True)
    stdout_log = open(log_dir / "service.stdout.log", "w")
    try:
        stderr_log = open(log_dir / "service.stderr.log", "w")
    except OSError:
        stdout_log.close()
        raise
    return {"stdout": stdout_log, "stderr": stderr_log}


class ManagedProcess:
    """A shell command running in its own session, with captured output.

    Output is read line by line on background threads and published, along
    with exit and stream-close notifications, to registered listeners.
    Listeners are called from those threads.
    """

    def __init__(self, popen: subprocess.Popen, command: str, log_files: Optional[dict] = None):
        self.command = command
        self._popen = popen
        self._listeners: tuple[Listener, ...] = ()
        self._threads: list[threading.Thread] = []
        self._open_streams = 2
        self._lock = threading.Lock()
        self._watching = False
        self._terminating = False
        self._terminated = False
        self._log_files = log_files or {}

    @classmethod
    def spawn(cls, command: str, cwd: Path, log_dir: Optional[Path] = None) -> "ManagedProcess":
        """Start command through the shell with cwd as working directory."""
        # Before Popen: nothing may be left running if this fails
        log_files = _open_log_files(Path(log_dir)) if log_dir is not None else {}
        try:
            popen = subprocess.Popen(
                command,
                shell=True,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                start_new_session=True,  # Own process group for tree teardown
            )
        except OSError as e:
            for log_file in log_files.values():
                log_file.close()
            raise ProcessSpawnError(command, e) from e
        return cls(popen, command, log_files=log_files)

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._popen.poll()

    def add_listener(self, listener: Listener):
        self._listeners = self._listeners + (listener,)

    def remove_listener(self, listener: Listener):
        self._listeners = tuple(l for l in self._listeners if l != listener)

    def _emit(self, event: ProcessEvent):
        for listener in self._listeners:
            listener(event)

    def watch(self):
        """Start the reader and waiter threads. Call after adding listeners."""
        if self._watching:
            return
        self._watching = True

        self._threads = [
            threading.Thread(
                target=self._read_stream,
                args=(self._popen.stdout, "stdout"),
                name=f"compute-stdout-{self.pid}",
                daemon=True,
            ),
            threading.Thread(
                target=self._read_stream,
                args=(self._popen.stderr, "stderr"),
                name=f"compute-stderr-{self.pid}",
                daemon=True,
            ),
            threading.Thread(
                target=self._wait_for_exit,
                name=f"compute-wait-{self.pid}",
                daemon=True,
            ),
        ]
        for thread in self._threads:
            thread.start()

    def _read_stream(self, stream, stream_name: Stream):
        log_file = self._log_files.get(stream_name)
        try:
            for raw_line in stream:
                if log_file is not None:
                    log_file.write(raw_line)
                    log_file.flush()
                chunk = OutputChunk(raw_line.rstrip("\r\n"), stream_name)
                self._emit(ProcessEvent("output", chunk=chunk))
        except (OSError, ValueError) as e:
            if not self._terminating:
                self._emit(ProcessEvent("error", error=e))
            return

        with self._lock:
            self._open_streams -= 1
            all_closed = self._open_streams == 0
        if all_closed:
            self._emit(ProcessEvent("closed", exit_code=self.returncode))

    def _wait_for_exit(self):
        exit_code = self._popen.wait()
        self._emit(ProcessEvent("exit", exit_code=exit_code))

    def terminate_tree(self, timeout: float = 5.0):
        """Kill the process and all of its descendants and wait for them."""
        if self._terminated:
            return
        self._terminating = True

        kill_process_tree(self.pid, timeout=timeout)

        try:
            self._popen.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            # Direct child escaped the tree walk; fall back to its group
            try:
                os.killpg(self.pid, signal.SIGKILL)
            except (ProcessLookupError, PermissionError, AttributeError):
                self._popen.kill()
            self._popen.wait()

        for thread in self._threads:
            thread.join(timeout=timeout)

        if not any(thread.is_alive() for thread in self._threads):
            for stream in (self._popen.stdout, self._popen.stderr):
                if stream is not None:
                    stream.close()

        for log_file in self._log_files.values():
            log_file.close()

        self._terminated = True
