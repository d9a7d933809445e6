"""Captured process output."""

import sys
import threading
from dataclasses import dataclass
from typing import Literal, Optional, TextIO


Stream = Literal["stdout", "stderr"]


@dataclass(frozen=True)
class OutputChunk:
    """One line of output from the managed process."""
    content: str
    stream: Stream


class OutputBuffer:
    """Ordered record of output chunks, kept for diagnosis of failed starts."""

    def __init__(self):
        self._chunks: list[OutputChunk] = []
        self._lock = threading.Lock()

    def record(self, chunk: OutputChunk):
        with self._lock:
            self._chunks.append(chunk)

    @property
    def chunks(self) -> list[OutputChunk]:
        with self._lock:
            return list(self._chunks)

    def replay(self, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None):
        """Write every chunk, in arrival order, to the stream it came from."""
        stdout = stdout or sys.stdout
        stderr = stderr or sys.stderr
        for chunk in self.chunks:
            if chunk.stream == "stdout":
                print(chunk.content, file=stdout)
            else:
                print(chunk.content, file=stderr)
        stdout.flush()
        stderr.flush()
