"""Small Python programs standing in for `fastly compute serve`, and process helpers."""

import sys
import time
from pathlib import Path

import psutil


READY_SCRIPT = """
import sys, time
print("Fastly CLI 10.2.4", flush=True)
print("Running local server...", flush=True)
print("Compiling (debug)", file=sys.stderr, flush=True)
print("INFO: Command output:", flush=True)
print("2024-01-01T00:00:00 INFO Listening on http://127.0.0.1:7676", flush=True)
time.sleep(60)
"""

SILENT_SCRIPT = """
import time
time.sleep(60)
"""

EXIT_EARLY_SCRIPT = """
import sys
import time
print("Running local server", flush=True)
print("boom", file=sys.stderr, flush=True)
sys.exit(3)
"""

# Leaves a grandchild behind in the same process group, then exits
ORPHANING_SCRIPT = """
import subprocess, sys, time
from pathlib import Path
child = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
Path("child.pid").write_text(str(child.pid))
time.sleep(0.2)
sys.exit(3)
"""

# Keeps a grandchild as a direct descendant and never becomes ready
SPAWNING_SCRIPT = """
import subprocess, sys, time
from pathlib import Path
child = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
Path("child.pid").write_text(str(child.pid))
print("spawned", flush=True)
time.sleep(60)
"""

# Pretends to be the Fastly CLI, echoing the arguments it was given
FAKE_FASTLY_SCRIPT = """
import sys, time
print("args: " + " ".join(sys.argv[1:]), flush=True)
print("Running local server", flush=True)
print("INFO: Command output:", flush=True)
addr = sys.argv[-1].split("=", 1)[1].strip('"')
print(f"INFO Listening on http://{addr}", flush=True)
time.sleep(60)
"""


def python_command(script: Path) -> str:
    return f'"{sys.executable}" "{script.name}"'


def is_gone(pid: int) -> bool:
    """True once pid no longer runs (an unreaped zombie counts as gone)."""
    try:
        return psutil.Process(pid).status() == psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return True


def wait_for_file(path: Path, timeout: float = 10.0) -> str:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if path.exists() and path.read_text():
            return path.read_text()
        time.sleep(0.05)
    raise AssertionError(f"{path} was not written within {timeout}s")
