"""Shared fixtures."""

import textwrap

import pytest

from compute_testing.tests.support import python_command


@pytest.fixture
def write_script(tmp_path):
    """Write a script into tmp_path and return the shell command that runs it."""
    def _write(source: str, name: str = "server.py") -> str:
        script = tmp_path / name
        script.write_text(textwrap.dedent(source))
        return python_command(script)
    return _write
