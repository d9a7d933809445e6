"""Tests for output module."""

import io

import pytest

from compute_testing.output import OutputBuffer, OutputChunk


class TestOutputChunk:
    def test_is_immutable(self):
        chunk = OutputChunk("hello", "stdout")
        with pytest.raises(AttributeError):
            chunk.content = "changed"


class TestOutputBuffer:
    def test_records_in_order(self):
        buffer = OutputBuffer()
        buffer.record(OutputChunk("one", "stdout"))
        buffer.record(OutputChunk("two", "stderr"))
        assert [c.content for c in buffer.chunks] == ["one", "two"]
        assert len(buffer.chunks) == 2

    def test_chunks_is_a_copy(self):
        buffer = OutputBuffer()
        buffer.record(OutputChunk("one", "stdout"))
        buffer.chunks.clear()
        assert len(buffer.chunks) == 1

    def test_replay_routes_streams(self):
        buffer = OutputBuffer()
        buffer.record(OutputChunk("out 1", "stdout"))
        buffer.record(OutputChunk("err 1", "stderr"))
        buffer.record(OutputChunk("out 2", "stdout"))
        stdout, stderr = io.StringIO(), io.StringIO()

        buffer.replay(stdout=stdout, stderr=stderr)

        assert stdout.getvalue() == "out 1\nout 2\n"
        assert stderr.getvalue() == "err 1\n"

    def test_replay_defaults_to_sys_streams(self, capsys):
        buffer = OutputBuffer()
        buffer.record(OutputChunk("to stdout", "stdout"))
        buffer.record(OutputChunk("to stderr", "stderr"))
        buffer.replay()
        captured = capsys.readouterr()
        assert captured.out == "to stdout\n"
        assert captured.err == "to stderr\n"

    def test_replay_empty(self, capsys):
        OutputBuffer().replay()
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""
