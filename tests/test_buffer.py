"""Tests for termservice.pty.buffer.ScrollbackBuffer."""

from __future__ import annotations

from termservice.pty.buffer import ScrollbackBuffer


class TestScrollbackBufferBasics:
    def test_empty(self) -> None:
        buf = ScrollbackBuffer()
        assert len(buf) == 0
        assert buf.read() == ""

    def test_initial_text(self) -> None:
        buf = ScrollbackBuffer("motd\r\n")
        assert buf.read() == "motd\r\n"
        assert len(buf) == 6

    def test_append_concatenates_verbatim(self) -> None:
        buf = ScrollbackBuffer()
        buf.append("$ ls\r\n")
        buf.append("\x1b[01;34mdir\x1b[0m\r\n")
        assert buf.read() == "$ ls\r\n\x1b[01;34mdir\x1b[0m\r\n"

    def test_append_empty_is_noop(self) -> None:
        buf = ScrollbackBuffer()
        buf.append("")
        assert len(buf) == 0

    def test_read_after_read_sees_new_text(self) -> None:
        buf = ScrollbackBuffer()
        buf.append("a")
        assert buf.read() == "a"
        buf.append("b")
        assert buf.read() == "ab"
        assert str(buf) == "ab"

    def test_never_pruned(self) -> None:
        buf = ScrollbackBuffer()
        for i in range(10_000):
            buf.append(f"line {i}\n")
        text = buf.read()
        assert text.startswith("line 0\n")
        assert text.endswith("line 9999\n")

