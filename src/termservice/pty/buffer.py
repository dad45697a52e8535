"""Scrollback buffer for terminal sessions."""

from __future__ import annotations


class ScrollbackBuffer:
    """Append-only record of everything a session has printed.

    Raw text is kept as received, escape sequences included, so a client
    can replay it into its own terminal emulator. Nothing is pruned here;
    retention is up to whoever owns the session.

    Chunks are joined lazily and the joined text is cached until the next
    append, so repeated reads of a quiet session are cheap.
    """

    def __init__(self, initial: str = "") -> None:
        self._chunks: list[str] = [initial] if initial else []
        self._length: int = len(initial)
        self._joined: str | None = initial

    def append(self, text: str) -> None:
        if not text:
            return
        self._chunks.append(text)
        self._length += len(text)
        self._joined = None

    def read(self) -> str:
        """The full scrollback as one string."""
        if self._joined is None:
            self._joined = "".join(self._chunks)
            self._chunks = [self._joined] if self._joined else []
        return self._joined

    def __len__(self) -> int:
        return self._length

    def __str__(self) -> str:
        return self.read()
