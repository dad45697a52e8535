"""Exceptions raised by termservice.

Only spawning surfaces as an exception. Lookups on unknown sessions and
absorbed OS failures are reported through return values instead.
"""

from __future__ import annotations


class TerminalError(Exception):
    """Base class for termservice errors."""


class SessionSpawnError(TerminalError):
    """The OS refused to start the child process for a new session."""

    def __init__(self, shell: str, cwd: str, cause: BaseException) -> None:
        super().__init__(f"Failed to spawn {shell!r} in {cwd!r}: {cause}")
        self.shell = shell
        self.cwd = cwd
        self.cause = cause
