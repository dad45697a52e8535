"""Terminal session — the record the manager keeps per live child process."""

from __future__ import annotations

import codecs
import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from termservice.pty.buffer import ScrollbackBuffer


class PtyHandle(Protocol):
    """What the session manager needs from a spawned terminal process.

    ``termservice.pty.process.PtyProcess`` is the POSIX implementation.
    """

    pid: int

    def attach(
        self,
        on_data: Callable[[bytes], None],
        on_exit: Callable[[int | None], None],
    ) -> None: ...

    def write(self, data: str) -> None: ...

    def resize(self, cols: int, rows: int) -> None: ...

    def kill(self) -> None: ...

    @property
    def alive(self) -> bool: ...


SpawnFn = Callable[..., PtyHandle]
"""``spawn(argv, *, cwd, env, cols, rows) -> PtyHandle``"""


class SessionStatus(enum.StrEnum):
    """Lifecycle states for a terminal session."""

    RUNNING = "running"
    EXITED = "exited"  # Process exited on its own
    KILLED = "killed"  # Terminated through kill_session() or cleanup()


def new_session_id() -> str:
    return f"term-{uuid.uuid4().hex[:12]}"


@dataclass(eq=False)
class TerminalSession:
    """A tracked child process running in a pseudo-terminal.

    ``id``, ``shell``, ``args``, ``cwd`` and ``created_at`` never change
    after creation. ``cols`` and ``rows`` only change through a successful
    resize. ``scrollback`` grows with every output chunk.
    """

    id: str
    shell: str
    args: tuple[str, ...]
    cwd: str
    cols: int
    rows: int
    process: PtyHandle
    scrollback: ScrollbackBuffer = field(default_factory=ScrollbackBuffer)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: SessionStatus = SessionStatus.RUNNING
    exit_code: int | None = None

    # Multibyte characters may be split across reads
    _decoder: codecs.IncrementalDecoder = field(
        default_factory=lambda: codecs.getincrementaldecoder("utf-8")(errors="replace"),
        init=False,
        repr=False,
    )

    def decode(self, data: bytes, final: bool = False) -> str:
        return self._decoder.decode(data, final)

    @property
    def alive(self) -> bool:
        return self.status == SessionStatus.RUNNING

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "shell": self.shell,
            "args": list(self.args),
            "cwd": self.cwd,
            "cols": self.cols,
            "rows": self.rows,
            "status": self.status.value,
            "exit_code": self.exit_code,
            "created_at": self.created_at.isoformat(),
            "scrollback_chars": len(self.scrollback),
        }
