"""Output batching — coalesce rapid PTY output into periodic deliveries."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass
class _Pending:
    chunks: list[str] = field(default_factory=list)
    timer: asyncio.TimerHandle | None = None


class OutputBatcher:
    """Per-session coalescing of output chunks.

    The first chunk after a flush arms a timer for ``interval`` seconds;
    chunks arriving before it fires are appended to the same batch. When the
    timer fires, ``deliver(session_id, text)`` is called once with the
    concatenation, so each session produces at most one delivery per window.
    Bytes are never dropped by batching itself, only by ``discard``.

    Must be used from the event loop thread.
    """

    def __init__(
        self,
        interval: float,
        deliver: Callable[[str, str], None],
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._interval = interval
        self._deliver = deliver
        self._loop = loop
        self._pending: dict[str, _Pending] = {}

    @property
    def interval(self) -> float:
        return self._interval

    def push(self, session_id: str, text: str) -> None:
        """Queue ``text`` for ``session_id``, arming the flush timer if idle."""
        if not text:
            return
        pending = self._pending.setdefault(session_id, _Pending())
        pending.chunks.append(text)
        if pending.timer is None:
            loop = self._loop or asyncio.get_running_loop()
            pending.timer = loop.call_later(self._interval, self.flush, session_id)

    def flush(self, session_id: str) -> None:
        """Deliver whatever is pending for ``session_id`` right now."""
        pending = self._pending.pop(session_id, None)
        if pending is None:
            return
        if pending.timer is not None:
            pending.timer.cancel()
        if pending.chunks:
            self._deliver(session_id, "".join(pending.chunks))

    def discard(self, session_id: str) -> None:
        """Cancel the timer and drop the partial batch without delivering it."""
        pending = self._pending.pop(session_id, None)
        if pending is None:
            return
        if pending.timer is not None:
            pending.timer.cancel()
        if pending.chunks:
            logger.debug(
                "Discarded %d pending chunk(s) for session %s",
                len(pending.chunks),
                session_id,
            )

    def discard_all(self) -> None:
        for session_id in list(self._pending):
            self.discard(session_id)

    def pending(self, session_id: str) -> str:
        """Text queued for ``session_id`` but not yet delivered."""
        pending = self._pending.get(session_id)
        return "".join(pending.chunks) if pending else ""
