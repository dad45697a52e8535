"""Terminal service — creates, drives and tears down terminal sessions."""

from __future__ import annotations

import errno
import logging
import subprocess
from typing import Any, Mapping

from termservice.config import TerminalConfig
from termservice.errors import SessionSpawnError
from termservice.events import (
    DataCallback,
    ExitCallback,
    SubscriberRegistry,
    Unsubscribe,
)
from termservice.host import PlatformContext
from termservice.paths import normalize_cwd
from termservice.pty.batcher import OutputBatcher
from termservice.pty.session import (
    PtyHandle,
    SessionStatus,
    SpawnFn,
    TerminalSession,
    new_session_id,
)
from termservice.shell import ShellSpec, resolve_shell
from termservice.wsl import is_running_under_wsl

logger = logging.getLogger(__name__)


def _make_pty_spawner(read_chunk_size: int, kill_timeout: float) -> SpawnFn:
    def spawn(
        argv: list[str],
        *,
        cwd: str,
        env: Mapping[str, str],
        cols: int,
        rows: int,
    ) -> PtyHandle:
        try:
            from termservice.pty.process import PtyProcess
        except ImportError as e:
            raise OSError(
                errno.ENOSYS, "pseudo-terminals are not available on this platform"
            ) from e
        return PtyProcess.spawn(
            argv,
            cwd=cwd,
            env=env,
            cols=cols,
            rows=rows,
            read_chunk_size=read_chunk_size,
            kill_timeout=kill_timeout,
        )

    return spawn


class TerminalService:
    """Owns every live terminal session of the host application.

    - Sessions are tracked by id, in creation order
    - A session is tracked exactly as long as its process is believed alive
    - Output is appended to scrollback immediately and delivered to data
      subscribers in batches (one delivery per session per window)
    - Exit subscribers hear about each process that ends on its own once;
      sessions ended through ``kill_session``/``cleanup`` are not reported

    Not thread-safe: use it from the event loop thread. ``create_session``
    must be called while that loop is running.
    """

    def __init__(
        self,
        config: TerminalConfig | None = None,
        context: PlatformContext | None = None,
        spawn: SpawnFn | None = None,
    ) -> None:
        self._config = config or TerminalConfig()
        self._context = context
        self._spawn = spawn or _make_pty_spawner(
            self._config.read_chunk_size, self._config.kill_timeout
        )
        self._sessions: dict[str, TerminalSession] = {}
        self._issued_ids: set[str] = set()
        self._data_subscribers: SubscriberRegistry = SubscriberRegistry("data")
        self._exit_subscribers: SubscriberRegistry = SubscriberRegistry("exit")
        self._batcher = OutputBatcher(
            self._config.batch_interval, self._data_subscribers.emit
        )

    @property
    def config(self) -> TerminalConfig:
        return self._config

    @property
    def context(self) -> PlatformContext:
        return self._context or PlatformContext.from_host()

    # ------------------------------------------------------------------
    # Platform
    # ------------------------------------------------------------------

    def detect_shell(self) -> ShellSpec:
        return resolve_shell(self.context)

    def is_wsl(self) -> bool:
        return is_running_under_wsl(self.context)

    def get_platform_info(self) -> dict[str, Any]:
        ctx = self.context
        return {
            "platform": ctx.system,
            "arch": ctx.arch,
            "default_shell": resolve_shell(ctx).shell,
            "is_wsl": is_running_under_wsl(ctx),
        }

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def create_session(
        self,
        cwd: str | None = None,
        cols: int | None = None,
        rows: int | None = None,
        env: Mapping[str, str] | None = None,
    ) -> TerminalSession:
        """Spawn the user's shell in a new PTY and start tracking it.

        Args:
            cwd: Requested working directory; falls back to the home dir.
            cols: Terminal width (default from config, 80).
            rows: Terminal height (default from config, 24).
            env: Extra environment variables for the child.

        Raises:
            SessionSpawnError: The OS refused to start the process. Nothing
                is registered in that case.
        """
        ctx = self.context
        spec = resolve_shell(ctx)
        effective_cwd = normalize_cwd(cwd, ctx.home, ctx)
        if cols is None:
            cols = self._config.default_cols
        if rows is None:
            rows = self._config.default_rows

        child_env = {
            **ctx.environ,
            "TERM": self._config.term,
            "COLORTERM": self._config.colorterm,
            **(env or {}),
        }

        try:
            process = self._spawn(
                spec.argv(), cwd=effective_cwd, env=child_env, cols=cols, rows=rows
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.error("Failed to spawn %s in %s: %s", spec.shell, effective_cwd, e)
            raise SessionSpawnError(spec.shell, effective_cwd, e) from e

        session = TerminalSession(
            id=self._new_id(),
            shell=spec.shell,
            args=spec.args,
            cwd=effective_cwd,
            cols=cols,
            rows=rows,
            process=process,
        )
        session_id = session.id
        self._sessions[session_id] = session

        try:
            process.attach(
                lambda data: self._handle_output(session_id, data),
                lambda exit_code: self._handle_exit(session_id, exit_code),
            )
        except BaseException:
            self._sessions.pop(session_id, None)
            process.kill()
            raise

        logger.info(
            "Created terminal session %s: %s %s (cwd=%s, %dx%d)",
            session_id,
            spec.shell,
            " ".join(spec.args),
            effective_cwd,
            cols,
            rows,
        )
        return session

    def write(self, session_id: str, data: str) -> bool:
        """Send ``data`` verbatim to the session's terminal.

        Returns False for unknown or already-dead sessions. OS errors while
        writing to a live terminal propagate.
        """
        session = self._sessions.get(session_id)
        if session is None or not session.process.alive:
            return False
        session.process.write(data)
        return True

    def resize(self, session_id: str, cols: int, rows: int) -> bool:
        """Resize the session's terminal. False if unknown or the resize failed."""
        session = self._sessions.get(session_id)
        if session is None:
            return False
        try:
            session.process.resize(cols, rows)
        except Exception as e:
            logger.warning("Error resizing session %s: %s", session_id, e)
            return False
        session.cols = cols
        session.rows = rows
        return True

    def kill_session(self, session_id: str) -> bool:
        """Stop tracking the session and ask its process to terminate.

        True for any known session, even if the kill itself failed; False
        only when ``session_id`` is unknown.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        self._batcher.discard(session_id)
        session.status = SessionStatus.KILLED
        try:
            session.process.kill()
        except Exception as e:
            logger.warning("Error killing session %s: %s", session_id, e)
        logger.info("Killed terminal session %s", session_id)
        return True

    def cleanup(self) -> None:
        """Kill all sessions. Called on shutdown; never raises."""
        for session_id in list(self._sessions):
            try:
                self.kill_session(session_id)
            except Exception:
                logger.exception("Error cleaning up session %s", session_id)
        self._batcher.discard_all()
        logger.info("All terminal sessions cleaned up")

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_session(self, session_id: str) -> TerminalSession | None:
        return self._sessions.get(session_id)

    def get_all_sessions(self) -> list[TerminalSession]:
        """All live sessions in creation order."""
        return list(self._sessions.values())

    def get_scrollback(self, session_id: str) -> str | None:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        return session.scrollback.read()

    def list_sessions(self) -> list[dict[str, Any]]:
        """Summaries of live sessions, including output not yet delivered."""
        return [
            {**s.to_dict(), "pending_chars": len(self._batcher.pending(s.id))}
            for s in self._sessions.values()
        ]

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def on_data(self, callback: DataCallback) -> Unsubscribe:
        """Receive ``(session_id, text)`` batches for every session."""
        return self._data_subscribers.subscribe(callback)

    def on_exit(self, callback: ExitCallback) -> Unsubscribe:
        """Receive ``(session_id, exit_code)`` when a process exits on its own."""
        return self._exit_subscribers.subscribe(callback)

    # ------------------------------------------------------------------
    # Process events
    # ------------------------------------------------------------------

    def _new_id(self) -> str:
        session_id = new_session_id()
        while session_id in self._issued_ids:
            session_id = new_session_id()
        self._issued_ids.add(session_id)
        return session_id

    def _handle_output(self, session_id: str, data: bytes) -> None:
        session = self._sessions.get(session_id)
        if session is None:
            return
        text = session.decode(data)
        if not text:
            return
        session.scrollback.append(text)
        self._batcher.push(session_id, text)

    def _handle_exit(self, session_id: str, exit_code: int | None) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            # Already killed or reported
            return
        tail = session.decode(b"", final=True)
        if tail:
            session.scrollback.append(tail)
            self._batcher.push(session_id, tail)
        # Output printed before exit reaches subscribers ahead of the exit event
        self._batcher.flush(session_id)
        session.status = SessionStatus.EXITED
        session.exit_code = exit_code
        logger.info("Terminal session %s exited (code=%s)", session_id, exit_code)
        self._exit_subscribers.emit(session_id, exit_code)


_service: TerminalService | None = None


def get_terminal_service() -> TerminalService:
    """The process-wide service, created on first use."""
    global _service
    if _service is None:
        _service = TerminalService(TerminalConfig.load())
    return _service


def shutdown_terminal_service() -> None:
    """Kill every session and drop the shared service."""
    global _service
    if _service is None:
        return
    _service.cleanup()
    _service = None
