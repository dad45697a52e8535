"""PTY process — one child process attached to a pseudo-terminal."""

from __future__ import annotations

import asyncio
import enum
import fcntl
import logging
import os
import pty
import signal
import struct
import subprocess
import termios
from typing import Callable, Mapping

logger = logging.getLogger(__name__)

REAP_POLL_INTERVAL = 0.05


class ProcessStatus(enum.Enum):
    """Lifecycle states for a PTY process."""

    RUNNING = "running"
    KILLED = "killed"  # Kill requested by us
    EXITED = "exited"  # Process exited on its own


def _set_winsize(fd: int, cols: int, rows: int) -> None:
    winsize = struct.pack("HHHH", rows, cols, 0, 0)
    fcntl.ioctl(fd, termios.TIOCSWINSZ, winsize)


def _make_controlling_tty() -> None:
    # Runs in the child after setsid(): stdin is the slave end
    fcntl.ioctl(0, termios.TIOCSCTTY, 0)


class PtyProcess:
    """A child process running on the slave side of a fresh PTY pair.

    Runs in its own session and process group so ``kill()`` takes down
    everything the shell started. The master fd is non-blocking and is
    watched with ``loop.add_reader``, so reads and the exit reap happen on
    the event loop thread and no worker thread is held per session.

    Uses subprocess.Popen (not os.fork) to avoid deadlocks when spawned
    from within an asyncio event loop on macOS.
    """

    def __init__(
        self,
        argv: list[str],
        cwd: str,
        env: Mapping[str, str],
        cols: int,
        rows: int,
        read_chunk_size: int = 4096,
        kill_timeout: float = 2.0,
    ) -> None:
        self.argv = list(argv)
        self.cwd = cwd
        self._read_chunk_size = read_chunk_size
        self._kill_timeout = kill_timeout
        self._status = ProcessStatus.RUNNING
        self._exit_code: int | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._reading = False
        self._on_data: Callable[[bytes], None] | None = None
        self._on_exit: Callable[[int | None], None] | None = None

        master_fd, slave_fd = pty.openpty()
        try:
            _set_winsize(master_fd, cols, rows)
            self._proc = subprocess.Popen(
                self.argv,
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                start_new_session=True,
                preexec_fn=_make_controlling_tty,
                env=dict(env),
                cwd=cwd,
            )
        except BaseException:
            os.close(master_fd)
            raise
        finally:
            # Parent always closes slave fd
            os.close(slave_fd)

        self._master_fd = master_fd
        self.pid = self._proc.pid
        self._pgid = os.getpgid(self.pid)

        logger.info(
            "PTY process started: pid=%d pgid=%d cmd=%s",
            self.pid,
            self._pgid,
            " ".join(self.argv),
        )

    @classmethod
    def spawn(
        cls,
        argv: list[str],
        *,
        cwd: str,
        env: Mapping[str, str],
        cols: int,
        rows: int,
        read_chunk_size: int = 4096,
        kill_timeout: float = 2.0,
    ) -> PtyProcess:
        return cls(
            argv,
            cwd,
            env,
            cols,
            rows,
            read_chunk_size=read_chunk_size,
            kill_timeout=kill_timeout,
        )

    def attach(
        self,
        on_data: Callable[[bytes], None],
        on_exit: Callable[[int | None], None],
    ) -> None:
        """Start reading. Callbacks run on the event loop thread.

        ``on_exit`` fires once when the process ends on its own; never after
        ``kill()``.
        """
        if self._loop is not None:
            raise RuntimeError(f"PTY process {self.pid} is already attached")
        loop = asyncio.get_running_loop()
        self._loop = loop
        self._on_data = on_data
        self._on_exit = on_exit
        os.set_blocking(self._master_fd, False)
        loop.add_reader(self._master_fd, self._on_readable)
        self._reading = True

    def _on_readable(self) -> None:
        try:
            data = os.read(self._master_fd, self._read_chunk_size)
        except BlockingIOError:
            return
        except OSError:
            # EIO once the slave side has no more writers
            data = b""
        if not data:
            self._stop_reading()
            self._reap()
            return
        if self._status == ProcessStatus.RUNNING and self._on_data is not None:
            self._on_data(data)

    def _stop_reading(self) -> None:
        if self._reading and self._loop is not None:
            self._loop.remove_reader(self._master_fd)
        self._reading = False

    def _reap(self) -> None:
        exit_code = self._proc.poll()
        if exit_code is None:
            # The slave side closed before the child was reapable
            if self._loop is not None:
                self._loop.call_later(REAP_POLL_INTERVAL, self._reap)
            return
        self._close_master()
        if self._status != ProcessStatus.RUNNING:
            return
        self._status = ProcessStatus.EXITED
        self._exit_code = exit_code
        logger.info("PTY process %d exited (code=%s)", self.pid, exit_code)
        if self._on_exit is not None:
            self._on_exit(exit_code)

    def write(self, data: str) -> None:
        """Write ``data`` to the terminal. OS errors propagate."""
        payload = data.encode("utf-8")
        while payload:
            try:
                written = os.write(self._master_fd, payload)
            except BlockingIOError:
                # Non-blocking master with a full input queue
                written = self._write_blocking(payload)
            payload = payload[written:]

    def _write_blocking(self, payload: bytes) -> int:
        os.set_blocking(self._master_fd, True)
        try:
            return os.write(self._master_fd, payload)
        finally:
            os.set_blocking(self._master_fd, False)

    def resize(self, cols: int, rows: int) -> None:
        """Set the terminal size; the kernel signals SIGWINCH to the child."""
        _set_winsize(self._master_fd, cols, rows)

    def kill(self, sig: int = signal.SIGKILL) -> None:
        """Signal the whole process group and reap it.

        Waits at most ``kill_timeout`` seconds for the child; if it is still
        around after that, the reap continues in the background on the loop.
        """
        if self._status != ProcessStatus.RUNNING:
            return
        self._status = ProcessStatus.KILLED
        self._stop_reading()
        try:
            os.killpg(self._pgid, sig)
            logger.info("Killed PTY process %d (pgid=%d)", self.pid, self._pgid)
        except ProcessLookupError:
            logger.debug("Process group already gone: %d", self._pgid)
        finally:
            try:
                self._exit_code = self._proc.wait(timeout=self._kill_timeout)
            except subprocess.TimeoutExpired:
                logger.warning(
                    "PTY process %d did not exit within %.1fs of kill",
                    self.pid,
                    self._kill_timeout,
                )
                if self._loop is not None:
                    self._loop.call_later(REAP_POLL_INTERVAL, self._reap)
            self._close_master()

    def _close_master(self) -> None:
        if self._master_fd < 0:
            return
        self._stop_reading()
        try:
            os.close(self._master_fd)
        except OSError:
            pass
        self._master_fd = -1

    @property
    def alive(self) -> bool:
        return self._status == ProcessStatus.RUNNING

    @property
    def status(self) -> ProcessStatus:
        return self._status

    @property
    def exit_code(self) -> int | None:
        return self._exit_code
