"""Terminal sessions — PTY-backed child processes with batched output.

Every interactive shell runs in a managed PTY session with its own process
group, an append-only scrollback buffer, and output delivered to
subscribers in short coalesced batches.
"""

from termservice.pty.batcher import OutputBatcher
from termservice.pty.buffer import ScrollbackBuffer
from termservice.pty.manager import (
    TerminalService,
    get_terminal_service,
    shutdown_terminal_service,
)
from termservice.pty.session import PtyHandle, SessionStatus, TerminalSession

__all__ = [
    "OutputBatcher",
    "PtyHandle",
    "ScrollbackBuffer",
    "SessionStatus",
    "TerminalService",
    "TerminalSession",
    "get_terminal_service",
    "shutdown_terminal_service",
]
