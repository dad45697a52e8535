"""termservice — pseudo-terminal session manager for host applications."""

from termservice.config import TerminalConfig
from termservice.errors import SessionSpawnError, TerminalError
from termservice.host import PlatformContext
from termservice.paths import normalize_cwd
from termservice.pty import (
    SessionStatus,
    TerminalService,
    TerminalSession,
    get_terminal_service,
    shutdown_terminal_service,
)
from termservice.shell import ShellSpec, detect_shell, resolve_shell
from termservice.wsl import is_running_under_wsl

__version__ = "0.1.0"

__all__ = [
    "PlatformContext",
    "SessionSpawnError",
    "SessionStatus",
    "ShellSpec",
    "TerminalConfig",
    "TerminalError",
    "TerminalService",
    "TerminalSession",
    "detect_shell",
    "get_terminal_service",
    "is_running_under_wsl",
    "normalize_cwd",
    "resolve_shell",
    "shutdown_terminal_service",
]
