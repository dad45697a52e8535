"""Shell resolution — which program a new terminal session launches."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from termservice.host import PlatformContext

logger = logging.getLogger(__name__)

PWSH_PATH = r"C:\Program Files\PowerShell\7\pwsh.exe"
POWERSHELL_PATH = r"C:\Windows\System32\WindowsPowerShell\v1.0\powershell.exe"
CMD = "cmd.exe"

LOGIN_ARGS: tuple[str, ...] = ("--login",)


@dataclass(frozen=True)
class ShellSpec:
    """Program plus the arguments it is launched with."""

    shell: str
    args: tuple[str, ...] = field(default_factory=tuple)

    def argv(self) -> list[str]:
        return [self.shell, *self.args]

    def to_dict(self) -> dict[str, object]:
        return {"shell": self.shell, "args": list(self.args)}


def _resolve_windows(ctx: PlatformContext) -> ShellSpec:
    for candidate in (PWSH_PATH, POWERSHELL_PATH):
        if ctx.probe_exists(candidate):
            return ShellSpec(candidate)
    return ShellSpec(CMD)


def _resolve_macos(ctx: PlatformContext) -> ShellSpec:
    user_shell = ctx.getenv("SHELL")
    if user_shell and ctx.probe_exists(user_shell):
        return ShellSpec(user_shell, LOGIN_ARGS)
    if ctx.probe_exists("/bin/zsh"):
        return ShellSpec("/bin/zsh", LOGIN_ARGS)
    return ShellSpec("/bin/bash", LOGIN_ARGS)


def _resolve_unix(ctx: PlatformContext) -> ShellSpec:
    user_shell = ctx.getenv("SHELL")
    if user_shell and ctx.probe_exists(user_shell):
        return ShellSpec(user_shell, LOGIN_ARGS)
    if ctx.probe_exists("/bin/bash"):
        return ShellSpec("/bin/bash", LOGIN_ARGS)
    # POSIX sh does not accept --login everywhere
    return ShellSpec("/bin/sh")


def resolve_shell(ctx: PlatformContext) -> ShellSpec:
    """Pick the user's interactive shell for ``ctx``.

    Windows: PowerShell 7, then Windows PowerShell, then ``cmd.exe``.
    macOS: ``$SHELL``, then ``/bin/zsh``, then ``/bin/bash``.
    Linux and other Unix: ``$SHELL``, then ``/bin/bash``, then ``/bin/sh``.

    Always returns something usable; probe failures count as "missing".
    """
    if ctx.is_windows:
        spec = _resolve_windows(ctx)
    elif ctx.is_macos:
        spec = _resolve_macos(ctx)
    else:
        spec = _resolve_unix(ctx)
    logger.debug("Resolved shell for %s: %s %s", ctx.system, spec.shell, spec.args)
    return spec


def detect_shell(ctx: PlatformContext | None = None) -> ShellSpec:
    """``resolve_shell`` against the live host unless a context is given."""
    return resolve_shell(ctx or PlatformContext.from_host())
