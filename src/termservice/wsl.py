"""WSL detection — is this process running inside Windows Subsystem for Linux?"""

from __future__ import annotations

import logging

from termservice.host import PlatformContext

logger = logging.getLogger(__name__)

PROC_VERSION = "/proc/version"
_KERNEL_MARKERS = ("microsoft", "wsl")


def _kernel_reports_wsl(ctx: PlatformContext) -> bool:
    try:
        if not ctx.exists(PROC_VERSION):
            return False
        version = ctx.read_text(PROC_VERSION).lower()
    except Exception as e:
        logger.debug("Could not read %s: %s", PROC_VERSION, e)
        return False
    return any(marker in version for marker in _KERNEL_MARKERS)


def is_running_under_wsl(ctx: PlatformContext | None = None) -> bool:
    """Check the kernel version string, then ``WSL_DISTRO_NAME``, then ``WSLENV``.

    Never raises: an unreadable ``/proc/version`` just falls through to the
    environment checks.
    """
    ctx = ctx or PlatformContext.from_host()
    if _kernel_reports_wsl(ctx):
        return True
    return bool(ctx.getenv("WSL_DISTRO_NAME") or ctx.getenv("WSLENV"))
