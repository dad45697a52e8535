"""Working-directory normalization for new sessions."""

from __future__ import annotations

import logging
import re

from termservice.host import PlatformContext

logger = logging.getLogger(__name__)

# UNC-style prefixes used to reach WSL filesystems from Windows. The leading
# double slash is meaningful here and must survive.
_BRIDGE_PREFIXES = ("//wsl$/", "//wsl.localhost/")
_REPEATED_SEPARATORS = re.compile(r"/{2,}")


def _is_bridge_path(path: str) -> bool:
    lowered = path.lower()
    return any(lowered.startswith(prefix) for prefix in _BRIDGE_PREFIXES)


def collapse_separators(path: str) -> str:
    """Collapse runs of ``/`` into one, leaving WSL bridge paths untouched."""
    if _is_bridge_path(path):
        return path
    return _REPEATED_SEPARATORS.sub("/", path)


def normalize_cwd(
    requested: str | None,
    home: str,
    ctx: PlatformContext | None = None,
) -> str:
    """Return the directory a session should start in.

    Falls back to ``home`` when nothing was requested, or when the cleaned
    path is missing, is not a directory, or cannot be checked.
    """
    if not requested:
        return home

    ctx = ctx or PlatformContext.from_host()
    cleaned = collapse_separators(requested)
    if not ctx.probe_dir(cleaned):
        logger.warning(
            "Working directory %r is unusable, falling back to %s", requested, home
        )
        return home
    return cleaned
