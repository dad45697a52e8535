"""Host probes — platform, environment and filesystem facts in one object.

Shell resolution, WSL detection and cwd normalization never read global
state directly; they receive a ``PlatformContext``. ``from_host()`` wires it
to the running process, tests build one from plain values.
"""

from __future__ import annotations

import os
import platform
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping


def _system_name() -> str:
    """Normalized OS name: ``windows``, ``darwin``, ``linux`` or other."""
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "darwin"
    if sys.platform.startswith("linux"):
        return "linux"
    return sys.platform


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8", errors="replace")


@dataclass(frozen=True)
class PlatformContext:
    """Ambient facts about the machine the service runs on.

    Every probe may raise (permission errors, broken mounts, ...). Callers
    are expected to treat a raising probe as "absent".
    """

    system: str
    arch: str
    home: str
    environ: Mapping[str, str] = field(default_factory=dict)
    exists: Callable[[str], bool] = os.path.exists
    is_dir: Callable[[str], bool] = os.path.isdir
    read_text: Callable[[str], str] = _read_text

    @classmethod
    def from_host(cls) -> PlatformContext:
        """Build a context backed by the live process state."""
        return cls(
            system=_system_name(),
            arch=platform.machine().lower() or "unknown",
            home=str(Path.home()),
            environ=dict(os.environ),
        )

    @property
    def is_windows(self) -> bool:
        return self.system == "windows"

    @property
    def is_macos(self) -> bool:
        return self.system == "darwin"

    def getenv(self, name: str) -> str:
        """Environment lookup where unset and empty are the same thing."""
        return self.environ.get(name) or ""

    def probe_exists(self, path: str) -> bool:
        """``exists`` that reports a failing probe as missing."""
        try:
            return bool(self.exists(path))
        except Exception:
            return False

    def probe_dir(self, path: str) -> bool:
        """``exists`` and ``is_dir``, with probe failures reported as False."""
        try:
            return bool(self.exists(path)) and bool(self.is_dir(path))
        except Exception:
            return False
