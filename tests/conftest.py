"""Shared fixtures: a scripted platform context and a fake PTY spawner."""

from __future__ import annotations

from typing import Callable, Iterable, Mapping

import pytest

from termservice.config import TerminalConfig
from termservice.host import PlatformContext
from termservice.pty.manager import TerminalService


def _no_file(path: str) -> str:
    raise FileNotFoundError(path)


def build_context(
    system: str = "linux",
    environ: Mapping[str, str] | None = None,
    files: Iterable[str] = (),
    dirs: Iterable[str] = (),
    read_text: Callable[[str], str] = _no_file,
    home: str = "/home/user",
    arch: str = "x86_64",
) -> PlatformContext:
    """A context whose filesystem holds exactly ``files`` and ``dirs``."""
    dir_set = set(dirs)
    file_set = set(files) | dir_set
    return PlatformContext(
        system=system,
        arch=arch,
        home=home,
        environ=dict(environ or {}),
        exists=lambda path: path in file_set,
        is_dir=lambda path: path in dir_set,
        read_text=read_text,
    )


class FakePty:
    """Stands in for PtyProcess; the test drives output and exit by hand."""

    def __init__(
        self,
        argv: list[str],
        *,
        cwd: str,
        env: Mapping[str, str],
        cols: int,
        rows: int,
    ) -> None:
        self.argv = argv
        self.cwd = cwd
        self.env = dict(env)
        self.cols = cols
        self.rows = rows
        self.pid = 4242
        self.writes: list[str] = []
        self.resizes: list[tuple[int, int]] = []
        self.kill_calls = 0
        self.resize_error: Exception | None = None
        self.kill_error: Exception | None = None
        self._alive = True
        self._on_data: Callable[[bytes], None] | None = None
        self._on_exit: Callable[[int | None], None] | None = None

    def attach(
        self,
        on_data: Callable[[bytes], None],
        on_exit: Callable[[int | None], None],
    ) -> None:
        self._on_data = on_data
        self._on_exit = on_exit

    def write(self, data: str) -> None:
        self.writes.append(data)

    def resize(self, cols: int, rows: int) -> None:
        if self.resize_error is not None:
            raise self.resize_error
        self.resizes.append((cols, rows))

    def kill(self) -> None:
        self.kill_calls += 1
        self._alive = False
        if self.kill_error is not None:
            raise self.kill_error

    @property
    def alive(self) -> bool:
        return self._alive

    # Test drivers

    def emit(self, data: bytes | str) -> None:
        assert self._on_data is not None, "not attached"
        if isinstance(data, str):
            data = data.encode()
        self._on_data(data)

    def exit(self, code: int | None = 0) -> None:
        assert self._on_exit is not None, "not attached"
        self._alive = False
        self._on_exit(code)


class FakeSpawner:
    """Callable matching the service's ``spawn`` hook; records every spawn."""

    def __init__(self) -> None:
        self.spawned: list[FakePty] = []
        self.error: Exception | None = None
        self.kill_error: Exception | None = None
        self.resize_error: Exception | None = None

    def __call__(
        self,
        argv: list[str],
        *,
        cwd: str,
        env: Mapping[str, str],
        cols: int,
        rows: int,
    ) -> FakePty:
        if self.error is not None:
            raise self.error
        proc = FakePty(argv, cwd=cwd, env=env, cols=cols, rows=rows)
        proc.kill_error = self.kill_error
        proc.resize_error = self.resize_error
        self.spawned.append(proc)
        return proc

    @property
    def last(self) -> FakePty:
        return self.spawned[-1]


@pytest.fixture
def spawner() -> FakeSpawner:
    return FakeSpawner()


@pytest.fixture
def linux_context() -> PlatformContext:
    return build_context(
        environ={"SHELL": "/bin/bash", "PATH": "/usr/bin"},
        files=["/bin/bash"],
        dirs=["/home/user", "/test/dir", "/dir1", "/dir2", "//wsl$/Ubuntu/home"],
    )


@pytest.fixture
def service(linux_context: PlatformContext, spawner: FakeSpawner):
    svc = TerminalService(
        config=TerminalConfig(batch_interval_ms=10),
        context=linux_context,
        spawn=spawner,
    )
    yield svc
    svc.cleanup()


@pytest.fixture
def make_context() -> Callable[..., PlatformContext]:
    return build_context
