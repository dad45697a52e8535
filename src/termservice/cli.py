"""CLI entry point for termservice."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys

import typer
from rich.console import Console
from rich.table import Table

from termservice.config import TerminalConfig
from termservice.errors import SessionSpawnError
from termservice.pty.manager import TerminalService

app = typer.Typer(
    name="termservice",
    help="Spawn and manage pseudo-terminal shell sessions.",
    no_args_is_help=True,
)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


@app.command()
def info(
    as_json: bool = typer.Option(False, "--json", help="Print machine-readable JSON."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
) -> None:
    """Show platform, architecture, default shell and WSL status."""
    setup_logging(verbose)
    platform_info = TerminalService().get_platform_info()

    if as_json:
        typer.echo(json.dumps(platform_info))
        return

    table = Table(title="termservice platform", show_header=False)
    table.add_column("key", style="bold")
    table.add_column("value")
    for key, value in platform_info.items():
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def shell(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
) -> None:
    """Print the shell new sessions would launch."""
    setup_logging(verbose)
    spec = TerminalService().detect_shell()
    typer.echo(" ".join(spec.argv()))


@app.command()
def run(
    cwd: str | None = typer.Option(
        None, "--cwd", "-C", help="Working directory (default: home)."
    ),
    cols: int | None = typer.Option(None, "--cols", help="Terminal columns."),
    rows: int | None = typer.Option(None, "--rows", help="Terminal rows."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Open a shell session and bridge it to this terminal's stdin/stdout."""
    setup_logging(verbose)
    config = TerminalConfig.load(config_file)

    try:
        exit_code = asyncio.run(_run_session(config, cwd, cols, rows))
    except SessionSpawnError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    raise typer.Exit(exit_code or 0)


async def _run_session(
    config: TerminalConfig,
    cwd: str | None,
    cols: int | None,
    rows: int | None,
) -> int | None:
    """Run one session until its shell exits or stdin closes."""
    loop = asyncio.get_running_loop()
    service = TerminalService(config)
    done: asyncio.Future[int | None] = loop.create_future()

    def _on_data(session_id: str, text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    def _on_exit(session_id: str, exit_code: int | None) -> None:
        if not done.done():
            done.set_result(exit_code)

    service.on_data(_on_data)
    service.on_exit(_on_exit)
    session = service.create_session(cwd=cwd, cols=cols, rows=rows)

    stdin_fd = sys.stdin.fileno()

    def _forward_stdin() -> None:
        data = os.read(stdin_fd, 1024)
        if not data:
            loop.remove_reader(stdin_fd)
            service.kill_session(session.id)
            if not done.done():
                done.set_result(0)
            return
        service.write(session.id, data.decode("utf-8", errors="replace"))

    loop.add_reader(stdin_fd, _forward_stdin)
    try:
        return await done
    finally:
        loop.remove_reader(stdin_fd)
        service.cleanup()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
