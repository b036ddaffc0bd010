from __future__ import annotations

import contextlib
import locale

import typer
from rich import print

from snackcount.server import run_server

from .common import configure_logging


def serve_cmd(*, host: str, port: int, data_file: str, log_level: str) -> None:
    """Run the records server in the foreground."""

    configure_logging(log_level)
    # Ranking tie-breaks collate names with the environment's LC_COLLATE.
    with contextlib.suppress(locale.Error):
        locale.setlocale(locale.LC_COLLATE, "")
    print(f"[green]snackcount server[/green] http://{host}:{port} (data: {data_file})")
    try:
        run_server(host, port, data_file)
    except OSError as exc:
        print(f"[red]Could not start server: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    except KeyboardInterrupt:
        print("[dim]stopped[/dim]")
