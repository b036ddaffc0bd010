from __future__ import annotations

import typer
from rich import print

from . import __version__
from .commands.common import (
    build_session,
    build_sync_client,
    close_session,
    configure_logging,
    load_config_or_exit,
)
from .commands.counter_cmds import (
    adjust_cmd,
    change_user_cmd,
    count_cmd,
    join_cmd,
    whoami_cmd,
)
from .commands.ranking_cmds import ranking_cmd, records_cmd, watch_cmd
from .commands.server_cmds import serve_cmd
from .identity import IdentityStore

app = typer.Typer(help="snackcount: count your snacks, compare with everyone else")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log sync activity"),
) -> None:
    if verbose:
        configure_logging("INFO")


@app.command()
def version() -> None:
    """Print the installed version."""

    print(__version__)


@app.command()
def join(name: str = typer.Argument(..., help="Display name on the ranking")) -> None:
    """Create a user for this device and register it on the server."""

    session = build_session(load_config_or_exit())
    try:
        join_cmd(session=session, name=name)
    finally:
        close_session(session)


@app.command()
def whoami() -> None:
    """Show the user stored on this device."""

    session = build_session(load_config_or_exit())
    try:
        whoami_cmd(session=session)
    finally:
        close_session(session)


@app.command("change-user")
def change_user() -> None:
    """Forget the local user (the server keeps its record)."""

    session = build_session(load_config_or_exit())
    try:
        change_user_cmd(session=session)
    finally:
        close_session(session)


@app.command()
def add(times: int = typer.Option(1, "--times", "-n", min=1, help="How many snacks")) -> None:
    """Count snacks eaten."""

    session = build_session(load_config_or_exit())
    try:
        adjust_cmd(session=session, delta=1, times=times)
    finally:
        close_session(session)


@app.command()
def remove(times: int = typer.Option(1, "--times", "-n", min=1, help="How many snacks")) -> None:
    """Take back snacks counted by mistake."""

    session = build_session(load_config_or_exit())
    try:
        adjust_cmd(session=session, delta=-1, times=times)
    finally:
        close_session(session)


@app.command()
def count() -> None:
    """Show the local count for this device's user."""

    session = build_session(load_config_or_exit())
    try:
        count_cmd(session=session)
    finally:
        close_session(session)


@app.command()
def ranking(
    limit: int = typer.Option(None, help="Number of entries to show (default from config)"),
) -> None:
    """Show the leaderboard."""

    config = load_config_or_exit()
    client = build_sync_client(config)
    try:
        ranking_cmd(
            client=client,
            identity_store=IdentityStore(config.identity_file_path()),
            limit=limit,
        )
    finally:
        client.close()


@app.command()
def records() -> None:
    """Dump every record stored on the server."""

    client = build_sync_client(load_config_or_exit())
    try:
        records_cmd(client=client)
    finally:
        client.close()


@app.command()
def watch(
    interval: float = typer.Option(None, help="Seconds between refreshes"),
    limit: int = typer.Option(None, help="Number of entries to show"),
) -> None:
    """Keep the leaderboard on screen, refreshing periodically."""

    config = load_config_or_exit()
    watch_cmd(
        client=build_sync_client(config),
        identity_store=IdentityStore(config.identity_file_path()),
        interval_s=interval or config.poll_interval_s,
        limit=limit,
    )


@app.command()
def serve(
    host: str = typer.Option(None, help="Bind host"),
    port: int = typer.Option(None, help="Bind port"),
    data_file: str = typer.Option(None, help="Path to the records JSON file"),
    log_level: str = typer.Option("INFO", help="Logging level"),
) -> None:
    """Run the records server."""

    config = load_config_or_exit()
    serve_cmd(
        host=host or config.server_host,
        port=port or config.server_port,
        data_file=str(data_file or config.data_file_path()),
        log_level=log_level,
    )


if __name__ == "__main__":
    app()
