from __future__ import annotations

import typer
from rich import print
from rich.markup import escape

from snackcount.session import CounterSession, milestone_message

from .common import print_ranking


def _require_identity(session: CounterSession) -> None:
    if session.identity is None:
        print("[yellow]No user on this device yet.[/yellow] Run: snackcount join <name>")
        raise typer.Exit(code=1)


def _print_count(session: CounterSession) -> None:
    count = session.count
    noun = "snack eaten" if count == 1 else "snacks eaten"
    print(f"[bold orange3]{count}[/bold orange3] {noun}")
    for message in milestone_message(count):
        print(f"[yellow]{message}[/yellow]")


def _print_ranking(session: CounterSession) -> None:
    identity = session.identity
    print_ranking(
        session.ranking,
        identity.user_id if identity else None,
        loaded=session.sync_client.ranking_loaded,
    )


def join_cmd(*, session: CounterSession, name: str) -> None:
    """Create a user for this device."""

    session.start()
    existing = session.identity
    if existing is not None:
        print(
            f"[yellow]Already counting as {escape(existing.user_name)}.[/yellow] "
            "Run: snackcount change-user"
        )
        raise typer.Exit(code=1)
    try:
        session.sign_in(name)
    except ValueError as exc:
        print(f"[red]Invalid name: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    session.wait_idle()
    print(f"[green]Hi, {escape(name.strip())}![/green]")
    _print_count(session)
    _print_ranking(session)


def whoami_cmd(*, session: CounterSession) -> None:
    """Show the user stored on this device."""

    identity = session.identity_store.get_identity()
    if identity is None:
        print("[yellow]No user on this device yet.[/yellow] Run: snackcount join <name>")
        raise typer.Exit(code=1)
    print(f"{escape(identity.user_name)} ({identity.user_id})")


def change_user_cmd(*, session: CounterSession) -> None:
    """Forget the local user; the server keeps its record."""

    session.change_user()
    print("[green]User cleared.[/green] Run: snackcount join <name>")


def adjust_cmd(*, session: CounterSession, delta: int, times: int) -> None:
    """Add or remove snacks, saving locally and syncing each change."""

    session.start()
    _require_identity(session)
    session.wait_idle()
    step = session.increment if delta > 0 else session.decrement
    applied = 0
    for _ in range(max(times, 0)):
        if not step():
            break
        applied += 1
    session.wait_idle()
    if applied < times:
        if delta > 0:
            print(f"[yellow]Limit of {session.max_count} reached.[/yellow]")
        else:
            print("[yellow]Already at zero.[/yellow]")
    _print_count(session)
    _print_ranking(session)


def count_cmd(*, session: CounterSession) -> None:
    """Show the local count."""

    session.start()
    _require_identity(session)
    session.wait_idle()
    _print_count(session)
