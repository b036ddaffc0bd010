from __future__ import annotations

import threading

import typer
from rich import print
from rich.markup import escape

from snackcount.identity import IdentityStore
from snackcount.records import UserRecord
from snackcount.sync.client import RankingPoller, SyncClient

from .common import print_ranking


def _current_user_id(identity_store: IdentityStore) -> str | None:
    identity = identity_store.get_identity()
    return identity.user_id if identity else None


def ranking_cmd(
    *, client: SyncClient, identity_store: IdentityStore, limit: int | None
) -> None:
    """Print the leaderboard."""

    ranking = client.pull(limit)
    print_ranking(ranking, _current_user_id(identity_store), loaded=client.ranking_loaded)
    if not client.ranking_loaded:
        raise typer.Exit(code=1)


def records_cmd(*, client: SyncClient) -> None:
    """Print every stored record, unsorted."""

    records = client.fetch_records()
    if records is None:
        print("[red]Could not fetch records from the server.[/red]")
        raise typer.Exit(code=1)
    if not records:
        print("[dim]No records yet.[/dim]")
        return
    for record in records:
        print(
            f"{record.id}|{escape(record.name)}|{record.count}|{record.last_updated or '-'}"
        )


def watch_cmd(
    *,
    client: SyncClient,
    identity_store: IdentityStore,
    interval_s: float,
    limit: int | None,
    stop_event: threading.Event | None = None,
) -> None:
    """Refresh the leaderboard until interrupted."""

    current_user_id = _current_user_id(identity_store)

    def _render(ranking: list[UserRecord]) -> None:
        print()
        print_ranking(ranking, current_user_id, loaded=client.ranking_loaded)

    poller = RankingPoller(client, interval_s, limit=limit, on_update=_render)
    stop = stop_event or threading.Event()
    poller.start()
    try:
        while not stop.wait(0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        poller.stop()
        client.close()
