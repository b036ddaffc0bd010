from __future__ import annotations

import logging
from collections.abc import Sequence

import typer
from rich import print
from rich.markup import escape

from snackcount.config import SnackCountConfig, load_config
from snackcount.counter_cache import LocalCounterCache
from snackcount.identity import IdentityStore
from snackcount.records import UserRecord
from snackcount.session import CounterSession
from snackcount.sync.client import SyncClient

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        print(f"[red]Unknown log level: {level}[/red]")
        raise typer.Exit(code=1)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)


def load_config_or_exit() -> SnackCountConfig:
    try:
        return load_config()
    except OSError as exc:
        print(f"[red]Failed to read config: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def build_sync_client(config: SnackCountConfig) -> SyncClient:
    return SyncClient(
        config.server_url,
        ranking_limit=config.ranking_limit,
        timeout_s=config.request_timeout_s,
    )


def build_session(config: SnackCountConfig, *, background: bool = False) -> CounterSession:
    return CounterSession(
        IdentityStore(config.identity_file_path()),
        LocalCounterCache(config.db_file_path()),
        build_sync_client(config),
        max_count=config.max_count,
        background=background,
    )


def close_session(session: CounterSession) -> None:
    session.close()
    session.sync_client.close()
    session.cache.close()


def format_ranking(ranking: Sequence[UserRecord], current_user_id: str | None = None) -> list[str]:
    if not ranking:
        return ["[dim]Nobody on the ranking yet. Be the first![/dim]"]
    lines: list[str] = []
    for index, record in enumerate(ranking, start=1):
        line = f"{index}. {escape(record.name)}  [bold]{record.count}[/bold]"
        if current_user_id and record.id == current_user_id:
            line = f"[orange3]{line}  (you)[/orange3]"
        lines.append(line)
    return lines


def print_ranking(
    ranking: Sequence[UserRecord],
    current_user_id: str | None = None,
    *,
    loaded: bool = True,
) -> None:
    print("[bold]Snack ranking[/bold]")
    if not loaded:
        print("[dim]Ranking unavailable (server unreachable).[/dim]")
        return
    for line in format_ranking(ranking, current_user_id):
        print(line)
