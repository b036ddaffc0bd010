from __future__ import annotations

import locale
from collections.abc import Iterable

from .records import UserRecord


def _rank_key(record: UserRecord) -> tuple[int, str]:
    return (-record.count, locale.strxfrm(record.name))


def rank(records: Iterable[UserRecord], limit: object = None) -> list[UserRecord]:
    """Order records by count (highest first), then by name.

    Names are compared with the active ``LC_COLLATE`` rules. ``limit`` only
    truncates when it is a positive int; anything else returns every record.
    """
    ranked = sorted(records, key=_rank_key)
    if isinstance(limit, int) and not isinstance(limit, bool) and limit > 0:
        return ranked[:limit]
    return ranked


def parse_limit(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value > 0 else None
