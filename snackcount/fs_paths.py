from __future__ import annotations

import contextlib
import os
from pathlib import Path


def ensure_path(path: str | Path) -> Path:
    resolved = Path(path).expanduser()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved


def replace_text(path: str | Path, text: str) -> Path:
    """Write ``text`` next to ``path`` and swap it in with a single rename."""
    target = ensure_path(path)
    tmp = target.with_name(f"{target.name}.tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, target)
    except OSError:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise
    return target
