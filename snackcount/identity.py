from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from .fs_paths import ensure_path

logger = logging.getLogger(__name__)

DEFAULT_IDENTITY_PATH = Path("~/.config/snackcount/identity.json").expanduser()
USER_ID_KEY = "userId"
USER_NAME_KEY = "userName"


@dataclass(frozen=True)
class Identity:
    user_id: str
    user_name: str


class IdentityStore:
    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path or DEFAULT_IDENTITY_PATH).expanduser()

    def get_identity(self) -> Identity | None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("identity file unreadable: %s", self.path, exc_info=exc)
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("identity file is not valid json: %s", self.path, exc_info=exc)
            return None
        if not isinstance(data, dict):
            return None
        user_id = data.get(USER_ID_KEY)
        user_name = data.get(USER_NAME_KEY)
        if not isinstance(user_id, str) or not user_id:
            return None
        if not isinstance(user_name, str) or not user_name:
            return None
        return Identity(user_id=user_id, user_name=user_name)

    def establish_identity(self, name: str) -> str:
        trimmed = (name or "").strip()
        if not trimmed:
            raise ValueError("name must not be empty")
        user_id = str(uuid4())
        payload = {USER_ID_KEY: user_id, USER_NAME_KEY: trimmed}
        try:
            path = ensure_path(self.path)
            path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", "utf-8")
        except OSError as exc:
            # The id still works for this session; it just won't survive a restart.
            logger.warning("identity not persisted to %s", self.path, exc_info=exc)
        else:
            logger.info("identity established for %s (%s)", trimmed, user_id)
        return user_id

    def clear_identity(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("identity file not removed: %s", self.path, exc_info=exc)
