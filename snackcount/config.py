from __future__ import annotations

import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path("~/.config/snackcount/config.json").expanduser()
DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 5757

CONFIG_ENV_OVERRIDES = {
    "server_url": "SNACKCOUNT_SERVER_URL",
    "server_host": "SNACKCOUNT_SERVER_HOST",
    "server_port": "SNACKCOUNT_SERVER_PORT",
    "data_file": "SNACKCOUNT_DATA_FILE",
    "db_path": "SNACKCOUNT_DB",
    "identity_path": "SNACKCOUNT_IDENTITY",
    "ranking_limit": "SNACKCOUNT_RANKING_LIMIT",
    "poll_interval_s": "SNACKCOUNT_POLL_INTERVAL_S",
    "request_timeout_s": "SNACKCOUNT_REQUEST_TIMEOUT_S",
    "max_count": "SNACKCOUNT_MAX_COUNT",
}

_INT_KEYS = {"server_port", "ranking_limit", "poll_interval_s", "max_count"}
_FLOAT_KEYS = {"request_timeout_s"}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("SNACKCOUNT_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return config_path


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class SnackCountConfig:
    server_url: str = f"http://{DEFAULT_SERVER_HOST}:{DEFAULT_SERVER_PORT}"
    server_host: str = DEFAULT_SERVER_HOST
    server_port: int = DEFAULT_SERVER_PORT
    data_file: str = "~/.snackcount/data/records.json"
    db_path: str = "~/.snackcount/counter.sqlite"
    identity_path: str = "~/.config/snackcount/identity.json"
    ranking_limit: int = 10
    poll_interval_s: int = 5
    request_timeout_s: float = 3.0

    # Increments are accepted while the count is below this value.
    max_count: int = 51

    def data_file_path(self) -> Path:
        return Path(self.data_file).expanduser()

    def db_file_path(self) -> Path:
        return Path(self.db_path).expanduser()

    def identity_file_path(self) -> Path:
        return Path(self.identity_path).expanduser()


def _parse_int(value: object, default: int, *, key: str) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def _parse_float(value: object, default: float, *, key: str) -> float:
    if value is None:
        return default
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def load_config(path: Path | None = None) -> SnackCountConfig:
    cfg = SnackCountConfig()
    config_path = get_config_path(path)
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
        except json.JSONDecodeError:
            data = {}
        if isinstance(data, dict):
            cfg = _apply_dict(cfg, data)
    cfg = _apply_dict(cfg, get_env_overrides())
    return cfg


def _apply_dict(cfg: SnackCountConfig, data: dict[str, Any]) -> SnackCountConfig:
    for key, value in data.items():
        if not hasattr(cfg, key):
            continue
        if key in _INT_KEYS:
            setattr(cfg, key, _parse_int(value, getattr(cfg, key), key=key))
            continue
        if key in _FLOAT_KEYS:
            setattr(cfg, key, _parse_float(value, getattr(cfg, key), key=key))
            continue
        if value is None:
            continue
        setattr(cfg, key, str(value))
    return cfg
