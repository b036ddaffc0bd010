import json
from pathlib import Path

import pytest

from snackcount.config import (
    SnackCountConfig,
    get_config_path,
    get_env_overrides,
    load_config,
    read_config_file,
    write_config_file,
)


def test_read_config_file_rejects_invalid_json(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{not-json}")
    with pytest.raises(ValueError, match="invalid config json"):
        read_config_file(config_path)


def test_read_config_file_rejects_non_object(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("[1, 2]")
    with pytest.raises(ValueError, match="config must be an object"):
        read_config_file(config_path)


def test_read_config_file_missing_or_blank_is_empty(tmp_path: Path) -> None:
    assert read_config_file(tmp_path / "missing.json") == {}
    blank = tmp_path / "blank.json"
    blank.write_text("   \n")
    assert read_config_file(blank) == {}


def test_write_config_file_creates_parent(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "config.json"
    written = write_config_file({"ranking_limit": 5}, config_path)
    assert written == config_path
    assert json.loads(config_path.read_text()) == {"ranking_limit": 5}


def test_get_config_path_uses_env(monkeypatch, tmp_path: Path) -> None:
    target = tmp_path / "elsewhere.json"
    monkeypatch.setenv("SNACKCOUNT_CONFIG", str(target))
    assert get_config_path() == target


def test_load_config_defaults(monkeypatch) -> None:
    for name in (
        "SNACKCOUNT_SERVER_URL",
        "SNACKCOUNT_DB",
        "SNACKCOUNT_IDENTITY",
        "SNACKCOUNT_DATA_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    cfg = load_config()
    assert cfg == SnackCountConfig()
    assert cfg.ranking_limit == 10
    assert cfg.poll_interval_s == 5
    assert cfg.max_count == 51


def test_load_config_file_then_env(monkeypatch, tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps({"server_port": 6000, "ranking_limit": "3", "unknown_key": True})
    )
    monkeypatch.setenv("SNACKCOUNT_SERVER_PORT", "7000")
    monkeypatch.setenv("SNACKCOUNT_REQUEST_TIMEOUT_S", "1.5")

    cfg = load_config(config_path)

    assert cfg.server_port == 7000
    assert cfg.ranking_limit == 3
    assert cfg.request_timeout_s == 1.5
    assert not hasattr(cfg, "unknown_key")


def test_load_config_warns_on_invalid_int(monkeypatch) -> None:
    monkeypatch.setenv("SNACKCOUNT_RANKING_LIMIT", "lots")
    with pytest.warns(RuntimeWarning, match="ranking_limit"):
        cfg = load_config()
    assert cfg.ranking_limit == 10


def test_load_config_ignores_invalid_json_file(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{broken")
    assert load_config(config_path).server_port == 5757


def test_get_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("SNACKCOUNT_MAX_COUNT", "20")
    overrides = get_env_overrides()
    assert overrides["max_count"] == "20"
    assert overrides["server_url"] == "http://127.0.0.1:9"


def test_config_paths_expand_user() -> None:
    cfg = SnackCountConfig(db_path="~/x.sqlite")
    assert cfg.db_file_path() == Path("~/x.sqlite").expanduser()
