from __future__ import annotations

import json
from pathlib import Path

import pytest

from drorg.config import ConfigError, default_config, load_config


def _write(path: Path, payload) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_missing_file_gives_defaults(tmp_path):
    config = load_config()

    assert config.data_dir == tmp_path / "data" / "drorg"
    assert config.db_path == tmp_path / "data" / "drorg" / "db.sqlite"
    assert config.accounts_dir == tmp_path / "data" / "drorg" / "accounts"
    assert config.client_secret_path == tmp_path / "config" / "drorg" / "client_id.json"
    assert config.path == tmp_path / "config" / "drorg" / "config.json"
    assert config.sync == "auto"
    assert config.resync_delay_minutes == 5
    assert config.use_keyring is True


def test_file_values(tmp_path):
    path = _write(
        tmp_path / "config" / "drorg" / "config.json",
        {
            "data_dir": str(tmp_path / "elsewhere"),
            "resync_delay_minutes": 30,
            "sync": "no",
            "drive_retries": 0,
            "drive_retry_base": 1,
            "use_keyring": False,
        },
    )

    config = load_config()

    assert config.path == path
    assert config.data_dir == tmp_path / "elsewhere"
    assert config.resync_delay_minutes == 30
    assert config.sync == "no"
    assert config.drive_retries == 0
    assert config.drive_retry_base == 1.0
    assert config.use_keyring is False


def test_explicit_path_and_env_override(tmp_path, monkeypatch):
    explicit = _write(tmp_path / "a.json", {"sync": "yes"})
    from_env = _write(tmp_path / "b.json", {"sync": "no"})

    assert load_config(explicit).sync == "yes"
    monkeypatch.setenv("DRORG_CONFIG", str(from_env))
    assert load_config(explicit).sync == "no"


def test_env_paths_win_over_file(tmp_path, monkeypatch):
    path = _write(tmp_path / "c.json", {"data_dir": str(tmp_path / "from-file")})
    monkeypatch.setenv("DRORG_DATA_DIR", str(tmp_path / "from-env"))
    monkeypatch.setenv("DRORG_CLIENT_SECRET", str(tmp_path / "secret.json"))

    config = load_config(path)

    assert config.data_dir == tmp_path / "from-env"
    assert config.client_secret_path == tmp_path / "secret.json"
    assert default_config().data_dir == tmp_path / "from-env"


@pytest.mark.parametrize(
    "payload,message",
    [
        ({"colour": "red"}, "Unknown config key"),
        ({"sync": "sometimes"}, "'sync' must be one of"),
        ({"resync_delay_minutes": -1}, "non-negative integer"),
        ({"resync_delay_minutes": True}, "non-negative integer"),
        ({"drive_retry_base": "fast"}, "non-negative number"),
        ({"use_keyring": "yes"}, "boolean"),
        ({"data_dir": ""}, "non-empty string"),
        (["not", "an", "object"], "JSON object"),
    ],
)
def test_invalid_config(tmp_path, payload, message):
    path = _write(tmp_path / "bad.json", payload)
    with pytest.raises(ConfigError, match=message):
        load_config(path)


def test_unparseable_config(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="Could not read config"):
        load_config(path)


def test_as_dict_round_trips(tmp_path):
    config = load_config()
    path = _write(tmp_path / "copy.json", config.as_dict())

    assert load_config(path) == config
