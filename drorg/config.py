from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import DrorgError
from .paths import config_home, data_home

DEFAULT_CONFIG_NAME = "config.json"
DEFAULT_CLIENT_SECRET_NAME = "client_id.json"
DB_FILENAME = "db.sqlite"
ACCOUNTS_DIRNAME = "accounts"

SYNC_MODES = ("auto", "yes", "no")

_ALLOWED_KEYS = {
    "data_dir",
    "client_secret_path",
    "resync_delay_minutes",
    "sync",
    "drive_retries",
    "drive_retry_base",
    "use_keyring",
}


class ConfigError(DrorgError):
    pass


@dataclass
class Config:
    data_dir: Path
    client_secret_path: Path
    resync_delay_minutes: int = 5
    sync: str = "auto"
    drive_retries: int = 3
    drive_retry_base: float = 0.5
    use_keyring: bool = True
    path: Optional[Path] = field(default=None, compare=False)

    @property
    def db_path(self) -> Path:
        return self.data_dir / DB_FILENAME

    @property
    def accounts_dir(self) -> Path:
        return self.data_dir / ACCOUNTS_DIRNAME

    def as_dict(self) -> dict:
        return {
            "data_dir": str(self.data_dir),
            "client_secret_path": str(self.client_secret_path),
            "resync_delay_minutes": self.resync_delay_minutes,
            "sync": self.sync,
            "drive_retries": self.drive_retries,
            "drive_retry_base": self.drive_retry_base,
            "use_keyring": self.use_keyring,
        }


def _config_path(explicit: Optional[Path] = None) -> Path:
    env_path = os.environ.get("DRORG_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    if explicit:
        return explicit.expanduser()
    return config_home() / DEFAULT_CONFIG_NAME


def _ensure_keys(data: dict, *, allowed: set[str], context: str) -> None:
    unknown = set(data.keys()) - set(allowed)
    if unknown:
        keys = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown {context} key(s): {keys}")


def _path_value(raw: dict, key: str, default: Path) -> Path:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Config '{key}' must be a non-empty string")
    return Path(value).expanduser()


def _int_value(raw: dict, key: str, default: int) -> int:
    value = raw.get(key, default)
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"Config '{key}' must be a non-negative integer")
    return value


def _float_value(raw: dict, key: str, default: float) -> float:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(f"Config '{key}' must be a non-negative number")
    return float(value)


def _apply_env(config: Config) -> Config:
    env_data = os.environ.get("DRORG_DATA_DIR")
    if env_data:
        config.data_dir = Path(env_data).expanduser()
    env_secret = os.environ.get("DRORG_CLIENT_SECRET")
    if env_secret:
        config.client_secret_path = Path(env_secret).expanduser()
    return config


def default_config(path: Optional[Path] = None) -> Config:
    config = Config(
        data_dir=data_home(),
        client_secret_path=config_home() / DEFAULT_CLIENT_SECRET_NAME,
        path=_config_path(path),
    )
    return _apply_env(config)


def load_config(path: Optional[Path] = None) -> Config:
    """Load the configuration file, falling back to defaults when absent.

    Environment overrides (``DRORG_DATA_DIR``, ``DRORG_CLIENT_SECRET``) win
    over file values.
    """
    config_path = _config_path(path)
    if not config_path.exists():
        return default_config(path)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Could not read config {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError("Config payload must be a JSON object")
    _ensure_keys(raw, allowed=_ALLOWED_KEYS, context="config")

    sync_mode = raw.get("sync", "auto")
    if sync_mode not in SYNC_MODES:
        raise ConfigError(f"Config 'sync' must be one of {', '.join(SYNC_MODES)}, got '{sync_mode}'")
    use_keyring = raw.get("use_keyring", True)
    if not isinstance(use_keyring, bool):
        raise ConfigError("Config 'use_keyring' must be a boolean")

    config = Config(
        data_dir=_path_value(raw, "data_dir", data_home()),
        client_secret_path=_path_value(raw, "client_secret_path", config_home() / DEFAULT_CLIENT_SECRET_NAME),
        resync_delay_minutes=_int_value(raw, "resync_delay_minutes", 5),
        sync=sync_mode,
        drive_retries=_int_value(raw, "drive_retries", 3),
        drive_retry_base=_float_value(raw, "drive_retry_base", 0.5),
        use_keyring=use_keyring,
        path=config_path,
    )
    return _apply_env(config)


__all__ = [
    "Config",
    "ConfigError",
    "SYNC_MODES",
    "default_config",
    "load_config",
]
