"""Shared filesystem paths and helpers for drorg."""

from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "drorg"


def _xdg_path(env_var: str, fallback: Path) -> Path:
    raw = os.environ.get(env_var)
    if raw:
        return Path(raw).expanduser()
    return fallback


# Roots are resolved at call time so tests can monkeypatch XDG_* variables.
def config_root() -> Path:
    return _xdg_path("XDG_CONFIG_HOME", Path.home() / ".config")


def data_root() -> Path:
    return _xdg_path("XDG_DATA_HOME", Path.home() / ".local/share")


def config_home() -> Path:
    return config_root() / APP_NAME


def data_home() -> Path:
    return data_root() / APP_NAME


def safe_key(raw: str) -> str:
    """Return a filename-safe version of an account key.

    Email addresses are used as keys, so dots must survive; only path
    separators and parent references are neutralized.
    """
    return raw.replace("/", "_").replace("\\", "_").replace("..", "_")


__all__ = [
    "APP_NAME",
    "config_root",
    "data_root",
    "config_home",
    "data_home",
    "safe_key",
]
