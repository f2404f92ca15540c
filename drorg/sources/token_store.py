"""Storage backends for per-account credential state.

Each account's state is one opaque JSON blob keyed by the account email:
- FileTokenStore: JSON files with 0o600 permissions (fallback)
- KeyringTokenStore: System keyring integration via the `keyring` library
"""

from __future__ import annotations

import os
import tempfile
from contextlib import suppress
from pathlib import Path
from typing import Protocol

import keyring
from keyring.errors import KeyringError

from drorg.lib.log import get_logger
from drorg.paths import safe_key

LOGGER = get_logger(__name__)


class TokenStore(Protocol):
    """Protocol for credential blob persistence."""

    def load(self, key: str) -> str | None:
        """Load the blob stored under key. Returns None if not found."""
        ...

    def save(self, key: str, data: str) -> None:
        """Save the blob under key, replacing any previous one."""
        ...

    def delete(self, key: str) -> None:
        """Delete the blob stored under key."""
        ...


class FileTokenStore:
    """File-based storage with 0o600 permissions.

    Writes go to a temporary file in the same directory which then replaces
    the target, so a crash never leaves a truncated blob behind.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    def _path_for_key(self, key: str) -> Path:
        return self._directory / f"{safe_key(key)}.json"

    def load(self, key: str) -> str | None:
        path = self._path_for_key(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def save(self, key: str, data: str) -> None:
        path = self._path_for_key(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(data)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
        except BaseException:
            with suppress(OSError):
                os.unlink(tmp_name)
            raise

    def delete(self, key: str) -> None:
        path = self._path_for_key(key)
        if path.exists():
            path.unlink()


class KeyringTokenStore:
    """Keyring-based storage using the system credential store.

    Falls back to FileTokenStore if the keyring backend is unusable or a call fails.
    """

    _SERVICE_NAME = "drorg-accounts"

    def __init__(self, fallback: FileTokenStore) -> None:
        self._fallback = fallback
        self._available = self._check_keyring()

    @staticmethod
    def _check_keyring() -> bool:
        try:
            backend = keyring.get_keyring()
        except KeyringError:
            return False
        # The fail backend is what keyring hands out on headless machines.
        return getattr(backend, "priority", 0) > 0

    @property
    def available(self) -> bool:
        return self._available

    def load(self, key: str) -> str | None:
        if self._available:
            try:
                data = keyring.get_password(self._SERVICE_NAME, key)
                if data is not None:
                    return data
            except KeyringError as exc:
                LOGGER.debug("keyring.load_failed", key=key, error=str(exc))
        return self._fallback.load(key)

    def save(self, key: str, data: str) -> None:
        if self._available:
            try:
                keyring.set_password(self._SERVICE_NAME, key, data)
                return
            except KeyringError as exc:
                LOGGER.debug("keyring.save_failed", key=key, error=str(exc))
        self._fallback.save(key, data)

    def delete(self, key: str) -> None:
        if self._available:
            with suppress(KeyringError):
                keyring.delete_password(self._SERVICE_NAME, key)
        self._fallback.delete(key)


def create_token_store(directory: Path, *, use_keyring: bool = True) -> TokenStore:
    """Create the best available token store.

    Tries keyring first when enabled, falls back to file-based storage.
    """
    file_store = FileTokenStore(directory)
    if not use_keyring:
        return file_store
    keyring_store = KeyringTokenStore(fallback=file_store)
    if keyring_store.available:
        LOGGER.debug("Using keyring token storage")
        return keyring_store
    LOGGER.debug("Using file-based token storage (keyring not available)")
    return file_store
