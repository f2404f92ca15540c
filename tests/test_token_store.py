"""Tests for account state storage backends."""

from __future__ import annotations

from pathlib import Path

import keyring
import pytest
from keyring.errors import KeyringError, PasswordSetError

from drorg.accounts import AccountData, AccountStore
from drorg.errors import AccountError, AccountNotFoundError
from drorg.sources.token_store import (
    FileTokenStore,
    KeyringTokenStore,
    create_token_store,
)


class _Backend:
    def __init__(self, priority: float) -> None:
        self.priority = priority


@pytest.fixture
def fake_keyring(monkeypatch):
    """Route keyring calls into a dict and report a usable backend."""
    secrets: dict[tuple[str, str], str] = {}
    monkeypatch.setattr(keyring, "get_keyring", lambda: _Backend(1))
    monkeypatch.setattr(keyring, "get_password", lambda service, key: secrets.get((service, key)))
    monkeypatch.setattr(keyring, "set_password", lambda service, key, data: secrets.__setitem__((service, key), data))
    monkeypatch.setattr(keyring, "delete_password", lambda service, key: secrets.pop((service, key), None))
    return secrets


@pytest.fixture
def no_keyring(monkeypatch):
    monkeypatch.setattr(keyring, "get_keyring", lambda: _Backend(0))


class TestFileTokenStore:
    """Tests for file-based token storage."""

    def test_save_and_load(self, tmp_path: Path) -> None:
        store = FileTokenStore(tmp_path)
        store.save("alice@example.com", '{"token": "value"}')

        assert store.load("alice@example.com") == '{"token": "value"}'
        assert (tmp_path / "alice@example.com.json").exists()

    def test_load_nonexistent_returns_none(self, tmp_path: Path) -> None:
        store = FileTokenStore(tmp_path)
        assert store.load("nonexistent") is None

    def test_save_replaces(self, tmp_path: Path) -> None:
        store = FileTokenStore(tmp_path)
        store.save("key", "first")
        store.save("key", "second")

        assert store.load("key") == "second"
        assert [p.name for p in tmp_path.iterdir()] == ["key.json"]

    def test_delete(self, tmp_path: Path) -> None:
        store = FileTokenStore(tmp_path)
        store.save("test_key", '{"token": "value"}')
        store.delete("test_key")

        assert store.load("test_key") is None

    def test_delete_nonexistent_is_safe(self, tmp_path: Path) -> None:
        store = FileTokenStore(tmp_path)
        store.delete("nonexistent")

    def test_sanitizes_key(self, tmp_path: Path) -> None:
        """Keys are sanitized to prevent directory traversal."""
        store = FileTokenStore(tmp_path / "accounts")
        store.save("../../evil", "data")

        assert not (tmp_path / "evil.json").exists()
        assert store.load("../../evil") == "data"

    def test_creates_directory_if_missing(self, tmp_path: Path) -> None:
        subdir = tmp_path / "nested" / "dir"
        store = FileTokenStore(subdir)
        store.save("key", "value")

        assert (subdir / "key.json").exists()

    def test_file_permissions(self, tmp_path: Path) -> None:
        """Token files have 0o600 permissions."""
        store = FileTokenStore(tmp_path)
        store.save("secure", '{"secret": "data"}')

        assert ((tmp_path / "secure.json").stat().st_mode & 0o777) == 0o600

    def test_failed_write_keeps_previous_blob(self, tmp_path: Path, monkeypatch) -> None:
        store = FileTokenStore(tmp_path)
        store.save("key", "good")

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("drorg.sources.token_store.os.replace", broken_replace)
        with pytest.raises(OSError, match="disk full"):
            store.save("key", "bad")

        assert store.load("key") == "good"
        assert [p.name for p in tmp_path.iterdir()] == ["key.json"]


class TestKeyringTokenStore:
    """Tests for keyring-based token storage with file fallback."""

    def test_uses_keyring_when_available(self, tmp_path: Path, fake_keyring) -> None:
        file_store = FileTokenStore(tmp_path)
        store = KeyringTokenStore(fallback=file_store)

        store.save("alice@example.com", "blob")

        assert store.available
        assert fake_keyring == {("drorg-accounts", "alice@example.com"): "blob"}
        assert file_store.load("alice@example.com") is None
        assert store.load("alice@example.com") == "blob"

    def test_fallback_to_file_when_keyring_unavailable(self, tmp_path: Path, no_keyring) -> None:
        file_store = FileTokenStore(tmp_path)
        store = KeyringTokenStore(fallback=file_store)

        store.save("test", "data")

        assert not store.available
        assert store.load("test") == "data"
        assert file_store.load("test") == "data"

    def test_save_error_falls_back(self, tmp_path: Path, fake_keyring, monkeypatch) -> None:
        def refuse(service, key, data):
            raise PasswordSetError("locked")

        monkeypatch.setattr(keyring, "set_password", refuse)
        file_store = FileTokenStore(tmp_path)
        store = KeyringTokenStore(fallback=file_store)

        store.save("key", "value")

        assert file_store.load("key") == "value"
        assert store.load("key") == "value"

    def test_backend_error_means_unavailable(self, tmp_path: Path, monkeypatch) -> None:
        def broken():
            raise KeyringError("no backend")

        monkeypatch.setattr(keyring, "get_keyring", broken)
        assert not KeyringTokenStore(fallback=FileTokenStore(tmp_path)).available

    def test_delete_clears_both(self, tmp_path: Path, fake_keyring) -> None:
        file_store = FileTokenStore(tmp_path)
        file_store.save("key", "old")
        store = KeyringTokenStore(fallback=file_store)
        store.save("key", "new")

        store.delete("key")

        assert store.load("key") is None


class TestCreateTokenStore:
    def test_prefers_keyring(self, tmp_path: Path, fake_keyring) -> None:
        assert isinstance(create_token_store(tmp_path), KeyringTokenStore)

    def test_file_when_keyring_unusable(self, tmp_path: Path, no_keyring) -> None:
        assert isinstance(create_token_store(tmp_path), FileTokenStore)

    def test_keyring_disabled(self, tmp_path: Path, fake_keyring) -> None:
        store = create_token_store(tmp_path, use_keyring=False)

        assert isinstance(store, FileTokenStore)
        store.save("test", "data")
        assert fake_keyring == {}


class TestAccountStore:
    """Tests for the typed account state layered over a token store."""

    def test_round_trip(self, store, account_store) -> None:
        account = store.get_or_create_account("alice@example.com")
        account_store.save(account.email, AccountData(db_id=account.id, change_page_token="t-1"))

        loaded = account_store.load(account.email)

        assert loaded.db_id == account.id
        assert loaded.change_page_token == "t-1"
        assert loaded.root_folder_id is None

    def test_missing(self, account_store) -> None:
        with pytest.raises(AccountNotFoundError, match="drorg login"):
            account_store.load("nobody@example.com")

    def test_corrupt(self, tmp_path: Path, account_store) -> None:
        FileTokenStore(tmp_path / "accounts").save("alice@example.com", '{"credentials": "x"}')

        with pytest.raises(AccountError, match="corrupt"):
            account_store.load("alice@example.com")

    def test_iter_accounts_in_id_order(self, store, account_store) -> None:
        for email in ("zed@example.com", "amy@example.com"):
            account = store.get_or_create_account(email)
            account_store.save(email, AccountData(db_id=account.id))

        assert [account.email for account, _ in account_store.iter_accounts()] == [
            "zed@example.com",
            "amy@example.com",
        ]

    def test_iter_accounts_skips_account_without_state(self, store, account_store) -> None:
        store.get_or_create_account("half@example.com")
        account = store.get_or_create_account("alice@example.com")
        account_store.save(account.email, AccountData(db_id=account.id))

        assert [account.email for account, _ in account_store.iter_accounts()] == [
            "alice@example.com"
        ]
