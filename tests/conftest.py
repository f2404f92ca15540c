import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from drorg.accounts import AccountData, AccountStore
from drorg.models import Document
from drorg.sources.drive_client import DriveClient
from drorg.sources.token_store import FileTokenStore
from drorg.storage.backend import MirrorStore
from drorg.sync import SyncEngine
from tests.mocks import MockDriveService, mock_drive_file, mock_folder

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point XDG dirs into tmp_path and drop any drorg environment overrides."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ("DRORG_CONFIG", "DRORG_DATA_DIR", "DRORG_CLIENT_SECRET", "DRORG_FORCE_PLAIN", "DRORG_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture
def store(tmp_path):
    mirror = MirrorStore(tmp_path / "mirror" / "db.sqlite")
    yield mirror
    mirror.close()


@pytest.fixture
def account_store(tmp_path, store):
    return AccountStore(FileTokenStore(tmp_path / "accounts"), store)


@pytest.fixture
def drive_service():
    """An account whose Drive holds root > Projects > report.txt."""
    service = MockDriveService(root_id="root-id", email="alice@example.com")
    service.add(mock_folder("root-id", "My Drive"))
    service.add(mock_folder("folderF", "Projects", parents=["root-id"], modified_time="2024-01-02T00:00:00Z"))
    service.add(mock_drive_file("docD", "report.txt", parents=["folderF"], modified_time="2024-01-03T00:00:00Z"))
    return service


@pytest.fixture
def make_engine(store, account_store):
    """Build a SyncEngine whose client factory serves the given mock services by account id."""

    def _make(services: dict[int, MockDriveService], *, clock=lambda: FIXED_NOW, **kwargs) -> SyncEngine:
        def factory(data: AccountData) -> DriveClient:
            return DriveClient(service=services[data.db_id], retries=0, retry_base=0)

        return SyncEngine(store, account_store, factory, clock=clock, **kwargs)

    return _make


@pytest.fixture
def login_account(store, account_store):
    """Create an account row plus stored state, returning (account, data)."""

    def _login(email: str = "alice@example.com", **fields):
        account = store.get_or_create_account(email)
        data = AccountData(db_id=account.id, credentials='{"token": "x"}', **fields)
        account_store.save(email, data)
        return account, data

    return _login


def make_doc(doc_id: str, name: str | None = None, *, folder: bool = False, modified: str = "2024-01-01T00:00:00", **kwargs) -> Document:
    return Document(
        id=doc_id,
        name=name or doc_id,
        mime_type="application/vnd.google-apps.folder" if folder else "text/plain",
        modified_time=datetime.fromisoformat(modified).replace(tzinfo=timezone.utc),
        **kwargs,
    )
