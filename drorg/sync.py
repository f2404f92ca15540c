"""Bring the local mirror up to date with Drive.

Two kinds of pass exist. A full import crawls every document an account can
see and only ever adds rows. An incremental sync replays the account's
change feed from its stored change-page token. Each pass runs inside one
store transaction; the account's state blob is saved only after that
transaction commits, so a failed pass never advances the token.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from drorg.accounts import AccountData, AccountStore
from drorg.errors import AccountNotFoundError, DriveDataError
from drorg.lib.log import account_context, get_logger
from drorg.models import Account, ChangeRecord, DocumentRecord
from drorg.sources.drive_client import DriveClient
from drorg.storage.backend import MirrorStore

logger = get_logger(__name__)

DEFAULT_RESYNC_DELAY = timedelta(minutes=5)

ClientFactory = Callable[[AccountData], DriveClient]


class SyncOption(str, Enum):
    """Whether routine commands should talk to Drive first."""

    AUTO = "auto"
    YES = "yes"
    NO = "no"


@dataclass
class SyncStats:
    upserted: int = 0
    removed: int = 0
    skipped: int = 0
    links: int = 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncEngine:
    def __init__(
        self,
        store: MirrorStore,
        accounts: AccountStore,
        client_factory: ClientFactory,
        *,
        resync_delay: timedelta = DEFAULT_RESYNC_DELAY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._accounts = accounts
        self._client_factory = client_factory
        self._resync_delay = resync_delay
        self._clock = clock

    def _persist(self, account: Account, data: AccountData, client: DriveClient) -> None:
        refreshed = client.credentials_json()
        if refreshed is not None:
            data.credentials = refreshed
        self._accounts.save(account.email, data)

    def _record_document(self, account_id: int, record: DocumentRecord, stats: SyncStats) -> str:
        doc = record.to_document()
        self._store.upsert_document(doc)
        self._store.upsert_account_association(doc.id, account_id)
        stats.upserted += 1
        return doc.id

    # --- Full import ---

    def acquire_change_page_token(
        self, account: Account, data: AccountData, client: DriveClient | None = None
    ) -> None:
        """Fetch and store a fresh start token for the account's change feed.

        Done before a full import so that changes made during the crawl are
        replayed by the next incremental sync.
        """
        client = client or self._client_factory(data)
        with account_context(account.email):
            data.change_page_token = client.get_start_page_token()
            self._persist(account, data, client)
            logger.debug("sync.token_acquired")

    def import_documents(
        self, account: Account, data: AccountData, client: DriveClient | None = None
    ) -> SyncStats:
        """Record every document visible to the account.

        Additive only: links that Drive no longer reports are left in place
        until an incremental sync replaces the child's parent set.
        """
        client = client or self._client_factory(data)
        stats = SyncStats()
        with account_context(account.email):
            logger.info("import.start")
            with self._store.transaction():
                # The root folder never shows up in files.list, so fetch it explicitly.
                root_id = self._record_document(account.id, client.get_document("root"), stats)
                for record in client.iter_documents():
                    doc_id = self._record_document(account.id, record, stats)
                    for parent_id in record.parents:
                        self._store.upsert_link(account.id, parent_id, doc_id)
                        stats.links += 1
            data.root_folder_id = root_id
            data.last_sync = self._clock()
            self._persist(account, data, client)
            logger.info("import.done", upserted=stats.upserted, links=stats.links)
        return stats

    # --- Incremental sync ---

    def apply_change(self, account_id: int, change: ChangeRecord, stats: SyncStats) -> None:
        file_id = change.file_id
        if file_id is None:
            # Drive sometimes sends entries with every field empty; they carry nothing to apply.
            stats.skipped += 1
            return

        if change.removed:
            # Trashing does not get here; only permanent deletion or lost access does.
            self._store.delete_links(account_id, parent_id=file_id)
            self._store.delete_links(account_id, child_id=file_id)
            self._store.delete_account_associations(file_id)
            self._store.delete_document(file_id)
            stats.removed += 1
            return

        if change.file is None:
            raise DriveDataError(
                f"server reported a change to {file_id} but did not provide its information"
            )
        self._record_document(account_id, change.file, stats)
        # A change carries the complete parent set, so inbound edges are replaced.
        self._store.delete_links(account_id, child_id=file_id)
        for parent_id in change.file.parents:
            self._store.upsert_link(account_id, parent_id, file_id)
            stats.links += 1

    def sync_account(
        self,
        account: Account,
        data: AccountData,
        client: DriveClient | None = None,
        *,
        now: datetime | None = None,
    ) -> SyncStats:
        """Replay the account's change feed into the mirror."""
        token = data.change_page_token
        if not token:
            raise AccountNotFoundError(f"no change-paging token for {account.email}")

        client = client or self._client_factory(data)
        stats = SyncStats()
        with account_context(account.email):
            logger.info("sync.start")
            with self._store.transaction():
                new_token = client.list_changes(token, lambda change: self.apply_change(account.id, change, stats))
            data.change_page_token = new_token
            data.last_sync = now or self._clock()
            self._persist(account, data, client)
            logger.info("sync.done", upserted=stats.upserted, removed=stats.removed, skipped=stats.skipped)
        return stats

    def should_sync(self, data: AccountData, option: SyncOption, now: datetime) -> bool:
        if option is SyncOption.NO:
            return False
        if option is SyncOption.YES:
            return True
        if data.last_sync is None:
            return True
        return now - data.last_sync > self._resync_delay

    def maybe_sync_all_accounts(
        self,
        option: SyncOption = SyncOption.AUTO,
        *,
        notify: Callable[[str], None] | None = None,
    ) -> int:
        """Sync every account that is due; returns how many were synced.

        Stops at the first failure. Accounts synced before it keep their
        committed progress.
        """
        if option is SyncOption.NO:
            return 0
        synced = 0
        for account, data in self._accounts.iter_accounts():
            now = self._clock()
            if not self.should_sync(data, option, now):
                continue
            if synced == 0 and notify is not None:
                notify("synchronizing accounts ...")
            self.sync_account(account, data, now=now)
            synced += 1
        return synced

    def resync_all(self, *, notify: Callable[[str], None] | None = None) -> int:
        """Rebuild every account from a full crawl."""
        count = 0
        for account, data in self._accounts.iter_accounts():
            if notify is not None:
                notify(f"Re-initializing {account.email} ...")
            client = self._client_factory(data)
            self.acquire_change_page_token(account, data, client)
            self.import_documents(account, data, client)
            count += 1
        return count


__all__ = [
    "ClientFactory",
    "DEFAULT_RESYNC_DELAY",
    "SyncEngine",
    "SyncOption",
    "SyncStats",
]
