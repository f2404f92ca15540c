"""Application wiring: one object holding everything a CLI invocation needs."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import timedelta

from rich.text import Text

from drorg.accounts import AccountData, AccountStore
from drorg.config import Config
from drorg.lib.log import get_logger
from drorg.listing import print_doc_list, set_cwd
from drorg.models import Account, Document
from drorg.resolver import Resolver
from drorg.sources.drive_client import DriveClient
from drorg.sources.token_store import create_token_store
from drorg.storage.backend import MirrorStore
from drorg.sync import SyncEngine, SyncOption
from drorg.ui import UI

logger = get_logger(__name__)


@dataclass
class Application:
    config: Config
    ui: UI
    store: MirrorStore
    accounts: AccountStore
    sync_option: SyncOption = SyncOption.AUTO
    engine: SyncEngine = field(init=False)
    _resolver: Resolver | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.engine = SyncEngine(
            self.store,
            self.accounts,
            self.client_for,
            resync_delay=timedelta(minutes=self.config.resync_delay_minutes),
        )

    @classmethod
    def initialize(cls, config: Config, ui: UI, *, sync_option: SyncOption | None = None) -> Application:
        store = MirrorStore(config.db_path)
        tokens = create_token_store(config.accounts_dir, use_keyring=config.use_keyring)
        return cls(
            config=config,
            ui=ui,
            store=store,
            accounts=AccountStore(tokens, store),
            sync_option=sync_option or SyncOption(config.sync),
        )

    def client_for(self, data: AccountData) -> DriveClient:
        return DriveClient(
            credentials_json=data.credentials,
            retries=self.config.drive_retries,
            retry_base=self.config.drive_retry_base,
        )

    def close(self) -> None:
        self.store.close()

    # --- Accounts ---

    def login(self, client: DriveClient | None = None) -> Account:
        """Authorize a new account and mirror everything it can see."""
        if client is None:
            client = DriveClient.authorize_interactively(
                self.config.client_secret_path,
                prompt=lambda text: self.ui.input(text) or "",
                notify=self.ui.print,
                retries=self.config.drive_retries,
                retry_base=self.config.drive_retry_base,
            )
        email = client.fetch_email()
        self.ui.print(f"Successfully logged in to {email}.")
        account = self.store.get_or_create_account(email)
        data = AccountData(db_id=account.id, credentials=client.credentials_json())
        # Take the change token before crawling so nothing changed mid-crawl is lost.
        self.engine.acquire_change_page_token(account, data, client)
        self.ui.print("Scanning documents ...")
        self.engine.import_documents(account, data, client)
        return account

    def maybe_sync_all_accounts(self) -> int:
        return self.engine.maybe_sync_all_accounts(self.sync_option, notify=self.ui.info)

    # --- Documents ---

    @property
    def resolver(self) -> Resolver:
        if self._resolver is None:
            self._resolver = Resolver(self.store, on_ambiguous=self._report_ambiguous)
        return self._resolver

    def _report_ambiguous(self, spec: str, total: int, shown: list[Document]) -> None:
        if total > len(shown):
            self.ui.error(f'{total} documents matched the specifier "{spec}"; only printing first {len(shown)}')
        else:
            self.ui.error(f'{total} documents matched the specifier "{spec}"')
        self.print_doc_list(shown)
        self.ui.print("")

    def print_doc_list(self, docs: Sequence[Document]) -> None:
        print_doc_list(self.store, self.ui, docs)

    def set_cwd(self, doc: Document) -> None:
        set_cwd(self.store, doc)

    def describe_paths(self, doc: Document) -> list[tuple[Account, list[str]]]:
        """Human-readable folder paths of doc, per account that can see it."""
        accounts = {account.id: account for account in self.store.list_accounts()}
        result: list[tuple[Account, list[str]]] = []
        for account_id, paths in self.resolver.folder_paths(doc.id).items():
            account = accounts.get(account_id)
            if account is None:
                continue
            names = {d.id: d.name for d in self.store.get_documents(i for path in paths for i in path)}
            rendered = ["/".join(names.get(i, i) for i in path) + "/" + doc.name for path in paths]
            result.append((account, rendered))
        return result

    def doc_line(self, doc: Document) -> Text:
        flags = ("*" if doc.starred else " ") + ("T" if doc.trashed else " ")
        return Text.assemble(f"   {flags} ", doc.name, f" ({doc.id})")


__all__ = ["Application"]
