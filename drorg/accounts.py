"""Per-account credential state.

Each logged-in account has one JSON blob holding its OAuth credentials and
the bookkeeping the sync engine needs between runs. The blob is opaque to
everything except this module.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime

from pydantic import BaseModel, ValidationError

from drorg.errors import AccountError, AccountNotFoundError
from drorg.lib.log import get_logger
from drorg.models import Account
from drorg.sources.token_store import TokenStore
from drorg.storage.backend import MirrorStore

logger = get_logger(__name__)


class AccountData(BaseModel):
    db_id: int
    credentials: str | None = None
    change_page_token: str | None = None
    root_folder_id: str | None = None
    last_sync: datetime | None = None


class AccountStore:
    """Loads and saves :class:`AccountData` keyed by account email."""

    def __init__(self, tokens: TokenStore, mirror: MirrorStore) -> None:
        self._tokens = tokens
        self._mirror = mirror

    def load(self, email: str) -> AccountData:
        raw = self._tokens.load(email)
        if raw is None:
            raise AccountNotFoundError(f"no stored credentials for {email}; run 'drorg login'")
        try:
            return AccountData.model_validate_json(raw)
        except ValidationError as exc:
            raise AccountError(f"stored state for {email} is corrupt: {exc}") from exc

    def save(self, email: str, data: AccountData) -> None:
        self._tokens.save(email, data.model_dump_json())
        logger.debug("account.saved", account=email)

    def iter_accounts(self) -> Iterator[tuple[Account, AccountData]]:
        """Yield every known account with its state, in stable id order.

        An account row with no stored state is left over from a login that
        failed part way; it is skipped until the next successful login.
        """
        for account in self._mirror.list_accounts():
            try:
                data = self.load(account.email)
            except AccountNotFoundError:
                logger.warning("account.no_state", account=account.email)
                continue
            yield account, data


__all__ = ["AccountData", "AccountStore"]
