"""Thin adapter over the Google Drive v3 API.

Hides request paging and transient-failure retries; everything it returns
is already parsed into :mod:`drorg.models` records.
"""

from __future__ import annotations

import importlib
import json
from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from pathlib import Path
from typing import Any

from tenacity import (
    Retrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from drorg.errors import DriveAuthError, DriveDataError, DriveError, DriveNotFoundError
from drorg.lib.log import get_logger
from drorg.models import ChangeRecord, DocumentRecord

logger = get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]
DEFAULT_DRIVE_RETRIES = 3
DEFAULT_DRIVE_RETRY_BASE = 0.5
LIST_PAGE_SIZE = 1000


class FileField(str, Enum):
    """Fields of a Drive ``File`` resource that can be requested."""

    ID = "id"
    MIME_TYPE = "mimeType"
    MODIFIED_TIME = "modifiedTime"
    NAME = "name"
    PARENTS = "parents"
    SIZE = "size"
    STARRED = "starred"
    TRASHED = "trashed"


DEFAULT_FILE_FIELDS: tuple[FileField, ...] = tuple(FileField)


def file_selector(fields: Iterable[FileField]) -> str:
    return ",".join(field.value for field in fields)


def _import_module(name: str) -> Any:
    try:
        return importlib.import_module(name)
    except ModuleNotFoundError as exc:
        raise DriveAuthError(
            "Drive dependencies are not available. "
            "Install google-api-python-client + google-auth-oauthlib."
        ) from exc


def _translate_http_error(exc: Exception) -> Exception:
    """Map googleapiclient HttpErrors onto our non-retryable error types."""
    status = getattr(getattr(exc, "resp", None), "status", None)
    if status == 401:
        return DriveAuthError(f"Drive rejected our credentials: {exc}")
    if status == 404:
        return DriveNotFoundError(f"Drive object not found: {exc}")
    return exc


def _execute_once(request: Any) -> Any:
    try:
        return request.execute()
    except DriveError:
        raise
    except Exception as exc:
        translated = _translate_http_error(exc)
        if translated is exc:
            raise
        raise translated from exc


class DriveClient:
    """Drive API access for a single account.

    Either hand in an already-built ``service`` (tests do this) or the
    account's authorized-user credentials JSON, from which a service is
    built lazily on first use.
    """

    def __init__(
        self,
        *,
        credentials_json: str | None = None,
        service: Any = None,
        retries: int = DEFAULT_DRIVE_RETRIES,
        retry_base: float = DEFAULT_DRIVE_RETRY_BASE,
        fields: Iterable[FileField] = DEFAULT_FILE_FIELDS,
    ) -> None:
        if service is None and credentials_json is None:
            raise DriveAuthError("DriveClient needs either credentials or a service")
        self._credentials_json = credentials_json
        self._credentials: Any = None
        self._service = service
        self._retries = max(0, int(retries))
        self._retry_base = max(0.0, float(retry_base))
        self._file_fields = file_selector(fields)

    # --- Authorization ---

    @classmethod
    def authorize_interactively(
        cls,
        client_secret_path: Path,
        *,
        prompt: Callable[[str], str] | None = None,
        notify: Callable[[str], None] | None = None,
        **kwargs: Any,
    ) -> DriveClient:
        """Run the installed-app OAuth flow and return a client for the chosen account.

        Tries the local-server flow first and falls back to pasting an
        authorization code when no local port can be opened.
        """
        installed_app_flow_cls = _import_module("google_auth_oauthlib.flow").InstalledAppFlow

        if not client_secret_path.exists():
            raise DriveAuthError(
                f"OAuth client secret not found at {client_secret_path}. "
                "Download an installed-application client JSON from the Google Cloud console "
                "or set DRORG_CLIENT_SECRET."
            )
        try:
            flow = installed_app_flow_cls.from_client_secrets_file(str(client_secret_path), SCOPES)
        except ValueError as exc:
            raise DriveAuthError(f"Malformed OAuth client secret {client_secret_path}: {exc}") from exc

        try:
            creds = flow.run_local_server(open_browser=True, port=0)
        except OSError as exc:
            logger.info("auth.local_server_unavailable", error=str(exc))
            if prompt is None:
                raise DriveAuthError("Drive authorization needs an interactive terminal.") from exc
            auth_url, _ = flow.authorization_url(prompt="consent", access_type="offline")
            (notify or logger.info)(f"Open this URL in your browser to authorize Drive access:\n{auth_url}")
            code = prompt("Paste the authorization code")
            if not code:
                raise DriveAuthError("Drive authorization cancelled.") from None
            try:
                flow.fetch_token(code=code)
            except Exception as fetch_exc:
                raise DriveAuthError(f"Drive authorization failed: {fetch_exc}") from fetch_exc
            creds = flow.credentials
        return cls(credentials_json=creds.to_json(), **kwargs)

    def _load_credentials(self) -> Any:
        request_cls = _import_module("google.auth.transport.requests").Request
        credentials_cls = _import_module("google.oauth2.credentials").Credentials

        try:
            info = json.loads(self._credentials_json or "")
            creds = credentials_cls.from_authorized_user_info(info, SCOPES)
        except (TypeError, ValueError) as exc:
            raise DriveAuthError(f"Stored Drive credentials are unreadable: {exc}") from exc
        if creds.expired and creds.refresh_token:
            try:
                creds.refresh(request_cls())
            except Exception as exc:
                raise DriveAuthError(
                    f"Failed to refresh OAuth token: {exc}. Try re-authenticating with 'drorg login'."
                ) from exc
        if not creds.valid:
            raise DriveAuthError("Stored Drive credentials are invalid and cannot be refreshed; run 'drorg login'.")
        return creds

    def _service_handle(self) -> Any:
        if self._service is not None:
            return self._service
        build = _import_module("googleapiclient.discovery").build

        self._credentials = self._load_credentials()
        self._service = build("drive", "v3", credentials=self._credentials, cache_discovery=False)
        return self._service

    def credentials_json(self) -> str | None:
        """Current credentials, including any refreshed access token."""
        if self._credentials is not None:
            return str(self._credentials.to_json())
        return self._credentials_json

    # --- Requests ---

    def _call_with_retry(self, request: Any) -> Any:
        retryer = Retrying(
            stop=stop_after_attempt(self._retries + 1),
            wait=wait_exponential(multiplier=self._retry_base, min=self._retry_base, max=10),
            retry=retry_if_exception_type(Exception)
            & retry_if_not_exception_type((DriveAuthError, DriveNotFoundError, DriveDataError)),
            reraise=True,
        )
        try:
            return retryer(_execute_once, request)
        except DriveError:
            raise
        except Exception as exc:
            raise DriveError(f"Drive request failed: {exc}") from exc

    def fetch_email(self) -> str:
        service = self._service_handle()
        about = self._call_with_retry(service.about().get(fields="user(emailAddress)"))
        email = (about or {}).get("user", {}).get("emailAddress")
        if not email:
            raise DriveDataError("Drive did not report the account's email address")
        return str(email)

    def get_start_page_token(self) -> str:
        service = self._service_handle()
        response = self._call_with_retry(
            service.changes().getStartPageToken(supportsAllDrives=True)
        )
        token = (response or {}).get("startPageToken")
        if not token:
            raise DriveDataError("Drive did not return a start page token")
        return str(token)

    def get_document(self, file_id: str) -> DocumentRecord:
        service = self._service_handle()
        payload = self._call_with_retry(
            service.files().get(fileId=file_id, fields=self._file_fields, supportsAllDrives=True)
        )
        return DocumentRecord.from_api(payload)

    def iter_documents(self) -> Iterator[DocumentRecord]:
        """Yield every document visible to the account, page by page.

        Not restartable: a failure mid-way must be retried from scratch.
        """
        service = self._service_handle()
        fields = f"nextPageToken, files({self._file_fields})"
        page_token: str | None = None
        while True:
            logger.debug("drive.files.list", page_token=page_token)
            response = self._call_with_retry(
                service.files().list(
                    spaces="drive",
                    fields=fields,
                    pageSize=LIST_PAGE_SIZE,
                    pageToken=page_token,
                )
            )
            files = response.get("files")
            if files is None:
                raise DriveDataError("API call failed: no 'files' returned")
            page_token = response.get("nextPageToken")
            if not files and page_token:
                raise DriveDataError("Drive returned an empty page in the middle of a file listing")
            for item in files:
                yield DocumentRecord.from_api(item)
            if not page_token:
                return

    def list_changes(self, token: str, handler: Callable[[ChangeRecord], None]) -> str:
        """Apply ``handler`` to every change since ``token``, in server order.

        Returns the token to resume from next time: the continuation token
        of the last page, or the fresh start token once the feed is drained.
        """
        service = self._service_handle()
        fields = f"changes(file({self._file_fields}),fileId,removed),newStartPageToken,nextPageToken"
        page_token = token
        while True:
            logger.debug("drive.changes.list", page_token=page_token)
            response = self._call_with_retry(
                service.changes().list(
                    pageToken=page_token,
                    spaces="drive",
                    fields=fields,
                    supportsAllDrives=True,
                    includeItemsFromAllDrives=True,
                    includeRemoved=True,
                    includeCorpusRemovals=True,
                )
            )
            next_token = response.get("nextPageToken")
            new_start = response.get("newStartPageToken")
            if not next_token and not new_start:
                raise DriveDataError("Drive change listing returned neither a next page token nor a new start token")
            changes = response.get("changes")
            if changes is None:
                raise DriveDataError("API call failed: no 'changes' returned")
            final_page = not next_token
            if not changes and not final_page:
                raise DriveDataError("Drive returned an empty page in the middle of a change listing")
            for item in changes:
                handler(ChangeRecord.from_api(item))
            if final_page:
                return str(new_start)
            page_token = next_token


__all__ = [
    "DEFAULT_FILE_FIELDS",
    "DriveClient",
    "FileField",
    "SCOPES",
    "file_selector",
]
