"""Listing snapshots: the virtual CWD and the last printed document list."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from rich.text import Text

from drorg.errors import SpecifierError
from drorg.models import Document
from drorg.storage.backend import MirrorStore
from drorg.ui import UI

LAST_PRINT_LISTING = 0
CWD_LISTING = 1

_AGE_UNITS = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("week", 7 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


class NotAFolderError(SpecifierError):
    pass


def set_cwd(store: MirrorStore, doc: Document) -> None:
    if not doc.is_folder:
        raise NotAFolderError(f'cannot set virtual CWD to non-folder "{doc.name}"')
    store.replace_listing(CWD_LISTING, [doc.id])


def format_age(modified: datetime, now: datetime) -> str:
    seconds = int((now - modified).total_seconds())
    if seconds < 0:
        return "[future?]"
    if seconds == 0:
        return "now"
    for unit, size in _AGE_UNITS:
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "now"


def _name_style(doc: Document) -> str:
    if doc.trashed:
        return "doc.trashed"
    if doc.starred:
        return "doc.starred"
    if doc.is_folder:
        return "doc.folder"
    return "doc.plain"


def print_doc_list(
    store: MirrorStore,
    ui: UI,
    docs: Sequence[Document],
    *,
    now: datetime | None = None,
) -> None:
    """Print docs with ``%N`` tags and remember them for later ``%N`` references.

    An empty list prints nothing and keeps the previous snapshot.
    """
    if not docs:
        return

    store.replace_listing(LAST_PRINT_LISTING, [doc.id for doc in docs])

    now = now or datetime.now(timezone.utc)
    n_width = len(str(len(docs)))
    name_width = max(len(doc.name) for doc in docs)

    for i, doc in enumerate(docs, start=1):
        row = Text()
        row.append(f"%{i:<{n_width}}", style="listing.tag")
        row.append("  ")
        row.append(f"{doc.name:<{name_width}}", style=_name_style(doc))
        row.append("  ")
        row.append(format_age(doc.modified_time, now), style="listing.age")
        ui.print(row)


__all__ = [
    "CWD_LISTING",
    "LAST_PRINT_LISTING",
    "NotAFolderError",
    "format_age",
    "print_doc_list",
    "set_cwd",
]
