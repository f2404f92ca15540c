"""Turn short user-typed specifiers into documents.

A specifier is tried against each of these forms in turn, first match wins:

1. an exact document id;
2. ``.``, the virtual current directory;
3. ``..``, every parent of the virtual current directory, across accounts;
4. ``%N``, the N-th entry (1-based) of the last printed listing;
5. a case-sensitive fragment of the document name.
"""

from __future__ import annotations

from collections.abc import Callable

from drorg.errors import DatabaseError, SpecifierError
from drorg.graph import LinkageGraph, find_parent_paths, load_linkage_graph
from drorg.lib.log import get_logger
from drorg.listing import CWD_LISTING, LAST_PRINT_LISTING
from drorg.models import Document
from drorg.storage.backend import MirrorStore

logger = get_logger(__name__)

MAX_AMBIGUOUS_SHOWN = 20

AmbiguityReporter = Callable[[str, int, list[Document]], None]


class NoMatchError(SpecifierError):
    def __init__(self, spec: str) -> None:
        super().__init__(f'no documents matched the specifier "{spec}"')
        self.spec = spec


class AmbiguousSpecifierError(SpecifierError):
    """More than one document matched where exactly one was needed.

    ``shown`` holds at most :data:`MAX_AMBIGUOUS_SHOWN` of the ``total`` matches.
    """

    def __init__(self, spec: str, total: int, shown: list[Document]) -> None:
        super().__init__(
            f'{total} documents matched the specifier "{spec}"; '
            "it should have matched exactly one document; please be more specific"
        )
        self.spec = spec
        self.total = total
        self.shown = shown


class CwdUndefinedError(SpecifierError):
    pass


class InvalidListingReferenceError(SpecifierError):
    pass


def _most_recent_first(docs: list[Document]) -> list[Document]:
    return sorted(docs, key=lambda doc: doc.modified_time, reverse=True)


class Resolver:
    """Resolves specifiers against the mirror.

    Linkage graphs built for ``..`` are cached on the instance, which lives
    for a single CLI invocation.
    """

    def __init__(self, store: MirrorStore, *, on_ambiguous: AmbiguityReporter | None = None) -> None:
        self._store = store
        self._on_ambiguous = on_ambiguous
        self._graphs: dict[int, LinkageGraph] = {}

    def _parent_graph(self, account_id: int) -> LinkageGraph:
        graph = self._graphs.get(account_id)
        if graph is None:
            graph = load_linkage_graph(self._store, account_id, transposed=True)
            self._graphs[account_id] = graph
        return graph

    def _cwd(self, spec: str) -> Document:
        docs = self._store.listing_documents(CWD_LISTING)
        if not docs:
            raise CwdUndefinedError(f'the virtual CWD ("{spec}") is not currently defined')
        if len(docs) > 1:
            raise DatabaseError(f"virtual CWD listing holds {len(docs)} entries")
        return docs[0]

    def folder_paths(self, doc_id: str) -> dict[int, list[list[str]]]:
        """Folder paths leading to doc_id, keyed by each account that can see it."""
        return {
            account_id: find_parent_paths(self._parent_graph(account_id), doc_id)
            for account_id in self._store.accounts_for_document(doc_id)
        }

    def _cwd_parents(self) -> list[Document]:
        cwd = self._cwd(".")
        parent_ids: set[str] = set()
        for paths in self.folder_paths(cwd.id).values():
            for path in paths:
                if path:
                    parent_ids.add(path[-1])
        # Parents Drive mentioned but never listed have no row; skip them.
        return self._store.get_documents(parent_ids)

    def _listing_reference(self, spec: str) -> Document:
        invalid = InvalidListingReferenceError(f'"{spec}" is not a valid recent-document reference')
        digits = spec[1:]
        # int() alone would also take signs, spaces and underscores.
        if not (digits.isascii() and digits.isdigit()):
            raise invalid
        position = int(digits) - 1
        if position < 0:
            raise invalid
        doc = self._store.listing_item(LAST_PRINT_LISTING, position)
        if doc is None:
            raise invalid
        return doc

    def lookup(self, spec: str) -> list[Document]:
        """All documents the specifier names, unsorted, possibly none."""
        doc = self._store.get_document(spec)
        if doc is not None:
            return [doc]
        if spec == ".":
            return [self._cwd(spec)]
        if spec == "..":
            return self._cwd_parents()
        if spec.startswith("%"):
            return [self._listing_reference(spec)]
        return self._store.query_documents_like(f"%{spec}%")

    def process(self, spec: str, *, zero_ok: bool = False) -> list[Document]:
        """Every match, most recently modified first."""
        docs = self.lookup(spec)
        if not docs and not zero_ok:
            raise NoMatchError(spec)
        return _most_recent_first(docs)

    def process_one(self, spec: str) -> Document:
        docs = self.lookup(spec)
        if not docs:
            raise NoMatchError(spec)
        if len(docs) == 1:
            return docs[0]

        shown = _most_recent_first(docs)[:MAX_AMBIGUOUS_SHOWN]
        logger.debug("resolver.ambiguous", spec=spec, total=len(docs))
        if self._on_ambiguous is not None:
            self._on_ambiguous(spec, len(docs), shown)
        raise AmbiguousSpecifierError(spec, len(docs), shown)


__all__ = [
    "AmbiguousSpecifierError",
    "CwdUndefinedError",
    "InvalidListingReferenceError",
    "MAX_AMBIGUOUS_SHOWN",
    "NoMatchError",
    "Resolver",
]
