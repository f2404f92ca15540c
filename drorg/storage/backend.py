"""SQLite mirror store for Drive document metadata."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from drorg.errors import DatabaseError
from drorg.lib.log import get_logger
from drorg.models import Account, Document, Link
from drorg.storage.schema import _ensure_schema

LOGGER = get_logger(__name__)

_DOC_COLUMNS = "id, name, mime_type, modified_time, starred, trashed"


def _format_time(value: datetime) -> str:
    # Fixed-width UTC text sorts chronologically.
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _row_to_document(row: sqlite3.Row) -> Document:
    return Document(
        id=row["id"],
        name=row["name"],
        mime_type=row["mime_type"],
        modified_time=datetime.fromisoformat(row["modified_time"]),
        starred=bool(row["starred"]),
        trashed=bool(row["trashed"]),
    )


def like_to_glob(pattern: str) -> str:
    """Translate a LIKE-style pattern into a case-sensitive GLOB pattern.

    ``%`` matches any run of characters and ``_`` exactly one. Characters
    that are special to GLOB are bracketed so they match literally.
    """
    out = []
    for ch in pattern:
        if ch == "%":
            out.append("*")
        elif ch == "_":
            out.append("?")
        elif ch in "*?[":
            out.append(f"[{ch}]")
        else:
            out.append(ch)
    return "".join(out)


class MirrorStore:
    """SQLite storage for the local Drive mirror.

    Thread Safety:
        - Each thread gets its own connection via threading.local()
        - Transactions (begin/commit/rollback) are connection-scoped

    Transaction Management:
        - begin() starts a transaction (or nested savepoint)
        - commit() commits the transaction
        - rollback() rolls back to the last begin()
        - Connections run in autocommit mode, so writes outside begin()
          are committed statement by statement
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DatabaseError(f"cannot create directory for mirror database {self._db_path}: {exc}") from exc
        self._local = threading.local()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self._db_path, timeout=30, isolation_level=None)
            try:
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA foreign_keys = ON")
                conn.execute("PRAGMA journal_mode=WAL;")
                conn.execute("PRAGMA busy_timeout = 30000")
                _ensure_schema(conn)
            except BaseException:
                conn.close()
                raise
        except sqlite3.Error as exc:
            raise DatabaseError(f"cannot open mirror database {self._db_path}: {exc}") from exc
        return conn

    def _get_connection(self) -> sqlite3.Connection:
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = self._connect()
            self._local.transaction_depth = 0
        connection: sqlite3.Connection = self._local.conn
        return connection

    def _execute(self, sql: str, params: Sequence[object] = ()) -> sqlite3.Cursor:
        conn = self._get_connection()
        try:
            return conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise DatabaseError(f"mirror database error: {exc}") from exc

    def _executemany(self, sql: str, rows: Iterable[Sequence[object]]) -> sqlite3.Cursor:
        conn = self._get_connection()
        try:
            return conn.executemany(sql, rows)
        except sqlite3.Error as exc:
            raise DatabaseError(f"mirror database error: {exc}") from exc

    # --- Transactions ---

    def begin(self) -> None:
        """Begin a transaction or nested savepoint.

        Uses ``BEGIN IMMEDIATE`` for top-level transactions so the write lock
        is taken up front instead of on the first write.
        """
        self._get_connection()
        if self._local.transaction_depth == 0:
            self._execute("BEGIN IMMEDIATE")
        else:
            self._execute(f"SAVEPOINT sp_{self._local.transaction_depth}")
        self._local.transaction_depth += 1

    def commit(self) -> None:
        """Commit the current transaction or release savepoint."""
        if getattr(self._local, "transaction_depth", 0) <= 0:
            raise DatabaseError("No active transaction to commit")

        self._local.transaction_depth -= 1

        if self._local.transaction_depth == 0:
            self._execute("COMMIT")
        else:
            self._execute(f"RELEASE SAVEPOINT sp_{self._local.transaction_depth}")

    def rollback(self) -> None:
        """Rollback to the last begin() or savepoint."""
        if getattr(self._local, "transaction_depth", 0) <= 0:
            raise DatabaseError("No active transaction to rollback")

        self._local.transaction_depth -= 1

        if self._local.transaction_depth == 0:
            self._execute("ROLLBACK")
        else:
            sp = f"sp_{self._local.transaction_depth}"
            self._execute(f"ROLLBACK TO SAVEPOINT {sp}")
            self._execute(f"RELEASE SAVEPOINT {sp}")

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Context manager for transactions.

        Example:
            with store.transaction():
                store.upsert_document(doc)
                store.upsert_account_association(doc.id, account_id)
        """
        self.begin()
        try:
            yield
        except BaseException:
            self.rollback()
            raise
        self.commit()

    def close(self) -> None:
        """Close the database connection for this thread."""
        if getattr(self._local, "conn", None) is not None:
            self._local.conn.close()
            self._local.conn = None
            self._local.transaction_depth = 0

    # --- Documents ---

    def upsert_document(self, doc: Document) -> None:
        self._execute(
            f"""
            INSERT INTO docs ({_DOC_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                mime_type = excluded.mime_type,
                modified_time = excluded.modified_time,
                starred = excluded.starred,
                trashed = excluded.trashed
            """,
            (
                doc.id,
                doc.name,
                doc.mime_type,
                _format_time(doc.modified_time),
                int(doc.starred),
                int(doc.trashed),
            ),
        )

    def delete_document(self, doc_id: str) -> bool:
        """Delete a document row. Deleting an unknown id is a no-op."""
        cursor = self._execute("DELETE FROM docs WHERE id = ?", (doc_id,))
        return cursor.rowcount > 0

    def get_document(self, doc_id: str) -> Document | None:
        row = self._execute(f"SELECT {_DOC_COLUMNS} FROM docs WHERE id = ?", (doc_id,)).fetchone()
        if row is None:
            return None
        return _row_to_document(row)

    def get_documents(self, doc_ids: Iterable[str]) -> list[Document]:
        """Fetch documents by id; unknown ids are silently absent from the result."""
        ids = list(dict.fromkeys(doc_ids))
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = self._execute(
            f"SELECT {_DOC_COLUMNS} FROM docs WHERE id IN ({placeholders})",
            ids,
        ).fetchall()
        return [_row_to_document(row) for row in rows]

    def query_documents_like(self, pattern: str) -> list[Document]:
        """Case-sensitive LIKE-style match against document names."""
        rows = self._execute(
            f"SELECT {_DOC_COLUMNS} FROM docs WHERE name GLOB ?",
            (like_to_glob(pattern),),
        ).fetchall()
        return [_row_to_document(row) for row in rows]

    def all_documents(self, *, include_trashed: bool = True) -> list[Document]:
        query = f"SELECT {_DOC_COLUMNS} FROM docs"
        if not include_trashed:
            query += " WHERE trashed = 0"
        rows = self._execute(query + " ORDER BY modified_time DESC").fetchall()
        return [_row_to_document(row) for row in rows]

    def recent_documents(self, limit: int) -> list[Document]:
        rows = self._execute(
            f"SELECT {_DOC_COLUMNS} FROM docs WHERE trashed = 0 ORDER BY modified_time DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [_row_to_document(row) for row in rows]

    def children_of(self, parent_id: str) -> list[Document]:
        """Documents linked under parent_id by any account."""
        rows = self._execute(
            f"""
            SELECT {_DOC_COLUMNS} FROM docs
            WHERE id IN (SELECT child_id FROM links WHERE parent_id = ?)
            """,
            (parent_id,),
        ).fetchall()
        return [_row_to_document(row) for row in rows]

    # --- Accounts and associations ---

    def get_or_create_account(self, email: str) -> Account:
        with self.transaction():
            row = self._execute("SELECT id, email FROM accounts WHERE email = ?", (email,)).fetchone()
            if row is None:
                cursor = self._execute("INSERT INTO accounts (email) VALUES (?)", (email,))
                LOGGER.debug("account.created", email=email, account_id=cursor.lastrowid)
                return Account(id=int(cursor.lastrowid), email=email)
        return Account(id=row["id"], email=row["email"])

    def list_accounts(self) -> list[Account]:
        rows = self._execute("SELECT id, email FROM accounts ORDER BY id").fetchall()
        return [Account(id=row["id"], email=row["email"]) for row in rows]

    def upsert_account_association(self, doc_id: str, account_id: int) -> None:
        self._execute(
            "INSERT OR IGNORE INTO account_associations (doc_id, account_id) VALUES (?, ?)",
            (doc_id, account_id),
        )

    def delete_account_associations(self, doc_id: str, account_id: int | None = None) -> int:
        """Delete associations for a document, for one account or for all of them."""
        if account_id is None:
            cursor = self._execute("DELETE FROM account_associations WHERE doc_id = ?", (doc_id,))
        else:
            cursor = self._execute(
                "DELETE FROM account_associations WHERE doc_id = ? AND account_id = ?",
                (doc_id, account_id),
            )
        return cursor.rowcount

    def accounts_for_document(self, doc_id: str) -> list[int]:
        rows = self._execute(
            "SELECT account_id FROM account_associations WHERE doc_id = ? ORDER BY account_id",
            (doc_id,),
        ).fetchall()
        return [row["account_id"] for row in rows]

    # --- Links ---

    def upsert_link(self, account_id: int, parent_id: str, child_id: str) -> None:
        self._execute(
            "INSERT OR IGNORE INTO links (account_id, parent_id, child_id) VALUES (?, ?, ?)",
            (account_id, parent_id, child_id),
        )

    def delete_links(
        self,
        account_id: int,
        *,
        parent_id: str | None = None,
        child_id: str | None = None,
    ) -> int:
        """Delete one account's links matching every given endpoint filter."""
        if parent_id is None and child_id is None:
            raise ValueError("delete_links needs a parent_id or child_id filter")
        clauses = ["account_id = ?"]
        params: list[object] = [account_id]
        if parent_id is not None:
            clauses.append("parent_id = ?")
            params.append(parent_id)
        if child_id is not None:
            clauses.append("child_id = ?")
            params.append(child_id)
        cursor = self._execute(f"DELETE FROM links WHERE {' AND '.join(clauses)}", params)
        return cursor.rowcount

    def links_for_account(self, account_id: int) -> list[Link]:
        rows = self._execute(
            "SELECT account_id, parent_id, child_id FROM links WHERE account_id = ?",
            (account_id,),
        ).fetchall()
        return [
            Link(account_id=row["account_id"], parent_id=row["parent_id"], child_id=row["child_id"])
            for row in rows
        ]

    # --- Listing snapshots ---

    def replace_listing(self, listing_id: int, doc_ids: Sequence[str]) -> None:
        """Replace a listing snapshot with doc_ids, in order."""
        with self.transaction():
            self._execute("DELETE FROM listitems WHERE listing_id = ?", (listing_id,))
            self._executemany(
                "INSERT INTO listitems (listing_id, position, doc_id) VALUES (?, ?, ?)",
                [(listing_id, position, doc_id) for position, doc_id in enumerate(doc_ids)],
            )

    def listing_documents(self, listing_id: int) -> list[Document]:
        rows = self._execute(
            f"""
            SELECT d.id, d.name, d.mime_type, d.modified_time, d.starred, d.trashed
            FROM listitems AS l JOIN docs AS d ON d.id = l.doc_id
            WHERE l.listing_id = ?
            ORDER BY l.position
            """,
            (listing_id,),
        ).fetchall()
        return [_row_to_document(row) for row in rows]

    def listing_item(self, listing_id: int, position: int) -> Document | None:
        row = self._execute(
            "SELECT doc_id FROM listitems WHERE listing_id = ? AND position = ?",
            (listing_id, position),
        ).fetchone()
        if row is None:
            return None
        return self.get_document(row["doc_id"])


__all__ = ["MirrorStore", "like_to_glob"]
