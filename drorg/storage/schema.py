"""SQLite schema management: DDL and version control."""

from __future__ import annotations

import sqlite3

from drorg.errors import DatabaseError
from drorg.lib.log import get_logger

logger = get_logger(__name__)
SCHEMA_VERSION = 1


# Link endpoints are not foreign keys: Drive reports parents
# that this account may never list (shared folders, other people's roots).
SCHEMA_DDL = """
        CREATE TABLE IF NOT EXISTS docs (
            id TEXT PRIMARY KEY NOT NULL,
            name TEXT NOT NULL,
            mime_type TEXT NOT NULL,
            modified_time TEXT NOT NULL,
            starred INTEGER NOT NULL DEFAULT 0,
            trashed INTEGER NOT NULL DEFAULT 0
        );

        CREATE INDEX IF NOT EXISTS idx_docs_modified
        ON docs(modified_time);

        CREATE TABLE IF NOT EXISTS accounts (
            id INTEGER PRIMARY KEY NOT NULL,
            email TEXT NOT NULL UNIQUE
        );

        CREATE TABLE IF NOT EXISTS account_associations (
            doc_id TEXT NOT NULL,
            account_id INTEGER NOT NULL,
            PRIMARY KEY (doc_id, account_id),
            FOREIGN KEY (account_id) REFERENCES accounts(id),
            FOREIGN KEY (doc_id) REFERENCES docs(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS links (
            account_id INTEGER NOT NULL,
            parent_id TEXT NOT NULL,
            child_id TEXT NOT NULL,
            PRIMARY KEY (account_id, parent_id, child_id),
            FOREIGN KEY (account_id) REFERENCES accounts(id)
        );

        CREATE INDEX IF NOT EXISTS idx_links_child
        ON links(account_id, child_id);

        CREATE TABLE IF NOT EXISTS listitems (
            listing_id INTEGER NOT NULL,
            position INTEGER NOT NULL,
            doc_id TEXT NOT NULL,
            PRIMARY KEY (listing_id, position),
            FOREIGN KEY (doc_id) REFERENCES docs(id) ON DELETE CASCADE
        );
"""


def _apply_schema(conn: sqlite3.Connection) -> None:
    """Apply fresh schema at version SCHEMA_VERSION."""
    conn.execute("PRAGMA foreign_keys = ON")
    conn.executescript(SCHEMA_DDL)
    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
    conn.commit()


def _ensure_schema(conn: sqlite3.Connection) -> None:
    """Ensure the database schema exists and is a version we understand.

    Raises:
        DatabaseError: If the file was written by a newer drorg
    """
    row = conn.execute("PRAGMA user_version").fetchone()
    current_version = row[0] if row else 0

    if current_version == 0:
        logger.debug("schema.create", version=SCHEMA_VERSION)
        _apply_schema(conn)
        return

    if current_version != SCHEMA_VERSION:
        raise DatabaseError(f"Unsupported DB schema version {current_version} (expected {SCHEMA_VERSION})")


__all__ = ["SCHEMA_DDL", "SCHEMA_VERSION", "_apply_schema", "_ensure_schema"]
