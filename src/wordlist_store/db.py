"""Database connection, DDL, and low-level CRUD for wordlist-store."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from wordlist_store.exceptions import SchemaVersionError
from wordlist_store.models import Word

SCHEMA_VERSION = "1"

# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Words; AUTOINCREMENT keeps ids from being reused after deletes
CREATE TABLE IF NOT EXISTS word_table (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    word TEXT NOT NULL,
    UNIQUE (word)
);
CREATE INDEX IF NOT EXISTS word_order_index ON word_table (word, id);
"""


def connect(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Open a database connection with store PRAGMA settings.

    The connection may be used from worker threads; callers are
    responsible for serializing access to it.
    """
    db_path_str = str(db_path)
    conn = sqlite3.connect(db_path_str, timeout=30.0, check_same_thread=False)
    if db_path_str != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise SchemaVersionError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


def get_meta(conn: sqlite3.Connection, key: str) -> str | None:
    """Get a value from the meta table, or None."""
    row = conn.execute("SELECT value FROM meta WHERE key = ?", (key,)).fetchone()
    return row[0] if row else None


# ---------------------------------------------------------------------------
# Word CRUD helpers
# ---------------------------------------------------------------------------

def insert_word(conn: sqlite3.Connection, text: str) -> int | None:
    """Insert a word, ignoring duplicates.

    Returns the new rowid, or None if a word with the same text already
    exists.
    """
    cur = conn.execute(
        "INSERT OR IGNORE INTO word_table (word) VALUES (?)",
        (text,),
    )
    if cur.rowcount == 0:
        return None
    return cur.lastrowid


def delete_all_words(conn: sqlite3.Connection) -> int:
    """Delete every word. Returns the number of rows removed."""
    cur = conn.execute("DELETE FROM word_table")
    return cur.rowcount


def get_word(conn: sqlite3.Connection, word_id: int) -> Word | None:
    """Get a word by its id."""
    row = conn.execute(
        "SELECT id, word FROM word_table WHERE id = ?",
        (word_id,),
    ).fetchone()
    return Word.from_row(row) if row else None


def get_word_by_text(conn: sqlite3.Connection, text: str) -> Word | None:
    """Get a word by its exact text."""
    row = conn.execute(
        "SELECT id, word FROM word_table WHERE word = ?",
        (text,),
    ).fetchone()
    return Word.from_row(row) if row else None


def select_alphabetized_words(conn: sqlite3.Connection) -> list[Word]:
    """All words sorted by text, then id."""
    rows = conn.execute(
        "SELECT id, word FROM word_table ORDER BY word ASC, id ASC"
    ).fetchall()
    return [Word.from_row(row) for row in rows]


def count_words(conn: sqlite3.Connection) -> int:
    """Number of stored words."""
    return conn.execute("SELECT COUNT(*) FROM word_table").fetchone()[0]
