"""WordStore: durable, ordered word storage backed by SQLite."""

from __future__ import annotations

import functools
import logging
import sqlite3
import threading
from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

from wordlist_store import db as _db
from wordlist_store.exceptions import (
    NotInitializedError,
    SchemaVersionError,
    StorageError,
    ValidationError,
)
from wordlist_store.models import Word

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])

MEMORY_PATH = ":memory:"


def validate_word_text(text: Any) -> str:
    """Reject anything that isn't a non-blank string; return it unchanged."""
    if not isinstance(text, str):
        raise ValidationError(f"Word must be a string, got {type(text).__name__}")
    if not text.strip():
        raise ValidationError("Word must not be empty")
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ValidationError(f"Word is not valid UTF-8 text: {text!r}") from e
    return text


def _modifies_db(method: _F) -> _F:
    """Decorator: wraps mutation methods in a transaction (unless in batch)."""

    @functools.wraps(method)
    def wrapper(self: WordStore, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            conn = self._require_conn()
            try:
                if self._in_batch:
                    return method(self, *args, **kwargs)
                with conn:
                    return method(self, *args, **kwargs)
            except sqlite3.Error as e:
                raise StorageError(f"{method.__name__} failed: {e}") from e

    return wrapper  # type: ignore[return-value]


def _reads_db(method: _F) -> _F:
    """Decorator: serializes reads with writers and wraps driver errors."""

    @functools.wraps(method)
    def wrapper(self: WordStore, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            self._require_conn()
            try:
                return method(self, *args, **kwargs)
            except sqlite3.Error as e:
                raise StorageError(f"{method.__name__} failed: {e}") from e

    return wrapper  # type: ignore[return-value]


class WordStore:
    """Durable collection of words, scanned in alphabetical order.

    Duplicate text is silently ignored on insert and the existing word is
    returned instead. Ids come from an AUTOINCREMENT sequence, so they are
    never reused, not even after :meth:`delete_all`.

    A single connection is shared by every thread that uses the store and is
    guarded by a re-entrant lock, so reads from any thread always see
    committed state.
    """

    def __init__(self, db_path: str | Path = MEMORY_PATH) -> None:
        db_path_str = str(db_path)
        if db_path_str != MEMORY_PATH:
            db_path_str = str(Path(db_path_str).expanduser())
        self._db_path = db_path_str
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._init_lock = threading.Lock()
        self._in_batch = False
        self._batch_depth = 0

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> WordStore:
        """Connect and initialize the schema. Safe to call more than once."""
        with self._init_lock:
            if self._conn is not None:
                return self
            if self._db_path != MEMORY_PATH:
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            try:
                conn = _db.connect(self._db_path)
            except sqlite3.Error as e:
                raise StorageError(f"Cannot open {self._db_path}: {e}") from e
            try:
                _db.check_schema_version(conn)
                _db.init_db(conn)
            except SchemaVersionError:
                conn.close()
                raise
            except sqlite3.Error as e:
                conn.close()
                raise StorageError(f"Cannot initialize {self._db_path}: {e}") from e
            self._conn = conn
        logger.info(f"Opened word store at {self._db_path}")
        return self

    def close(self) -> None:
        """Close the database connection."""
        with self._init_lock, self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        logger.info(f"Closed word store at {self._db_path}")

    def __enter__(self) -> WordStore:
        return self.open()

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise NotInitializedError(f"Word store is not open: {self._db_path}")
        return self._conn

    # ------------------------------------------------------------------
    # Batch context manager
    # ------------------------------------------------------------------

    @contextmanager
    def batch(self) -> Generator[None, None, None]:
        """Group multiple mutations into a single transaction."""
        with self._lock:
            conn = self._require_conn()
            self._batch_depth += 1
            if self._batch_depth == 1:
                self._in_batch = True
                try:
                    conn.execute("BEGIN")
                except sqlite3.Error as e:
                    self._in_batch = False
                    self._batch_depth -= 1
                    raise StorageError(f"Cannot begin batch: {e}") from e
            try:
                yield
            except BaseException:
                if self._batch_depth == 1:
                    conn.rollback()
                    self._in_batch = False
                self._batch_depth -= 1
                raise
            else:
                self._batch_depth -= 1
                if self._batch_depth == 0:
                    self._in_batch = False
                    try:
                        conn.commit()
                    except sqlite3.Error as e:
                        conn.rollback()
                        raise StorageError(f"Cannot commit batch: {e}") from e

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, text: str) -> Word:
        """Insert *text*, or return the existing word if it's already stored."""
        validate_word_text(text)
        return self._insert(text)

    @_modifies_db
    def _insert(self, text: str) -> Word:
        rowid = _db.insert_word(self._conn, text)
        if rowid is None:
            existing = _db.get_word_by_text(self._conn, text)
            logger.debug(f"Skipped duplicate word {text!r} (id={existing.id})")
            return existing
        logger.debug(f"Inserted word {text!r} (id={rowid})")
        return Word(id=rowid, text=text)

    @_modifies_db
    def delete_all(self) -> None:
        """Remove every word. The id sequence keeps counting."""
        removed = _db.delete_all_words(self._conn)
        logger.debug(f"Deleted {removed} words")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @_reads_db
    def scan_ordered(self) -> list[Word]:
        """Re-read all words, sorted by text and then id."""
        return _db.select_alphabetized_words(self._conn)

    @_reads_db
    def get(self, word_id: int) -> Word | None:
        return _db.get_word(self._conn, word_id)

    @_reads_db
    def count(self) -> int:
        return _db.count_words(self._conn)

    @_reads_db
    def schema_version(self) -> str | None:
        return _db.get_meta(self._conn, "schema_version")


# ---------------------------------------------------------------------------
# Process-wide store registry
# ---------------------------------------------------------------------------

_stores: dict[str, WordStore] = {}
_stores_lock = threading.Lock()


def get_store(db_path: str | Path) -> WordStore:
    """Get the process-wide open store for *db_path*, creating it once.

    In-memory stores are private: every call returns a new one.
    """
    if str(db_path) == MEMORY_PATH:
        return WordStore(MEMORY_PATH).open()
    key = str(Path(db_path).expanduser().resolve())
    with _stores_lock:
        store = _stores.get(key)
        if store is None:
            store = WordStore(key)
            _stores[key] = store
    # open() is idempotent and guarded by the store's own lock
    return store.open()


def close_all_stores() -> None:
    """Close and forget every registered store."""
    with _stores_lock:
        stores = list(_stores.values())
        _stores.clear()
    for store in stores:
        store.close()
