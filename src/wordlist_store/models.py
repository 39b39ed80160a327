"""Domain model dataclasses for wordlist-store."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class Word:
    """One persisted word entry."""

    id: int
    text: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> Word:
        """Create a Word from a ``word_table`` row."""
        return cls(id=row["id"], text=row["word"])


@dataclass(frozen=True)
class Snapshot:
    """Immutable, ordered, point-in-time view of all words.

    Words are sorted by text ascending, ties broken by ascending id.
    ``version`` counts publications by the owning repository: the snapshot
    loaded at start is version 0 and every published snapshot is one higher
    than the last.
    """

    words: tuple[Word, ...] = ()
    version: int = 0

    def __len__(self) -> int:
        return len(self.words)

    def __iter__(self) -> Iterator[Word]:
        return iter(self.words)

    def __getitem__(self, index: int) -> Word:
        return self.words[index]

    def texts(self) -> list[str]:
        """Return the word texts in snapshot order."""
        return [w.text for w in self.words]

    def same_words(self, words: list[Word] | tuple[Word, ...]) -> bool:
        """True if *words* has exactly this snapshot's contents and order."""
        return self.words == tuple(words)
