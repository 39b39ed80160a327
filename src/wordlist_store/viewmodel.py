"""WordListModel: the seam between a word list screen and the repository."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Callable

from wordlist_store.exceptions import ValidationError
from wordlist_store.models import Snapshot, Word
from wordlist_store.repository import Subscription, WordRepository

logger = logging.getLogger(__name__)


class WordListModel:
    """Holds the word list a screen displays and forwards its inserts.

    The screen never talks to the repository directly; it reads
    :attr:`all_words`, observes changes, and submits new words here.
    """

    def __init__(self, repository: WordRepository) -> None:
        self._repository = repository

    @property
    def all_words(self) -> Snapshot:
        """The cached word list."""
        return self._repository.current_snapshot()

    def insert(self, text: str) -> Future[Word]:
        return self._repository.insert(text)

    def add_word(self, text: str | None) -> bool:
        """Submit a word typed by the user.

        Returns False (and writes nothing) when the reply is empty, so the
        host can tell the user the word was not saved.
        """
        try:
            self._repository.insert(text)
        except ValidationError as e:
            logger.warning(f"Word not saved: {e}")
            return False
        return True

    def observe(self, callback: Callable[[Snapshot], object]) -> Subscription:
        return self._repository.observe(callback)
