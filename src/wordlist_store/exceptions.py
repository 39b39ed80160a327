"""Custom exception hierarchy for wordlist-store."""

from __future__ import annotations


class WordStoreError(Exception):
    """Base exception for all wordlist-store errors."""


class ValidationError(WordStoreError):
    """Invalid argument (empty word, bad pool size)."""


class ConfigError(ValidationError):
    """Malformed or unreadable store configuration."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        super().__init__(message)


class StorageError(WordStoreError):
    """Durable read or write failed (I/O fault, corruption, lock timeout)."""


class SchemaVersionError(StorageError):
    """Schema version marker doesn't match this library."""


class NotInitializedError(WordStoreError):
    """Store or repository used before it was opened, or after it was closed."""


class SubscriptionClosed(WordStoreError):
    """Snapshot requested from a closed subscription."""
