"""Shared test fixtures for wordlist-store."""

import pytest

from wordlist_store import WordRepository, WordStore, close_all_stores


@pytest.fixture
def store():
    """Create an in-memory store for testing."""
    with WordStore(":memory:") as st:
        yield st


@pytest.fixture
def db_path(tmp_path):
    """Path for a file-backed store inside a temp directory."""
    return tmp_path / "words.db"


@pytest.fixture
def repo(store):
    """Started repository over the in-memory store."""
    with WordRepository(store, pool_size=4) as rp:
        yield rp


@pytest.fixture(autouse=True)
def clean_registry():
    """Ensure the process-wide store registry is empty after each test."""
    yield
    close_all_stores()
