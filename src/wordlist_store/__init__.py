"""wordlist-store: an embedded, ordered word store with change notification."""

__version__ = "0.1.0"

from .exceptions import (
    WordStoreError as WordStoreError,
    ValidationError as ValidationError,
    ConfigError as ConfigError,
    StorageError as StorageError,
    SchemaVersionError as SchemaVersionError,
    NotInitializedError as NotInitializedError,
    SubscriptionClosed as SubscriptionClosed,
)

from .models import (
    Word as Word,
    Snapshot as Snapshot,
)

from .config import (
    StoreConfig as StoreConfig,
    load_config as load_config,
    DEFAULT_POOL_SIZE as DEFAULT_POOL_SIZE,
    DEFAULT_SEED_WORDS as DEFAULT_SEED_WORDS,
)

from .store import (
    WordStore as WordStore,
    get_store as get_store,
    close_all_stores as close_all_stores,
)

from .repository import (
    WordRepository as WordRepository,
    Subscription as Subscription,
)

from .viewmodel import (
    WordListModel as WordListModel,
)

__all__ = [
    # Exceptions
    "WordStoreError",
    "ValidationError",
    "ConfigError",
    "StorageError",
    "SchemaVersionError",
    "NotInitializedError",
    "SubscriptionClosed",
    # Data classes
    "Word",
    "Snapshot",
    "StoreConfig",
    # Configuration
    "load_config",
    "DEFAULT_POOL_SIZE",
    "DEFAULT_SEED_WORDS",
    # Store
    "WordStore",
    "get_store",
    "close_all_stores",
    # Repository
    "WordRepository",
    "Subscription",
    "WordListModel",
]
