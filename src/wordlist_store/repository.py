"""
Change-notifying repository for wordlist-store.

Mutations are queued per repository and applied one at a time, in
submission order, on a bounded worker pool. After every mutation the
worker that applied it re-scans the store and, if the contents changed,
publishes a new :class:`Snapshot` to every subscription.

Subscriptions buffer only the latest snapshot: a newer snapshot replaces an
undelivered older one, so a slow consumer skips intermediate states but
always ends up at the most recent one, and never sees versions go backwards.
"""
from __future__ import annotations

import functools
import itertools
import logging
import threading
from collections import deque
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Deque, Iterable, Iterator, List, Optional, Tuple

from .config import DEFAULT_POOL_SIZE, DEFAULT_SEED_WORDS, StoreConfig, validate_pool_size
from .exceptions import NotInitializedError, SubscriptionClosed, WordStoreError
from .models import Snapshot, Word
from .store import WordStore, get_store, validate_word_text

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[Snapshot], Any]

_observer_ids = itertools.count(1)

# Seconds close() waits for an observer callback to return
OBSERVER_JOIN_TIMEOUT = 5.0


class Subscription:
    """A consumer's handle on published snapshots (buffer-latest)."""

    def __init__(
        self,
        initial: Snapshot,
        on_close: Optional[Callable[[Subscription], None]] = None,
    ):
        self._cond = threading.Condition()
        self._pending: Optional[Snapshot] = initial
        self._last_version = -1
        self._closed = False
        self._dropped = 0
        self._on_close = on_close
        self._thread: Optional[threading.Thread] = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dropped(self) -> int:
        """Number of snapshots replaced before this subscriber took them."""
        return self._dropped

    def _offer(self, snapshot: Snapshot) -> None:
        """Hand a snapshot over without blocking the publisher."""
        with self._cond:
            if self._closed or snapshot.version <= self._last_version:
                return
            if self._pending is not None:
                if snapshot.version <= self._pending.version:
                    return
                self._dropped += 1
            self._pending = snapshot
            self._cond.notify_all()

    def _take(self) -> Snapshot:
        snapshot = self._pending
        self._pending = None
        self._last_version = snapshot.version
        return snapshot

    def poll(self) -> Optional[Snapshot]:
        """Return the pending snapshot, or None if there is nothing new."""
        with self._cond:
            if self._closed or self._pending is None:
                return None
            return self._take()

    def get(self, timeout: Optional[float] = None) -> Snapshot:
        """Wait for the next snapshot.

        Raises:
            TimeoutError: If nothing new arrives within *timeout* seconds
            SubscriptionClosed: If the subscription is (or gets) closed
        """
        with self._cond:
            ready = self._cond.wait_for(
                lambda: self._pending is not None or self._closed, timeout
            )
            if self._closed:
                raise SubscriptionClosed("Subscription is closed")
            if not ready:
                raise TimeoutError(f"No snapshot within {timeout} seconds")
            return self._take()

    def __iter__(self) -> Iterator[Snapshot]:
        while True:
            try:
                yield self.get()
            except SubscriptionClosed:
                return

    def close(self, timeout: Optional[float] = OBSERVER_JOIN_TIMEOUT) -> None:
        """Stop receiving snapshots. Safe to call more than once.

        For an observer, waits up to *timeout* seconds for its callback to
        return; a callback still running after that is left to finish on
        its own thread.
        """
        with self._cond:
            if self._closed:
                return
            self._closed = True
            self._pending = None
            self._cond.notify_all()
        if self._on_close is not None:
            self._on_close(self)
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(
                    f"Observer {thread.name} still busy after {timeout} seconds"
                )

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _pump(self, callback: SnapshotCallback) -> None:
        """Deliver snapshots to *callback* until closed."""
        for snapshot in self:
            try:
                callback(snapshot)
            except Exception:
                logger.exception(f"Snapshot observer failed on version {snapshot.version}")


@dataclass
class _Mutation:
    name: str
    apply: Callable[[], Any]
    future: Future


class WordRepository:
    """Serializes writes to a :class:`WordStore` and publishes snapshots.

    Args:
        store: The store to write through. Opened on :meth:`start`.
        pool_size: Worker threads in the pool created by :meth:`start`.
        executor: Use this pool instead of creating one. It may be shared
            between repositories; it is not shut down by :meth:`close`.
        seed_on_empty: Run :meth:`seed` on start if the store is empty.
        seed_words: Words written by :meth:`seed`.
    """

    def __init__(
        self,
        store: WordStore,
        pool_size: int = DEFAULT_POOL_SIZE,
        *,
        executor: Optional[Executor] = None,
        seed_on_empty: bool = False,
        seed_words: Iterable[str] = DEFAULT_SEED_WORDS,
    ):
        self._store = store
        self._pool_size = validate_pool_size(pool_size)
        self._executor = executor
        self._owns_executor = executor is None
        self._seed_on_empty = seed_on_empty
        self._seed_words: Tuple[str, ...] = tuple(
            validate_word_text(w) for w in seed_words
        )

        self._start_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._idle = threading.Condition(self._state_lock)
        self._pending: Deque[_Mutation] = deque()
        self._draining = False
        self._snapshot: Optional[Snapshot] = None
        self._subscriptions: List[Subscription] = []
        self._started = False
        self._closed = False

    @classmethod
    def from_config(cls, config: StoreConfig) -> WordRepository:
        """Build a repository over the process-wide store for *config*."""
        return cls(
            get_store(config.storage_path),
            config.pool_size,
            seed_on_empty=config.seed_on_empty,
            seed_words=config.seed_words,
        )

    @property
    def store(self) -> WordStore:
        return self._store

    @property
    def pool_size(self) -> int:
        return self._pool_size

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> WordRepository:
        """Open the store, load the first snapshot and start the pool."""
        with self._start_lock:
            if self._closed:
                raise NotInitializedError("Repository is closed")
            if self._started:
                return self
            self._store.open()
            words = self._store.scan_ordered()
            seeding = self._seed_on_empty and not words
            with self._state_lock:
                self._snapshot = Snapshot(tuple(words), 0)
                if self._executor is None:
                    self._executor = ThreadPoolExecutor(
                        max_workers=self._pool_size,
                        thread_name_prefix="word-store",
                    )
                # The seed goes first in the queue, ahead of anything
                # submitted once start() is visible to other threads
                if seeding:
                    self._enqueue(
                        "seed",
                        functools.partial(self._apply_seed, self._seed_words),
                    )
                self._started = True
        if seeding:
            logger.info("Store is empty, queued seed words")
        logger.info(
            f"Started word repository on {self._store.path} "
            f"({len(words)} words, pool_size={self._pool_size})"
        )
        return self

    def close(self, wait: bool = True) -> None:
        """Stop accepting mutations and close all subscriptions.

        With *wait*, mutations already submitted are applied first. The
        store itself stays open since it may be shared.
        """
        with self._start_lock:
            with self._state_lock:
                if self._closed:
                    return
                self._closed = True
                if wait:
                    self._idle.wait_for(lambda: not self._draining)
                subscriptions = list(self._subscriptions)
                self._subscriptions.clear()
            if self._owns_executor and self._executor is not None:
                self._executor.shutdown(wait=wait)
        for sub in subscriptions:
            sub.close()
        logger.info(f"Closed word repository on {self._store.path}")

    def __enter__(self) -> WordRepository:
        return self.start()

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _require_started(self) -> None:
        if self._closed:
            raise NotInitializedError("Repository is closed")
        if not self._started:
            raise NotInitializedError("Repository has not been started")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, text: str) -> Future[Word]:
        """Queue an insert. Validation errors are raised right away."""
        validate_word_text(text)
        return self._submit(f"insert {text!r}", functools.partial(self._store.insert, text))

    def delete_all(self) -> Future[None]:
        """Queue removal of every word."""
        return self._submit("delete_all", self._store.delete_all)

    def seed(self, words: Optional[Iterable[str]] = None) -> Future[List[Word]]:
        """Queue a reset to *words* (default: the configured seed words).

        The delete and the inserts share one transaction and publish at most
        one snapshot.
        """
        seed_words = self._seed_words if words is None else tuple(words)
        for w in seed_words:
            validate_word_text(w)
        return self._submit("seed", functools.partial(self._apply_seed, seed_words))

    def _apply_seed(self, words: Tuple[str, ...]) -> List[Word]:
        with self._store.batch():
            self._store.delete_all()
            return [self._store.insert(w) for w in words]

    def _submit(self, name: str, apply: Callable[[], Any]) -> Future:
        with self._state_lock:
            self._require_started()
            future = self._enqueue(name, apply)
        logger.debug(f"Queued {name}")
        return future

    def _enqueue(self, name: str, apply: Callable[[], Any]) -> Future:
        """Append a mutation and schedule a drain. Caller holds _state_lock."""
        future: Future = Future()
        mutation = _Mutation(name, apply, future)
        self._pending.append(mutation)
        if not self._draining:
            try:
                self._executor.submit(self._drain)
            except RuntimeError as e:
                self._pending.remove(mutation)
                raise NotInitializedError("Worker pool is shut down") from e
            self._draining = True
        return future

    def _drain(self) -> None:
        """Apply queued mutations until the queue is empty."""
        while True:
            with self._state_lock:
                if not self._pending:
                    self._draining = False
                    self._idle.notify_all()
                    return
                mutation = self._pending.popleft()
            self._apply(mutation)

    def _apply(self, mutation: _Mutation) -> None:
        if not mutation.future.set_running_or_notify_cancel():
            logger.debug(f"Skipped cancelled {mutation.name}")
            return
        try:
            result = mutation.apply()
        except WordStoreError as e:
            logger.error(f"{mutation.name} failed: {e}")
            mutation.future.set_exception(e)
            return
        except Exception as e:
            logger.exception(f"{mutation.name} failed unexpectedly")
            mutation.future.set_exception(e)
            return

        try:
            words = self._store.scan_ordered()
        except WordStoreError as e:
            logger.error(f"Could not refresh snapshot after {mutation.name}: {e}")
        else:
            self._publish(words, mutation.name)
        mutation.future.set_result(result)

    def _publish(self, words: List[Word], reason: str) -> None:
        with self._state_lock:
            current = self._snapshot
            if current.same_words(words):
                logger.debug(f"No change after {reason}, nothing published")
                return
            snapshot = Snapshot(tuple(words), current.version + 1)
            self._snapshot = snapshot
            subscriptions = list(self._subscriptions)
        logger.debug(
            f"Publishing snapshot v{snapshot.version} ({len(snapshot)} words) "
            f"to {len(subscriptions)} subscribers after {reason}"
        )
        for sub in subscriptions:
            sub._offer(snapshot)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until every queued mutation has been applied."""
        with self._state_lock:
            return self._idle.wait_for(lambda: not self._draining, timeout)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def current_snapshot(self) -> Snapshot:
        """The most recently published snapshot. No I/O."""
        with self._state_lock:
            self._require_started()
            return self._snapshot

    def subscribe(self) -> Subscription:
        """Subscribe to snapshots, starting with the current one."""
        with self._state_lock:
            self._require_started()
            sub = Subscription(self._snapshot, on_close=self._unsubscribe)
            self._subscriptions.append(sub)
        return sub

    def observe(self, callback: SnapshotCallback) -> Subscription:
        """Call *callback* with every snapshot on a dedicated thread.

        Close the returned subscription to stop observing.
        """
        sub = self.subscribe()
        thread = threading.Thread(
            target=sub._pump,
            args=(callback,),
            name=f"word-observer-{next(_observer_ids)}",
            daemon=True,
        )
        sub._thread = thread
        thread.start()
        return sub

    def _unsubscribe(self, sub: Subscription) -> None:
        with self._state_lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)
