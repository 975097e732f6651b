"""Keyed query cache used by the client views.

Queries are identified by tuples such as ``(friend_id, "messages")``. The
cache keeps the last fetched value per key, lets callers write to it directly
(optimistic updates), drops responses of fetches that were cancelled while in
flight, and refetches active observers when a key is invalidated. ``Query``
objects observe one key and carry an optional polling interval; ``Mutation``
runs a write with ``on_mutate``/``on_success``/``on_error``/``on_settled``
callbacks.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

logger = logging.getLogger("social_chat_client")

QueryKey = Tuple[Hashable, ...]
Listener = Callable[["QueryState"], None]

IDLE = "idle"
LOADING = "loading"
SUCCESS = "success"
ERROR = "error"


@dataclass
class QueryState:
    data: Any = None
    error: Optional[BaseException] = None
    status: str = IDLE
    is_fetching: bool = False
    is_invalidated: bool = False
    data_updated_at: Optional[float] = None
    fetched_at: Optional[float] = None
    # Bumped by cancel_queries; a fetch only commits if it still matches.
    generation: int = 0

    @property
    def has_data(self) -> bool:
        return self.data_updated_at is not None


def _matches(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == prefix


class QueryClient:
    """Thread-safe store of query states keyed by tuples."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.RLock()
        self._states: Dict[QueryKey, QueryState] = {}
        self._listeners: Dict[QueryKey, List[Listener]] = {}
        self._observers: Dict[QueryKey, List["Query"]] = {}

    def now(self) -> float:
        return self._clock()

    def _state(self, key: QueryKey) -> QueryState:
        return self._states.setdefault(key, QueryState())

    def _notify(self, key: QueryKey) -> None:
        with self._lock:
            state = self._states.get(key)
            listeners = list(self._listeners.get(key, []))
        for listener in listeners:
            listener(state)

    def get_query_state(self, key: QueryKey) -> Optional[QueryState]:
        with self._lock:
            return self._states.get(key)

    def get_query_data(self, key: QueryKey, default: Any = None) -> Any:
        with self._lock:
            state = self._states.get(key)
            if state is None or not state.has_data:
                return default
            return state.data

    def set_query_data(self, key: QueryKey, updater: Any) -> Any:
        """Replace the cached value; ``updater`` may be a value or ``old -> new``."""
        with self._lock:
            state = self._state(key)
            value = updater(state.data) if callable(updater) else updater
            state.data = value
            state.data_updated_at = self._clock()
            state.status = SUCCESS
            state.error = None
        self._notify(key)
        return value

    def fetch_query(self, key: QueryKey, fn: Callable[[], Any]) -> Any:
        """Run ``fn`` and store its result under ``key``.

        A fetch already in flight for the same key is not repeated; the
        current data is returned instead. Errors are recorded on the state
        and re-raised.
        """
        with self._lock:
            state = self._state(key)
            if state.is_fetching:
                return state.data
            state.is_fetching = True
            if not state.has_data:
                state.status = LOADING
            generation = state.generation
        self._notify(key)

        try:
            data = fn()
        except Exception as exc:
            with self._lock:
                if state.generation != generation:
                    logger.info("QUERY_DISCARDED key=%s reason=cancelled", key)
                    return state.data
                state.is_fetching = False
                state.error = exc
                state.status = ERROR
                state.fetched_at = self._clock()
            logger.warning("QUERY_FAILED key=%s error=%s", key, exc)
            self._notify(key)
            raise

        with self._lock:
            if state.generation != generation:
                logger.info("QUERY_DISCARDED key=%s reason=cancelled", key)
                return state.data
            state.is_fetching = False
            state.is_invalidated = False
            state.data = data
            state.error = None
            state.status = SUCCESS
            state.data_updated_at = state.fetched_at = self._clock()
        self._notify(key)
        return data

    def cancel_queries(self, key: QueryKey) -> None:
        """Discard the outcome of in-flight fetches for keys under ``key``."""
        with self._lock:
            cancelled = [k for k in self._states if _matches(k, key)]
            for k in cancelled:
                state = self._states[k]
                state.generation += 1
                if state.is_fetching:
                    state.is_fetching = False
                    state.status = SUCCESS if state.has_data else IDLE
        for k in cancelled:
            self._notify(k)

    def invalidate_queries(self, key: QueryKey) -> int:
        """Mark keys under ``key`` stale and refetch their active observers."""
        with self._lock:
            for k, state in self._states.items():
                if _matches(k, key):
                    state.is_invalidated = True
            observers = [q for k, qs in self._observers.items() if _matches(k, key) for q in qs]
        for query in observers:
            query.refresh()
        return len(observers)

    def subscribe(self, key: QueryKey, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.setdefault(key, []).append(listener)

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(key, [])
                if listener in listeners:
                    listeners.remove(listener)

        return unsubscribe

    def _attach(self, query: "Query") -> None:
        with self._lock:
            self._observers.setdefault(query.key, []).append(query)

    def _detach(self, query: "Query") -> None:
        with self._lock:
            observers = self._observers.get(query.key, [])
            if query in observers:
                observers.remove(query)


class Query:
    """Observer of one cache key with an optional polling interval."""

    def __init__(
        self,
        client: QueryClient,
        key: QueryKey,
        fn: Callable[[], Any],
        refetch_interval: Optional[float] = None,
        enabled: bool = True,
        stale_time: float = 0,
    ):
        self.client = client
        self.key = key
        self.fn = fn
        self.refetch_interval = refetch_interval
        self.enabled = enabled
        self.stale_time = stale_time
        client._attach(self)

    @property
    def state(self) -> QueryState:
        return self.client.get_query_state(self.key) or QueryState()

    @property
    def data(self) -> Any:
        return self.client.get_query_data(self.key)

    @property
    def error(self) -> Optional[BaseException]:
        return self.state.error

    @property
    def is_loading(self) -> bool:
        state = self.state
        return not state.has_data and state.status in (IDLE, LOADING) and self.enabled

    @property
    def is_error(self) -> bool:
        return self.state.status == ERROR

    @property
    def is_fetching(self) -> bool:
        return self.state.is_fetching

    def refresh(self) -> Any:
        if not self.enabled:
            return self.data
        try:
            return self.client.fetch_query(self.key, self.fn)
        except Exception:
            # Recorded on the state; readers check is_error.
            return self.data

    def is_stale(self, now: Optional[float] = None) -> bool:
        state = self.state
        if not state.has_data or state.is_invalidated or state.fetched_at is None:
            return True
        now = self.client.now() if now is None else now
        return now - state.fetched_at >= self.stale_time

    def fetch_if_needed(self) -> Any:
        """Refetch on load unless the cached data is younger than ``stale_time``."""
        if self.is_stale():
            return self.refresh()
        return self.state.data

    def is_due(self, now: Optional[float] = None) -> bool:
        if not self.enabled or self.refetch_interval is None:
            return False
        fetched_at = self.state.fetched_at
        if fetched_at is None:
            return True
        now = self.client.now() if now is None else now
        return now - fetched_at >= self.refetch_interval

    def poll(self, now: Optional[float] = None) -> bool:
        if self.is_due(now):
            self.refresh()
            return True
        return False

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.client.subscribe(self.key, listener)

    def dispose(self) -> None:
        self.client._detach(self)


class Mutation:
    """A write operation with optimistic-update lifecycle callbacks."""

    def __init__(
        self,
        fn: Callable[[Any], Any],
        on_mutate: Optional[Callable[[Any], Any]] = None,
        on_success: Optional[Callable[[Any, Any, Any], None]] = None,
        on_error: Optional[Callable[[BaseException, Any, Any], None]] = None,
        on_settled: Optional[Callable[[Any, Optional[BaseException], Any, Any], None]] = None,
    ):
        self.fn = fn
        self.on_mutate = on_mutate
        self.on_success = on_success
        self.on_error = on_error
        self.on_settled = on_settled
        self.status = IDLE
        self.data: Any = None
        self.error: Optional[BaseException] = None

    @property
    def is_pending(self) -> bool:
        return self.status == LOADING

    def mutate(self, variables: Any = None) -> Any:
        """Run the mutation; failures go to ``on_error`` instead of raising."""
        self.status = LOADING
        self.error = None
        context = None
        try:
            if self.on_mutate:
                context = self.on_mutate(variables)
            result = self.fn(variables)
        except Exception as exc:
            self.status = ERROR
            self.error = exc
            logger.warning("MUTATION_FAILED variables=%r error=%s", variables, exc)
            if self.on_error:
                self.on_error(exc, variables, context)
            if self.on_settled:
                self.on_settled(None, exc, variables, context)
            return None

        self.status = SUCCESS
        self.data = result
        if self.on_success:
            self.on_success(result, variables, context)
        if self.on_settled:
            self.on_settled(result, None, variables, context)
        return result
