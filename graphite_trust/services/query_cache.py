"""Query cache store shared by every data-fetching query."""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

import structlog
from cachetools import TTLCache

logger = structlog.get_logger(__name__)

T = TypeVar("T")

QueryKey = Tuple[Hashable, ...]


class QueryStatus(str, Enum):
    """Lifecycle state of a query."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class QueryResult(Generic[T]):
    """What presentation code sees of a query: data, loading flag and error."""

    status: QueryStatus
    data: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def is_loading(self) -> bool:
        return self.status == QueryStatus.LOADING

    @property
    def is_error(self) -> bool:
        return self.status == QueryStatus.ERROR

    @property
    def is_success(self) -> bool:
        return self.status == QueryStatus.SUCCESS

    @property
    def is_idle(self) -> bool:
        return self.status == QueryStatus.IDLE

    @classmethod
    def idle(cls) -> "QueryResult":
        return cls(status=QueryStatus.IDLE)

    @classmethod
    def loading(cls) -> "QueryResult":
        return cls(status=QueryStatus.LOADING)

    @classmethod
    def success(cls, data: T) -> "QueryResult[T]":
        return cls(status=QueryStatus.SUCCESS, data=data)

    @classmethod
    def failure(cls, error: Exception) -> "QueryResult":
        return cls(status=QueryStatus.ERROR, error=error)


def make_key(*parts: Any) -> QueryKey:
    """Build a hashable cache key from an operation name and its parameters."""
    return tuple(_freeze(part) for part in parts)


def _freeze(value: Any) -> Hashable:
    if isinstance(value, dict):
        return tuple(sorted((key, _freeze(item)) for key, item in value.items()))
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


class QueryClient:
    """
    Cache store for query results.

    Constructed once when the application starts and injected into whatever
    composes queries. Successful results are cached per key until their TTL
    expires; concurrent fetches of one key share a single in-flight task.
    Errors are never cached and nothing is retried.
    """

    def __init__(self, ttl_seconds: int = 300, max_size: int = 1000):
        self._cache: TTLCache = TTLCache(maxsize=max_size, ttl=ttl_seconds)
        self._in_flight: Dict[QueryKey, asyncio.Future] = {}
        self.logger = logger.bind(component="query_client")

    @classmethod
    def from_settings(cls, settings) -> "QueryClient":
        return cls(ttl_seconds=settings.cache_ttl_seconds, max_size=settings.cache_max_size)

    def get_query_data(self, key: QueryKey) -> Optional[Any]:
        return self._cache.get(key)

    def set_query_data(self, key: QueryKey, data: Any) -> None:
        self._cache[key] = data

    def get_query_state(self, key: QueryKey) -> QueryResult:
        """Current state of a key without fetching."""
        if key in self._cache:
            return QueryResult.success(self._cache[key])
        if key in self._in_flight:
            return QueryResult.loading()
        return QueryResult.idle()

    async def fetch_query(self,
                          key: QueryKey,
                          fetcher: Callable[[], Awaitable[T]],
                          enabled: bool = True) -> QueryResult[T]:
        """
        Resolve a query.

        A disabled query reports idle and issues no call. A cached key is
        served without calling ``fetcher``.
        """
        if not enabled:
            return QueryResult.idle()

        if key in self._cache:
            self.logger.debug("Query cache hit", key=key)
            return QueryResult.success(self._cache[key])

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(fetcher())
            self._in_flight[key] = task
            # Leaves the in-flight table even when every caller was cancelled
            task.add_done_callback(lambda done: self._forget(key, done))

        try:
            # Shielded so one cancelled caller does not cancel the shared fetch
            data = await asyncio.shield(task)
        except Exception as e:
            self.logger.warning("Query failed", key=key, error=str(e))
            return QueryResult.failure(e)

        self._cache[key] = data
        return QueryResult.success(data)

    def _forget(self, key: QueryKey, task: asyncio.Future) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    def invalidate(self, operation: str) -> int:
        """Drop every cached result of one operation. Returns the number dropped."""
        stale = [key for key in list(self._cache.keys()) if key and key[0] == operation]
        for key in stale:
            self._cache.pop(key, None)
        return len(stale)

    def clear(self) -> None:
        self._cache.clear()
