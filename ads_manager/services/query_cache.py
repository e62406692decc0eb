"""
Query cache for server-owned collections

Keys are (entity, frozen params). Reads go through `fetch`, mutations call
`invalidate(entity)` on success. Nothing coordinates concurrent loads of
the same key: whichever resolves last overwrites the entry.
"""
import logging
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Hashable, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[Hashable, ...]

# Entity names shared by the services that read and invalidate them
ACCOUNTS = "meta-accounts"
FACEBOOK_PAGES = "facebook-pages"
CAMPAIGNS = "campaigns"
CAMPAIGN = "campaign"
METRICS = "metrics"


def _freeze(value: Any) -> Hashable:
    if isinstance(value, Mapping):
        return tuple(sorted((str(k), _freeze(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(_freeze(v) for v in value)
    if hasattr(value, "model_dump"):
        return _freeze(value.model_dump(mode="json"))
    return value


def make_key(entity: str, params: Optional[Mapping[str, Any]] = None) -> CacheKey:
    """Stable cache key: entity type plus filter parameters (None values dropped)"""
    if not params:
        return (entity,)
    cleaned = {k: v for k, v in params.items() if v is not None}
    return (entity, _freeze(cleaned)) if cleaned else (entity,)


class QueryCache:
    """In-process cache with a stale time, scoped to one user"""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, Any]] = {}

    def __contains__(self, key: CacheKey) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at > self.ttl_seconds

    def get(self, key: CacheKey) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._expired(stored_at, self._clock()):
            del self._entries[key]
            return None
        return value

    def set(self, key: CacheKey, value: Any) -> None:
        self.sweep()
        self._entries[key] = (self._clock(), value)

    def sweep(self) -> int:
        """Drop every expired entry"""
        now = self._clock()
        expired = [key for key, (stored_at, _) in self._entries.items() if self._expired(stored_at, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def fetch(self, key: CacheKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return a fresh cached value or load, store and return it"""
        cached = self.get(key)
        if cached is not None:
            return cached
        value = await loader()
        self.set(key, value)
        return value

    def invalidate(self, *entities: str) -> int:
        """Drop every entry of the given entity types"""
        stale = [key for key in self._entries if key[0] in entities]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cache entries for {entities}")
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()


class QueryCacheRegistry:
    """
    One QueryCache per user id, dropped on logout or session expiry.

    Caches left without a fresh entry are dropped by a sweep that runs at
    most once per TTL. Beyond `max_users` the least recently used cache is
    evicted.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_users: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_users = max_users
        self._clock = clock
        self._caches: "OrderedDict[str, QueryCache]" = OrderedDict()
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._caches)

    def for_user(self, user_id: str) -> QueryCache:
        if self._clock() - self._last_sweep >= self.ttl_seconds:
            self.sweep()

        cache = self._caches.get(user_id)
        if cache is None:
            while len(self._caches) >= self.max_users:
                evicted, _ = self._caches.popitem(last=False)
                logger.debug(f"Evicted query cache of user {evicted}")
            cache = QueryCache(self.ttl_seconds, clock=self._clock)
            self._caches[user_id] = cache
        else:
            self._caches.move_to_end(user_id)
        return cache

    def sweep(self) -> int:
        """Expire stale entries everywhere and drop caches left empty"""
        self._last_sweep = self._clock()
        empty = []
        for user_id, cache in self._caches.items():
            cache.sweep()
            if not len(cache):
                empty.append(user_id)
        for user_id in empty:
            del self._caches[user_id]
        if empty:
            logger.debug(f"Dropped {len(empty)} idle query caches")
        return len(empty)

    def drop(self, user_id: Optional[str]) -> None:
        if user_id is not None:
            self._caches.pop(user_id, None)
