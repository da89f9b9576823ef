import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class MemoCache:
    DEFAULT_TTL_SECONDS = 30.0
    DEFAULT_MAX_ENTRIES = 10

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_entries: Optional[int] = None,
        time_func: Callable[[], float] = time.monotonic,
    ):
        """Bounded in-memory memo cache
        Args:
            ttl_seconds: Entries older than this are treated as missing
            max_entries: Oldest inserted entry is evicted once this many are held
            time_func: Monotonic seconds source, injectable for tests
        """
        self.ttl_seconds = float(ttl_seconds if ttl_seconds is not None else self.DEFAULT_TTL_SECONDS)
        self.max_entries = max(1, int(max_entries if max_entries is not None else self.DEFAULT_MAX_ENTRIES))
        self._time = time_func
        self._entries: "OrderedDict[Hashable, Tuple[float, Any]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        """Return cached value if present and fresh, else None"""
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        stored_at, value = entry
        if self._time() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            self.misses += 1
            return None
        self.hits += 1
        return value

    def put(self, key: Hashable, value: Any) -> None:
        if key in self._entries:
            del self._entries[key]
        self._entries[key] = (self._time(), value)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted cache entry: {evicted}")

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        value = self.get(key)
        if value is None:
            value = compute()
            self.put(key, value)
        return value

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries
