import logging
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class TTLCache:
    """Small explicit key -> (value, stored_at) cache with a fixed TTL.

    Entries live in an instance, never at module level, so each app (or test)
    owns its own cache.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}

    def _is_fresh(self, stored_at: float) -> bool:
        return self._clock() - stored_at < self.ttl_seconds

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if not self._is_fresh(stored_at):
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (value, self._clock())

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        value = self.get(key)
        if value is not None:
            logger.debug(f"[CACHE] hit for {key!r}")
            return value

        logger.info(f"[CACHE] miss for {key!r}, refreshing")
        value = loader()
        self.set(key, value)
        return value

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
