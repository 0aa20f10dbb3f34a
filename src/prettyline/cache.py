"""Bounded least-recently-used caches for string transforms."""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Callable

from prettyline.errors import HighlightError

logger = logging.getLogger(__name__)


class LRUCache:
    """Maps strings to strings, holding at most ``max_size`` entries.

    Lookups refresh recency; inserting past the bound evicts the least
    recently used entry. A ``max_size`` of zero or less stores nothing.
    """

    def __init__(self, max_size: int) -> None:
        self.max_size = max_size
        self._entries: OrderedDict[str, str] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> str | None:
        value = self._entries.get(key)
        if value is None:
            self.misses += 1
            return None
        self.hits += 1
        self._entries.move_to_end(key)
        return value

    def put(self, key: str, value: str) -> None:
        if self.max_size <= 0:
            return
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted %r from cache (max_size=%d)", evicted, self.max_size)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def memoize(transform: Callable[[str], str], max_size: int) -> Callable[[str], str]:
    """Wrap *transform* with a private ``LRUCache`` of ``max_size`` entries.

    The cache is reachable as the ``cache`` attribute of the returned function.
    """
    cache = LRUCache(max_size)

    def wrapper(text: str) -> str:
        cached = cache.get(text)
        if cached is not None:
            return cached
        result = transform(text)
        cache.put(text, result)
        return result

    wrapper.cache = cache  # type: ignore[attr-defined]
    return wrapper


class HighlightCache:
    """Memoizes an external highlighter, keyed by the exact input string."""

    def __init__(self, raw_colorize: Callable[[str], str], max_size: int = 100) -> None:
        self._raw_colorize = raw_colorize
        self._cache = LRUCache(max_size)

    def colorize(self, text: str) -> str:
        """Return the colorized form of *text*.

        Raises:
            HighlightError: The highlighter raised; nothing is cached.
        """
        cached = self._cache.get(text)
        if cached is not None:
            return cached
        try:
            result = self._raw_colorize(text)
        except Exception as exc:
            raise HighlightError(text) from exc
        self._cache.put(text, result)
        return result

    def clear(self) -> None:
        self._cache.clear()

    @property
    def cache(self) -> LRUCache:
        return self._cache

    def __len__(self) -> int:
        return len(self._cache)
