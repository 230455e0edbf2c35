"""Query-result cache shared by the admin and public views.

Keys are tuples whose first element names the entity, e.g.
``("appointments", "confirmed")``. Invalidating ``("appointments",)`` discards
every cached result under that prefix. Entries are only ever replaced by a
fresh fetch, never patched in place.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, Dict, Hashable, List, Tuple

logger = logging.getLogger(__name__)

QueryKey = Tuple[Hashable, ...]
Subscriber = Callable[[QueryKey], None]


def _starts_with(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == prefix


class QueryCache:
    def __init__(self) -> None:
        self._entries: Dict[QueryKey, Any] = {}
        self._subscribers: DefaultDict[QueryKey, List[Subscriber]] = defaultdict(list)

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def get(self, key: QueryKey) -> Any:
        """Return the cached value for ``key`` or ``None``."""

        return self._entries.get(key)

    async def get_or_fetch(self, key: QueryKey, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value, fetching and storing it on a miss.

        A failing fetch propagates and leaves nothing cached.
        """

        if key in self._entries:
            logger.debug("Query cache hit: %s", key)
            return self._entries[key]
        logger.debug("Query cache miss: %s", key)
        value = await fetch()
        self._entries[key] = value
        return value

    def invalidate(self, key: QueryKey) -> int:
        doomed = [cached for cached in self._entries if _starts_with(cached, key)]
        for cached in doomed:
            del self._entries[cached]
        logger.info("Invalidated %s cached queries under %s", len(doomed), key)

        for subscribed_key, callbacks in list(self._subscribers.items()):
            if _starts_with(subscribed_key, key) or _starts_with(key, subscribed_key):
                for callback in list(callbacks):
                    callback(key)
        return len(doomed)

    def subscribe(self, key: QueryKey, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback`` whenever ``key`` (or a prefix/extension of it) is invalidated.

        Returns a function that removes the subscription.
        """

        self._subscribers[key].append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(key, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._subscribers.pop(key, None)

        return unsubscribe

    def clear(self) -> None:
        self._entries.clear()
