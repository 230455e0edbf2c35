import asyncio

import pytest

from app.services.exceptions import DownstreamServiceError
from app.services.query_cache import QueryCache


def test_get_or_fetch_caches_successful_results() -> None:
    cache = QueryCache()
    calls = []

    async def fetch():
        calls.append(1)
        return ["row"]

    assert asyncio.run(cache.get_or_fetch(("appointments", "all"), fetch)) == ["row"]
    assert asyncio.run(cache.get_or_fetch(("appointments", "all"), fetch)) == ["row"]
    assert len(calls) == 1
    assert ("appointments", "all") in cache


def test_failed_fetch_is_not_cached() -> None:
    cache = QueryCache()

    async def broken():
        raise DownstreamServiceError("Unable to reach the booking backend")

    with pytest.raises(DownstreamServiceError):
        asyncio.run(cache.get_or_fetch(("customers",), broken))

    assert ("customers",) not in cache
    assert cache.get(("customers",)) is None


def test_invalidate_drops_every_key_under_the_prefix() -> None:
    cache = QueryCache()

    async def fetch():
        return []

    for key in (("appointments", "all"), ("appointments", "pending"), ("services",)):
        asyncio.run(cache.get_or_fetch(key, fetch))

    assert cache.invalidate(("appointments",)) == 2
    assert ("appointments", "all") not in cache
    assert ("appointments", "pending") not in cache
    assert ("services",) in cache


def test_subscribers_hear_about_related_invalidations() -> None:
    cache = QueryCache()
    heard = []
    unsubscribe = cache.subscribe(("appointments", "confirmed"), heard.append)

    cache.invalidate(("appointments",))
    cache.invalidate(("gallery",))
    unsubscribe()
    cache.invalidate(("appointments",))

    assert heard == [("appointments",)]
