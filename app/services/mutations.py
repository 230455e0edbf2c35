from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Optional, Sequence

from app.clients.gateway import GatewayResult
from app.schemas.notification import Notification
from app.services.query_cache import QueryCache, QueryKey

logger = logging.getLogger(__name__)


@dataclass
class MutationOutcome:
    ok: bool
    notification: Optional[Notification] = None
    data: Any = None


async def run_mutation(
    write: Awaitable[GatewayResult[Any]],
    *,
    cache: QueryCache,
    invalidate: Sequence[QueryKey],
    success: Optional[str],
    failure: str,
) -> MutationOutcome:
    """Await one gateway write, then invalidate and notify.

    Nothing is invalidated on failure so views keep showing the last
    known-good server state.
    """

    result = await write
    if not result.ok:
        logger.warning("%s: %s", failure, result.message_or("unknown error"))
        return MutationOutcome(ok=False, notification=Notification.failure(failure))

    for key in invalidate:
        cache.invalidate(key)
    notification = Notification.success(success) if success else None
    return MutationOutcome(ok=True, notification=notification, data=result.data)
