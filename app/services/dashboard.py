from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable, List

from app.clients.gateway import GatewayClient, GatewayResult, Order, gather_results
from app.schemas.appointment import Appointment, AppointmentStatus
from app.schemas.dashboard import DashboardSnapshot, DashboardStats
from app.services.exceptions import DownstreamServiceError, ServiceError
from app.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5


class IncompleteStats(DownstreamServiceError):
    """Some counts failed; ``partial`` holds the others with failures as zero."""

    def __init__(self, partial: DashboardStats, failed: List[str]) -> None:
        super().__init__(f"Dashboard counts unavailable: {', '.join(failed)}")
        self.partial = partial
        self.failed = failed


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _count_or_zero(name: str, result: GatewayResult[int], failed: List[str]) -> int:
    if not result.ok:
        logger.warning("Dashboard count %s unavailable: %s", name, result.message_or("unknown error"))
        failed.append(name)
        return 0
    return result.data or 0


class DashboardService:
    def __init__(
        self,
        gateway: GatewayClient,
        *,
        cache: QueryCache,
        today: Callable[[], date] = _utc_today,
    ) -> None:
        self._gateway = gateway
        self._cache = cache
        self._today = today

    async def _fetch_stats(self) -> DashboardStats:
        today = self._today().isoformat()
        appointments, customers, gallery, services, todays, pending = await gather_results(
            self._gateway.count("appointments"),
            self._gateway.count("customers"),
            self._gateway.count("gallery"),
            self._gateway.count("services"),
            self._gateway.count("appointments", filters={"appointment_date": today}),
            self._gateway.count("appointments", filters={"status": AppointmentStatus.pending.value}),
        )
        failed: List[str] = []
        stats = DashboardStats(
            total_appointments=_count_or_zero("appointments", appointments, failed),
            total_customers=_count_or_zero("customers", customers, failed),
            gallery_images=_count_or_zero("gallery", gallery, failed),
            total_services=_count_or_zero("services", services, failed),
            today_appointments=_count_or_zero("today", todays, failed),
            pending_appointments=_count_or_zero("pending", pending, failed),
        )
        if failed:
            raise IncompleteStats(stats, failed)
        return stats

    async def _fetch_recent(self) -> List[Appointment]:
        result = await self._gateway.select(
            "appointments", order=(Order("created_at", ascending=False),), limit=RECENT_LIMIT
        )
        return [Appointment.model_validate(row) for row in result.unwrap()]

    async def snapshot(self) -> DashboardSnapshot:
        """Counters and recent appointments.

        Failed parts render as zero or empty but are never cached, so the next
        request fetches them again.
        """

        today = self._today().isoformat()
        try:
            stats = await self._cache.get_or_fetch(("dashboard", "stats", today), self._fetch_stats)
        except IncompleteStats as exc:
            stats = exc.partial
        try:
            recent = await self._cache.get_or_fetch(("dashboard", "recent"), self._fetch_recent)
        except ServiceError as exc:
            logger.warning("Recent appointments unavailable: %s", exc)
            recent = []
        return DashboardSnapshot(stats=stats, recent_appointments=recent)
