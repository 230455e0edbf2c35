from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Optional

from app.clients.gateway import GatewayClient, Order
from app.schemas.appointment import Appointment, AppointmentStatus
from app.schemas.notification import Notification
from app.services.mutations import MutationOutcome, run_mutation
from app.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

TABLE = "appointments"

ALL_STATUSES = "all"

ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.pending: frozenset({AppointmentStatus.confirmed, AppointmentStatus.cancelled}),
    AppointmentStatus.confirmed: frozenset({AppointmentStatus.completed}),
    AppointmentStatus.completed: frozenset(),
    AppointmentStatus.cancelled: frozenset(),
}


def next_statuses(status: AppointmentStatus) -> List[AppointmentStatus]:
    """Transitions offered for an appointment in ``status``, in display order."""

    return [candidate for candidate in AppointmentStatus if candidate in ALLOWED_TRANSITIONS[status]]


def search_appointments(appointments: List[Appointment], search: str) -> List[Appointment]:
    needle = search.strip().lower()
    if not needle:
        return list(appointments)
    return [
        appointment
        for appointment in appointments
        if needle in appointment.customer_name.lower() or needle in appointment.service_name.lower()
    ]


class AppointmentService:
    def __init__(self, gateway: GatewayClient, *, cache: QueryCache) -> None:
        self._gateway = gateway
        self._cache = cache

    async def _fetch(self, status: Optional[AppointmentStatus]) -> List[Appointment]:
        filters = {"status": status.value} if status else None
        result = await self._gateway.select(
            TABLE,
            filters=filters,
            order=(Order("appointment_date"), Order("appointment_time")),
        )
        return [Appointment.model_validate(row) for row in result.unwrap()]

    async def list(
        self, status: Optional[AppointmentStatus] = None, search: str = ""
    ) -> List[Appointment]:
        """Appointments ordered by date then time, optionally filtered by status.

        ``search`` narrows the cached result without another fetch.
        """

        key = (TABLE, status.value if status else ALL_STATUSES)
        appointments = await self._cache.get_or_fetch(key, lambda: self._fetch(status))
        return search_appointments(appointments, search)

    async def get(self, appointment_id: str) -> Optional[Appointment]:
        result = await self._gateway.select(TABLE, filters={"id": appointment_id}, limit=1)
        rows = result.unwrap()
        return Appointment.model_validate(rows[0]) if rows else None

    async def update_status(
        self,
        appointment: Appointment,
        status: AppointmentStatus,
    ) -> MutationOutcome:
        if status not in ALLOWED_TRANSITIONS[appointment.status]:
            logger.warning(
                "Rejected transition %s -> %s for appointment %s",
                appointment.status.value,
                status.value,
                appointment.id,
            )
            return MutationOutcome(
                ok=False,
                notification=Notification.failure(
                    "Failed to update appointment",
                    f"Cannot change a {appointment.status.value} appointment to {status.value}.",
                ),
            )

        return await run_mutation(
            self._gateway.update(TABLE, {"id": appointment.id}, {"status": status.value}),
            cache=self._cache,
            invalidate=[(TABLE,), ("dashboard",)],
            success="Appointment updated successfully",
            failure="Failed to update appointment",
        )
