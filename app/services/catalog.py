from __future__ import annotations

from typing import List, Optional

from app.clients.gateway import GatewayClient, Order
from app.schemas.catalog import Service, ServiceForm
from app.schemas.notification import Notification
from app.services.mutations import MutationOutcome, run_mutation
from app.services.query_cache import QueryCache

TABLE = "services"


class CatalogService:
    """Services and prices shown on the site and managed from the back-office."""

    def __init__(self, gateway: GatewayClient, *, cache: QueryCache) -> None:
        self._gateway = gateway
        self._cache = cache

    async def _fetch(self) -> List[Service]:
        result = await self._gateway.select(TABLE, order=(Order("display_order"),))
        return [Service.model_validate(row) for row in result.unwrap()]

    async def list(self) -> List[Service]:
        return await self._cache.get_or_fetch((TABLE,), self._fetch)

    async def list_active(self) -> List[Service]:
        return [service for service in await self.list() if service.is_active]

    async def get(self, service_id: str) -> Optional[Service]:
        return next((service for service in await self.list() if service.id == service_id), None)

    async def create(self, form: ServiceForm) -> MutationOutcome:
        # New services go to the end of the list.
        counted = await self._gateway.count(TABLE)
        if not counted.ok:
            return MutationOutcome(ok=False, notification=Notification.failure("Failed to create service"))
        return await run_mutation(
            self._gateway.insert(TABLE, {**form.model_dump(), "display_order": counted.data or 0}),
            cache=self._cache,
            invalidate=[(TABLE,), ("dashboard",)],
            success="Service created successfully",
            failure="Failed to create service",
        )

    async def update(self, service: Service, form: ServiceForm) -> MutationOutcome:
        return await run_mutation(
            self._gateway.update(
                TABLE, {"id": service.id}, {**form.model_dump(), "display_order": service.display_order}
            ),
            cache=self._cache,
            invalidate=[(TABLE,)],
            success="Service updated successfully",
            failure="Failed to update service",
        )

    async def toggle_active(self, service: Service) -> MutationOutcome:
        return await run_mutation(
            self._gateway.update(TABLE, {"id": service.id}, {"is_active": not service.is_active}),
            cache=self._cache,
            invalidate=[(TABLE,)],
            success="Service updated successfully",
            failure="Failed to update service",
        )

    async def delete(self, service_id: str) -> MutationOutcome:
        return await run_mutation(
            self._gateway.delete(TABLE, {"id": service_id}),
            cache=self._cache,
            invalidate=[(TABLE,), ("dashboard",)],
            success="Service deleted successfully",
            failure="Failed to delete service",
        )
