from __future__ import annotations

from typing import List

from app.clients.gateway import GatewayClient, Order
from app.schemas.customer import Customer, CustomerForm
from app.services.mutations import MutationOutcome, run_mutation
from app.services.query_cache import QueryCache

TABLE = "customers"


def search_customers(customers: List[Customer], search: str) -> List[Customer]:
    needle = search.lower()
    if not needle:
        return list(customers)
    # Phone numbers are matched as typed, names and emails case-insensitively.
    return [
        customer
        for customer in customers
        if needle in customer.name.lower()
        or (customer.email is not None and needle in customer.email.lower())
        or (customer.phone is not None and search in customer.phone)
    ]


class CustomerService:
    def __init__(self, gateway: GatewayClient, *, cache: QueryCache) -> None:
        self._gateway = gateway
        self._cache = cache

    async def _fetch(self) -> List[Customer]:
        result = await self._gateway.select(TABLE, order=(Order("created_at", ascending=False),))
        return [Customer.model_validate(row) for row in result.unwrap()]

    async def list(self, search: str = "") -> List[Customer]:
        customers = await self._cache.get_or_fetch((TABLE,), self._fetch)
        return search_customers(customers, search)

    async def create(self, form: CustomerForm) -> MutationOutcome:
        return await run_mutation(
            self._gateway.insert(TABLE, form.model_dump()),
            cache=self._cache,
            invalidate=[(TABLE,), ("dashboard",)],
            success="Customer added successfully",
            failure="Failed to add customer",
        )

    async def update(self, customer_id: str, form: CustomerForm) -> MutationOutcome:
        return await run_mutation(
            self._gateway.update(TABLE, {"id": customer_id}, form.model_dump()),
            cache=self._cache,
            invalidate=[(TABLE,)],
            success="Customer updated successfully",
            failure="Failed to update customer",
        )

    async def delete(self, customer_id: str) -> MutationOutcome:
        return await run_mutation(
            self._gateway.delete(TABLE, {"id": customer_id}),
            cache=self._cache,
            invalidate=[(TABLE,), ("dashboard",)],
            success="Customer deleted successfully",
            failure="Failed to delete customer",
        )
