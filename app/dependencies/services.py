from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Request

from app.clients.gateway import GatewayClient
from app.clients.identity import Identity, IdentityProvider
from app.config import Settings, get_settings
from app.services import (
    AppointmentService,
    BookingService,
    CatalogService,
    CustomerService,
    DashboardService,
    GalleryService,
    SiteSettingsService,
)
from app.services.booking import SubmissionGuard
from app.services.exceptions import LoginRequired
from app.services.query_cache import QueryCache


@lru_cache(maxsize=1)
def get_gateway_client_cached() -> GatewayClient:
    settings = get_settings()
    return GatewayClient(
        str(settings.gateway_base_url) if settings.gateway_base_url else None,
        api_key=settings.gateway_api_key,
        timeout=settings.gateway_timeout,
        use_mock_data=settings.use_mock_data,
    )


def get_gateway_client(settings: Settings = Depends(get_settings)) -> GatewayClient:
    return get_gateway_client_cached()


def get_query_cache(request: Request) -> QueryCache:
    return request.app.state.query_cache


def get_identity_provider(
    client: GatewayClient = Depends(get_gateway_client),
    settings: Settings = Depends(get_settings),
) -> IdentityProvider:
    return IdentityProvider(
        client,
        admin_email=settings.admin_email,
        admin_password=settings.admin_password,
    )


async def require_identity(
    request: Request,
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    identity = await identity_provider.current_user(request.session)
    if identity is None:
        raise LoginRequired(next_path=request.url.path)
    return identity


def get_submission_guard(request: Request) -> SubmissionGuard:
    return request.app.state.booking_guard


def get_booking_service(
    client: GatewayClient = Depends(get_gateway_client),
    cache: QueryCache = Depends(get_query_cache),
) -> BookingService:
    return BookingService(client, cache=cache)


def get_appointment_service(
    client: GatewayClient = Depends(get_gateway_client),
    cache: QueryCache = Depends(get_query_cache),
) -> AppointmentService:
    return AppointmentService(client, cache=cache)


def get_customer_service(
    client: GatewayClient = Depends(get_gateway_client),
    cache: QueryCache = Depends(get_query_cache),
) -> CustomerService:
    return CustomerService(client, cache=cache)


def get_catalog_service(
    client: GatewayClient = Depends(get_gateway_client),
    cache: QueryCache = Depends(get_query_cache),
) -> CatalogService:
    return CatalogService(client, cache=cache)


def get_gallery_service(
    client: GatewayClient = Depends(get_gateway_client),
    cache: QueryCache = Depends(get_query_cache),
    settings: Settings = Depends(get_settings),
) -> GalleryService:
    return GalleryService(
        client,
        cache=cache,
        bucket=settings.storage_bucket,
        site_url=settings.site_url,
    )


def get_site_settings_service(
    client: GatewayClient = Depends(get_gateway_client),
    cache: QueryCache = Depends(get_query_cache),
) -> SiteSettingsService:
    return SiteSettingsService(client, cache=cache)


def get_dashboard_service(
    client: GatewayClient = Depends(get_gateway_client),
    cache: QueryCache = Depends(get_query_cache),
) -> DashboardService:
    return DashboardService(client, cache=cache)
