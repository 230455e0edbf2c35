from __future__ import annotations

import logging
from typing import List, Mapping, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from app.clients.gateway import GatewayClient
from app.dependencies.services import (
    get_booking_service,
    get_catalog_service,
    get_gallery_service,
    get_gateway_client,
    get_site_settings_service,
    get_submission_guard,
)
from app.schemas.catalog import Service
from app.schemas.gallery import GalleryImage
from app.schemas.notification import Notification
from app.schemas.site_settings import SiteSettings
from app.services import BookingService, CatalogService, GalleryService, SiteSettingsService
from app.services.booking import BOOKING_IN_PROGRESS, BookingForm, SubmissionGuard, booking_key
from app.services.exceptions import ServiceError
from app.views.flash import flash, pop_notifications
from app.views.public import marketing_page

logger = logging.getLogger(__name__)

router = APIRouter()


async def _page_content(
    settings_service: SiteSettingsService,
    catalog: CatalogService,
    gallery: GalleryService,
) -> tuple[SiteSettings, List[Service], List[GalleryImage]]:
    # The marketing page renders with defaults when the backend is unavailable.
    try:
        settings = await settings_service.load()
    except ServiceError as exc:
        logger.warning("Site settings unavailable, using defaults: %s", exc)
        settings = SiteSettings()
    try:
        services = await catalog.list_active()
    except ServiceError as exc:
        logger.warning("Service catalog unavailable: %s", exc)
        services = []
    try:
        images = await gallery.list_featured()
    except ServiceError as exc:
        logger.warning("Gallery unavailable: %s", exc)
        images = []
    return settings, services, images


async def _render(
    request: Request,
    settings_service: SiteSettingsService,
    catalog: CatalogService,
    gallery: GalleryService,
    *,
    values: Mapping[str, str],
    errors: Mapping[str, str],
    notifications: List[Notification],
    status_code: int = 200,
) -> HTMLResponse:
    settings, services, images = await _page_content(settings_service, catalog, gallery)
    content = marketing_page(
        settings,
        services,
        images,
        values=values,
        errors=errors,
        notifications=pop_notifications(request) + notifications,
    )
    return HTMLResponse(content=content, status_code=status_code)


@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    settings_service: SiteSettingsService = Depends(get_site_settings_service),
    catalog: CatalogService = Depends(get_catalog_service),
    gallery: GalleryService = Depends(get_gallery_service),
) -> HTMLResponse:
    return await _render(
        request, settings_service, catalog, gallery, values={}, errors={}, notifications=[]
    )


@router.post("/book", response_class=HTMLResponse)
async def book(
    request: Request,
    first_name: str = Form("", alias="firstName"),
    last_name: str = Form("", alias="lastName"),
    email: str = Form(""),
    phone: Optional[str] = Form(None),
    service: str = Form(""),
    preferred_at: str = Form("", alias="datetime"),
    booking: BookingService = Depends(get_booking_service),
    guard: SubmissionGuard = Depends(get_submission_guard),
    settings_service: SiteSettingsService = Depends(get_site_settings_service),
    catalog: CatalogService = Depends(get_catalog_service),
    gallery: GalleryService = Depends(get_gallery_service),
) -> Response:
    form = BookingForm(
        {
            "firstName": first_name,
            "lastName": last_name,
            "email": email,
            "phone": phone,
            "service": service,
            "datetime": preferred_at,
        }
    )
    key = booking_key(form.values)
    if not guard.claim(key):
        logger.info("Ignoring duplicate booking request")
        return await _render(
            request,
            settings_service,
            catalog,
            gallery,
            values={},
            errors={},
            notifications=[Notification.success(BOOKING_IN_PROGRESS, "We'll confirm your appointment shortly.")],
            status_code=409,
        )
    outcome = None
    try:
        outcome = await form.submit(booking)
    finally:
        guard.release(key, accepted=outcome is not None and outcome.ok)
    if outcome is not None and outcome.ok:
        flash(request, outcome.notification)
        return RedirectResponse(url="/#contact", status_code=303)

    notifications = [outcome.notification] if outcome and outcome.notification else []
    # Rejected before reaching the store: 422. The store refused the write: 502.
    status_code = 502 if outcome is not None and outcome.submitted else 422
    return await _render(
        request,
        settings_service,
        catalog,
        gallery,
        values=form.values,
        errors=form.errors,
        notifications=notifications,
        status_code=status_code,
    )


@router.get("/mock-storage/{bucket}/{path:path}")
async def mock_storage_object(
    bucket: str,
    path: str,
    client: GatewayClient = Depends(get_gateway_client),
) -> Response:
    """Serve files uploaded to the in-memory storage while running in mock mode."""
    if not client.use_mock_data:
        raise HTTPException(status_code=404, detail="Not found")
    stored = client.store.storage.get(bucket, path)
    if stored is None:
        raise HTTPException(status_code=404, detail="Object not found")
    content, content_type = stored
    return Response(content=content, media_type=content_type)
