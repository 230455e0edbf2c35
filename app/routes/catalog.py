import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from app.clients.identity import Identity
from app.dependencies.services import get_catalog_service, require_identity
from app.schemas.catalog import Service, ServiceForm
from app.schemas.notification import Notification
from app.services import CatalogService
from app.services.exceptions import ServiceError
from app.views.admin import admin_response, service_form, services_body
from app.views.flash import flash
from app.views.html import error_banner

logger = logging.getLogger(__name__)

router = APIRouter()

LIST_URL = "/admin/services"


def _service_form(
    name: str,
    description: str,
    price: str,
    duration_minutes: str,
    image_url: str,
    is_active: bool,
) -> ServiceForm:
    return ServiceForm(
        name=name,
        description=description,
        price=price,
        duration_minutes=duration_minutes or 30,
        image_url=image_url,
        is_active=is_active,
    )


async def _load(service: CatalogService, service_id: str) -> Service:
    try:
        found = await service.get(service_id)
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    if found is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return found


@router.get("", response_class=HTMLResponse)
async def list_services(
    request: Request,
    identity: Identity = Depends(require_identity),
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        services = await service.list()
    except ServiceError as exc:
        body = services_body([], error=error_banner(f"Could not load services: {exc}", LIST_URL))
        return admin_response(request, identity, "Services & Pricing", body, active="services", status_code=502)
    return admin_response(request, identity, "Services & Pricing", services_body(services), active="services")


@router.post("")
async def create_service(
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    price: str = Form(""),
    duration_minutes: str = Form("30"),
    image_url: str = Form(""),
    is_active: bool = Form(False),
    identity: Identity = Depends(require_identity),
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        form = _service_form(name, description, price, duration_minutes, image_url, is_active)
    except ValidationError as exc:
        logger.info("Rejected service form: %s", exc.errors())
        flash(request, Notification.failure("Failed to create service", "Name and price are required."))
        return RedirectResponse(url=LIST_URL, status_code=303)
    outcome = await service.create(form)
    flash(request, outcome.notification)
    return RedirectResponse(url=LIST_URL, status_code=303)


@router.get("/{service_id}/edit", response_class=HTMLResponse)
async def edit_service(
    request: Request,
    service_id: str,
    identity: Identity = Depends(require_identity),
    service: CatalogService = Depends(get_catalog_service),
):
    found = await _load(service, service_id)
    return admin_response(request, identity, "Edit Service", service_form(found), active="services")


@router.post("/{service_id}")
async def update_service(
    request: Request,
    service_id: str,
    name: str = Form(""),
    description: str = Form(""),
    price: str = Form(""),
    duration_minutes: str = Form("30"),
    image_url: str = Form(""),
    is_active: bool = Form(False),
    identity: Identity = Depends(require_identity),
    service: CatalogService = Depends(get_catalog_service),
):
    found = await _load(service, service_id)
    try:
        form = _service_form(name, description, price, duration_minutes, image_url, is_active)
    except ValidationError as exc:
        logger.info("Rejected service form: %s", exc.errors())
        flash(request, Notification.failure("Failed to update service", "Name and price are required."))
        return RedirectResponse(url=f"{LIST_URL}/{service_id}/edit", status_code=303)
    outcome = await service.update(found, form)
    flash(request, outcome.notification)
    return RedirectResponse(url=LIST_URL, status_code=303)


@router.post("/{service_id}/toggle-active")
async def toggle_service(
    request: Request,
    service_id: str,
    identity: Identity = Depends(require_identity),
    service: CatalogService = Depends(get_catalog_service),
):
    found = await _load(service, service_id)
    outcome = await service.toggle_active(found)
    flash(request, outcome.notification)
    return RedirectResponse(url=LIST_URL, status_code=303)


@router.post("/{service_id}/delete")
async def delete_service(
    request: Request,
    service_id: str,
    identity: Identity = Depends(require_identity),
    service: CatalogService = Depends(get_catalog_service),
):
    outcome = await service.delete(service_id)
    flash(request, outcome.notification)
    return RedirectResponse(url=LIST_URL, status_code=303)
