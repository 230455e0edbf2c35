import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from app.clients.identity import Identity
from app.dependencies.services import get_customer_service, require_identity
from app.schemas.customer import CustomerForm
from app.schemas.notification import Notification
from app.services import CustomerService
from app.services.exceptions import ServiceError
from app.views.admin import admin_response, customer_form, customers_body
from app.views.flash import flash
from app.views.html import error_banner

logger = logging.getLogger(__name__)

router = APIRouter()

LIST_URL = "/admin/customers"


def _customer_form(name: str, email: str, phone: str, notes: str) -> CustomerForm:
    return CustomerForm(name=name, email=email, phone=phone, notes=notes)


@router.get("", response_class=HTMLResponse)
async def list_customers(
    request: Request,
    q: str = "",
    identity: Identity = Depends(require_identity),
    service: CustomerService = Depends(get_customer_service),
):
    try:
        customers = await service.list(q)
    except ServiceError as exc:
        banner = error_banner(f"Could not load customers: {exc}", str(request.url))
        body = customers_body([], search=q, error=banner)
        return admin_response(request, identity, "Customers", body, active="customers", status_code=502)
    return admin_response(request, identity, "Customers", customers_body(customers, search=q), active="customers")


@router.post("")
async def create_customer(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    notes: str = Form(""),
    identity: Identity = Depends(require_identity),
    service: CustomerService = Depends(get_customer_service),
):
    try:
        form = _customer_form(name, email, phone, notes)
    except ValidationError as exc:
        logger.info("Rejected customer form: %s", exc.errors())
        flash(request, Notification.failure("Failed to add customer", "Name is required."))
        return RedirectResponse(url=LIST_URL, status_code=303)
    outcome = await service.create(form)
    flash(request, outcome.notification)
    return RedirectResponse(url=LIST_URL, status_code=303)


@router.get("/{customer_id}/edit", response_class=HTMLResponse)
async def edit_customer(
    request: Request,
    customer_id: str,
    identity: Identity = Depends(require_identity),
    service: CustomerService = Depends(get_customer_service),
):
    try:
        customers = await service.list()
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    found = next((customer for customer in customers if customer.id == customer_id), None)
    if found is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return admin_response(request, identity, "Edit Customer", customer_form(found), active="customers")


@router.post("/{customer_id}")
async def update_customer(
    request: Request,
    customer_id: str,
    name: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    notes: str = Form(""),
    identity: Identity = Depends(require_identity),
    service: CustomerService = Depends(get_customer_service),
):
    try:
        form = _customer_form(name, email, phone, notes)
    except ValidationError as exc:
        logger.info("Rejected customer form: %s", exc.errors())
        flash(request, Notification.failure("Failed to update customer", "Name is required."))
        return RedirectResponse(url=f"{LIST_URL}/{customer_id}/edit", status_code=303)
    outcome = await service.update(customer_id, form)
    flash(request, outcome.notification)
    return RedirectResponse(url=LIST_URL, status_code=303)


@router.post("/{customer_id}/delete")
async def delete_customer(
    request: Request,
    customer_id: str,
    identity: Identity = Depends(require_identity),
    service: CustomerService = Depends(get_customer_service),
):
    outcome = await service.delete(customer_id)
    flash(request, outcome.notification)
    return RedirectResponse(url=LIST_URL, status_code=303)
