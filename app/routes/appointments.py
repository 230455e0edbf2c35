from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from app.clients.identity import Identity
from app.dependencies.services import get_appointment_service, require_identity
from app.schemas.appointment import AppointmentStatus
from app.services import AppointmentService
from app.services.appointments import ALL_STATUSES
from app.services.exceptions import ServiceError
from app.views.admin import admin_response, appointment_detail_body, appointments_body
from app.views.flash import flash
from app.views.html import error_banner

router = APIRouter()


def _parse_status(value: str) -> Optional[AppointmentStatus]:
    if not value or value == ALL_STATUSES:
        return None
    try:
        return AppointmentStatus(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Unknown status {value!r}") from exc


@router.get("", response_class=HTMLResponse)
async def list_appointments(
    request: Request,
    status: str = ALL_STATUSES,
    q: str = "",
    identity: Identity = Depends(require_identity),
    service: AppointmentService = Depends(get_appointment_service),
):
    selected = _parse_status(status)
    status_value = selected.value if selected else ALL_STATUSES
    try:
        appointments = await service.list(selected, q)
    except ServiceError as exc:
        banner = error_banner(f"Could not load appointments: {exc}", str(request.url))
        body = appointments_body([], status=status_value, search=q, error=banner)
        return admin_response(request, identity, "Appointments", body, active="appointments", status_code=502)
    body = appointments_body(appointments, status=status_value, search=q)
    return admin_response(request, identity, "Appointments", body, active="appointments")


@router.get("/{appointment_id}", response_class=HTMLResponse)
async def appointment_detail(
    request: Request,
    appointment_id: str,
    identity: Identity = Depends(require_identity),
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        appointment = await service.get(appointment_id)
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    if appointment is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return admin_response(
        request, identity, "Appointment Details", appointment_detail_body(appointment), active="appointments"
    )


@router.post("/{appointment_id}/status")
async def change_status(
    request: Request,
    appointment_id: str,
    status: str = Form(...),
    return_to: str = Form("/admin/appointments"),
    identity: Identity = Depends(require_identity),
    service: AppointmentService = Depends(get_appointment_service),
):
    target = _parse_status(status)
    if target is None:
        raise HTTPException(status_code=400, detail="A target status is required")
    try:
        appointment = await service.get(appointment_id)
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    if appointment is None:
        raise HTTPException(status_code=404, detail="Appointment not found")

    outcome = await service.update_status(appointment, target)
    flash(request, outcome.notification)
    if not return_to.startswith("/admin"):
        return_to = "/admin/appointments"
    return RedirectResponse(url=return_to, status_code=303)
