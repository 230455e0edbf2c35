import logging
from typing import Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from app.clients.identity import Identity
from app.schemas.notification import Notification
from app.dependencies.services import get_site_settings_service, require_identity
from app.schemas.site_settings import SettingsSection
from app.services import SiteSettingsService
from app.services.exceptions import ServiceError
from app.services.site_settings import update_section
from app.views.admin import admin_response, settings_body
from app.views.flash import flash
from app.views.html import error_banner

logger = logging.getLogger(__name__)

router = APIRouter()

SETTINGS_URL = "/admin/settings"


@router.get("", response_class=HTMLResponse)
async def edit_settings(
    request: Request,
    identity: Identity = Depends(require_identity),
    service: SiteSettingsService = Depends(get_site_settings_service),
):
    try:
        settings = await service.load()
    except ServiceError as exc:
        banner = error_banner(f"Could not load settings: {exc}", SETTINGS_URL)
        return admin_response(
            request, identity, "Site Settings", settings_body(None, error=banner), active="settings", status_code=502
        )
    return admin_response(request, identity, "Site Settings", settings_body(settings), active="settings")


@router.post("")
async def save_settings(
    request: Request,
    identity: Identity = Depends(require_identity),
    service: SiteSettingsService = Depends(get_site_settings_service),
):
    """Apply the posted ``section.field`` values and write every section back."""
    try:
        settings = await service.load()
    except ServiceError as exc:
        logger.warning("Cannot save settings, current values unavailable: %s", exc)
        flash(request, Notification.failure("Failed to save settings"))
        return RedirectResponse(url=SETTINGS_URL, status_code=303)

    posted = await request.form()
    for section in SettingsSection:
        fields = type(settings.section(section)).model_fields
        values: Dict[str, str] = {}
        for field in fields:
            value = posted.get(f"{section.value}.{field}")
            if isinstance(value, str):
                values[field] = value
        try:
            settings = update_section(settings, section, values)
        except ValidationError as exc:
            logger.info("Rejected %s settings: %s", section.value, exc)
            flash(request, Notification.failure("Failed to save settings", "Links must start with http:// or https://"))
            return RedirectResponse(url=SETTINGS_URL, status_code=303)

    outcome = await service.save(settings)
    flash(request, outcome.notification)
    return RedirectResponse(url=SETTINGS_URL, status_code=303)
