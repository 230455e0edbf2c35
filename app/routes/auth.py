from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from app.clients.identity import IdentityProvider
from app.dependencies.services import get_identity_provider
from app.schemas.notification import Notification
from app.views.flash import flash, pop_notifications
from app.views.public import login_page

logger = logging.getLogger(__name__)

router = APIRouter()

NEXT_KEY = "next_path"


@router.get("/auth", response_class=HTMLResponse)
async def login_form(
    request: Request,
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> Response:
    if await identity_provider.current_user(request.session) is not None:
        return RedirectResponse(url="/admin", status_code=303)
    return HTMLResponse(login_page(notifications=pop_notifications(request)))


@router.post("/auth", response_class=HTMLResponse)
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> Response:
    result = await identity_provider.sign_in(email, password)
    if not result.ok or result.data is None:
        notification = Notification.failure("Sign in failed", result.message_or("Invalid login credentials"))
        return HTMLResponse(login_page(email, notifications=[notification]), status_code=401)

    identity_provider.remember(request.session, result.data)
    logger.info("Signed in %s", result.data.email)
    next_path = request.session.pop(NEXT_KEY, None) or "/admin"
    if not next_path.startswith("/admin"):
        next_path = "/admin"
    return RedirectResponse(url=next_path, status_code=303)


@router.post("/auth/sign-out")
async def sign_out(
    request: Request,
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> Response:
    await identity_provider.sign_out(request.session)
    flash(request, Notification.success("Signed out"))
    return RedirectResponse(url="/", status_code=303)
