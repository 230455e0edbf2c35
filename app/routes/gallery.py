import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from app.clients.identity import Identity
from app.dependencies.services import get_gallery_service, require_identity
from app.schemas.gallery import GalleryImage, GalleryImageForm
from app.schemas.notification import Notification
from app.services import GalleryService
from app.services.exceptions import ServiceError
from app.views.admin import admin_response, gallery_body, gallery_form
from app.views.flash import flash
from app.views.html import error_banner

logger = logging.getLogger(__name__)

router = APIRouter()

LIST_URL = "/admin/gallery"


async def _render(
    request: Request,
    identity: Identity,
    service: GalleryService,
    *,
    form: str,
    notifications=(),
    status_code: int = 200,
) -> HTMLResponse:
    try:
        images = await service.list()
    except ServiceError as exc:
        banner = error_banner(f"Could not load gallery: {exc}", LIST_URL)
        return admin_response(
            request,
            identity,
            "Gallery",
            gallery_body([], form=form, error=banner),
            active="gallery",
            notifications=notifications,
            status_code=502,
        )
    return admin_response(
        request,
        identity,
        "Gallery",
        gallery_body(images, form=form),
        active="gallery",
        notifications=notifications,
        status_code=status_code,
    )


async def _load(service: GalleryService, image_id: str) -> GalleryImage:
    try:
        found = await service.get(image_id)
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    if found is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return found


@router.get("", response_class=HTMLResponse)
async def list_images(
    request: Request,
    identity: Identity = Depends(require_identity),
    service: GalleryService = Depends(get_gallery_service),
):
    return await _render(request, identity, service, form=gallery_form())


@router.post("/upload", response_class=HTMLResponse)
async def upload_image(
    request: Request,
    file: UploadFile = File(...),
    identity: Identity = Depends(require_identity),
    service: GalleryService = Depends(get_gallery_service),
):
    """Store the file and re-render the add form with its public URL filled in."""
    content = await file.read()
    outcome = await service.upload(
        file.filename or "upload", content, file.content_type or "application/octet-stream"
    )
    image_url = outcome.data if outcome.ok else ""
    return await _render(
        request,
        identity,
        service,
        form=gallery_form(image_url=image_url),
        notifications=[outcome.notification] if outcome.notification else [],
        status_code=200 if outcome.ok else 502,
    )


@router.post("", response_class=HTMLResponse)
async def create_image(
    request: Request,
    image_url: str = Form(""),
    title: str = Form(""),
    category: str = Form("haircut"),
    is_featured: bool = Form(False),
    identity: Identity = Depends(require_identity),
    service: GalleryService = Depends(get_gallery_service),
):
    try:
        form = GalleryImageForm(
            image_url=image_url.strip(), title=title, category=category, is_featured=is_featured
        )
    except ValidationError as exc:
        logger.info("Rejected gallery form: %s", exc.errors())
        flash(request, Notification.failure("Failed to add image", "Choose one of the listed categories."))
        return RedirectResponse(url=LIST_URL, status_code=303)

    outcome = await service.create(form)
    if not outcome.ok:
        # Keep what was entered so the upload is not lost.
        return await _render(
            request,
            identity,
            service,
            form=gallery_form(image_url=image_url, title=title, category=category, featured=is_featured),
            notifications=[outcome.notification] if outcome.notification else [],
            status_code=422 if not form.image_url else 502,
        )
    flash(request, outcome.notification)
    return RedirectResponse(url=LIST_URL, status_code=303)


@router.post("/{image_id}/toggle-featured")
async def toggle_featured(
    request: Request,
    image_id: str,
    identity: Identity = Depends(require_identity),
    service: GalleryService = Depends(get_gallery_service),
):
    image = await _load(service, image_id)
    outcome = await service.toggle_featured(image)
    flash(request, outcome.notification)
    return RedirectResponse(url=LIST_URL, status_code=303)


@router.post("/{image_id}/delete")
async def delete_image(
    request: Request,
    image_id: str,
    identity: Identity = Depends(require_identity),
    service: GalleryService = Depends(get_gallery_service),
):
    outcome = await service.delete(image_id)
    flash(request, outcome.notification)
    return RedirectResponse(url=LIST_URL, status_code=303)
