from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from app.config import get_settings
from app.dependencies.services import get_gateway_client_cached
from app.routes.appointments import router as appointments_router
from app.routes.auth import NEXT_KEY, router as auth_router
from app.routes.catalog import router as catalog_router
from app.routes.customers import router as customers_router
from app.routes.dashboard import router as dashboard_router
from app.routes.gallery import router as gallery_router
from app.routes.public import router as public_router
from app.routes.settings import router as settings_router
from app.services.booking import SubmissionGuard
from app.services.exceptions import LoginRequired
from app.services.query_cache import QueryCache


def configure_logging() -> None:
    """Ensure application logs use the INFO level by default."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(logging.INFO)

configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    settings_snapshot = settings.model_dump(
        exclude={"gateway_api_key", "session_secret", "admin_password"},
    )
    logger.info("Application settings on startup: %s", settings_snapshot)
    if settings.session_secret == "change-me-later":
        logger.warning("BARBER_SESSION_SECRET is not set; admin sessions use the default signing key")

    client = get_gateway_client_cached()
    logger.info("Application startup complete (mock data: %s).", client.use_mock_data)

    try:
        yield
    finally:
        logger.info("Closing gateway client connection.")
        await client.close()
        logger.info("Application shutdown complete.")


# --- Application Setup ---

settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    redirect_slashes=False
)
app.state.query_cache = QueryCache()
app.state.booking_guard = SubmissionGuard()

app.add_middleware(SessionMiddleware, secret_key=settings.session_secret, same_site="lax")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin).rstrip("/") for origin in settings.cors_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LoginRequired)
async def redirect_to_login(request: Request, exc: LoginRequired) -> RedirectResponse:
    request.session[NEXT_KEY] = exc.next_path
    return RedirectResponse(url="/auth", status_code=303)


# --- Include Routers ---

app.include_router(public_router)
app.include_router(auth_router)
app.include_router(dashboard_router, prefix="/admin")
app.include_router(appointments_router, prefix="/admin/appointments")
app.include_router(catalog_router, prefix="/admin/services")
app.include_router(gallery_router, prefix="/admin/gallery")
app.include_router(customers_router, prefix="/admin/customers")
app.include_router(settings_router, prefix="/admin/settings")
