"""Service package public API definitions.

The service implementations import ``app.clients.gateway``, which itself
imports ``app.services.exceptions`` and ``app.services.mock_store``. Importing
the implementations eagerly here would make that a circular import, so they
are resolved lazily on first attribute access.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "AppointmentService",
    "BookingService",
    "CatalogService",
    "CustomerService",
    "DashboardService",
    "GalleryService",
    "SiteSettingsService",
]

_SERVICE_MODULES = {
    "AppointmentService": "appointments",
    "BookingService": "booking",
    "CatalogService": "catalog",
    "CustomerService": "customers",
    "DashboardService": "dashboard",
    "GalleryService": "gallery",
    "SiteSettingsService": "site_settings",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .appointments import AppointmentService as AppointmentService
    from .booking import BookingService as BookingService
    from .catalog import CatalogService as CatalogService
    from .customers import CustomerService as CustomerService
    from .dashboard import DashboardService as DashboardService
    from .gallery import GalleryService as GalleryService
    from .site_settings import SiteSettingsService as SiteSettingsService
