from __future__ import annotations

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from app.config import get_settings
from app.main import app
from app.clients.gateway import GatewayErrorKind, GatewayResult
from app.dependencies.services import get_site_settings_service
from app.services.mock_store import get_mock_store, reset_mock_store
from app.services.query_cache import QueryCache
from app.services.site_settings import SiteSettingsService

BOOKING_FORM = {
    "firstName": "John",
    "lastName": "Doe",
    "email": "john@example.com",
    "phone": "",
    "service": "haircut",
    "datetime": "2025-01-15T14:30",
}


@pytest.fixture(autouse=True)
def _reset_state() -> None:
    reset_mock_store()
    app.state.query_cache.clear()
    app.state.booking_guard.clear()
    yield
    reset_mock_store()
    app.state.query_cache.clear()
    app.state.booking_guard.clear()
    app.dependency_overrides.clear()


def _signed_in_client() -> TestClient:
    settings = get_settings()
    client = TestClient(app)
    response = client.post(
        "/auth",
        data={"email": settings.admin_email, "password": settings.admin_password},
        follow_redirects=False,
    )
    assert response.status_code == 303
    return client


def test_home_page_renders_catalog_and_default_settings() -> None:
    response = TestClient(app).get("/")

    assert response.status_code == 200
    body = response.text
    assert "Old Thai Barber" in body
    assert "Premium Grooming" in body
    assert "$75" in body
    assert 'id="booking-form"' in body


def test_booking_redirects_and_stores_appointment() -> None:
    client = TestClient(app)

    response = client.post("/book", data=BOOKING_FORM, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/#contact"
    rows = get_mock_store().table("appointments").rows()
    assert [row["customer_name"] for row in rows] == ["John Doe"]

    page = client.get("/")
    assert "Booking request sent!" in page.text


def test_invalid_booking_rerenders_with_inline_errors() -> None:
    response = TestClient(app).post("/book", data={**BOOKING_FORM, "email": "not-an-email"})

    assert response.status_code == 422
    assert "Invalid email address" in response.text
    assert "Please fix the errors in the form" in response.text
    assert 'value="John"' in response.text
    assert get_mock_store().table("appointments").rows() == []


def test_concurrent_identical_bookings_insert_once() -> None:
    async def _post_twice():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            return await asyncio.gather(
                client.post("/book", data=BOOKING_FORM),
                client.post("/book", data=BOOKING_FORM),
            )

    responses = asyncio.run(_post_twice())

    assert sorted(response.status_code for response in responses) == [303, 409]
    assert len(get_mock_store().table("appointments").rows()) == 1


def test_repeated_booking_is_refused_but_a_rejected_one_can_be_retried() -> None:
    client = TestClient(app)

    rejected = client.post("/book", data={**BOOKING_FORM, "email": "john@example"})
    assert rejected.status_code == 422

    accepted = client.post("/book", data=BOOKING_FORM, follow_redirects=False)
    assert accepted.status_code == 303

    repeated = client.post("/book", data=BOOKING_FORM, follow_redirects=False)
    assert repeated.status_code == 409
    assert "Booking already received" in repeated.text
    assert len(get_mock_store().table("appointments").rows()) == 1


def test_admin_requires_sign_in() -> None:
    client = TestClient(app)

    response = client.get("/admin/customers", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/auth"


def test_wrong_password_is_rejected() -> None:
    response = TestClient(app).post("/auth", data={"email": get_settings().admin_email, "password": "nope"})

    assert response.status_code == 401
    assert "Sign in failed" in response.text


def test_sign_in_returns_to_requested_admin_page() -> None:
    settings = get_settings()
    client = TestClient(app)
    client.get("/admin/gallery", follow_redirects=False)

    response = client.post(
        "/auth",
        data={"email": settings.admin_email, "password": settings.admin_password},
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/admin/gallery"


def test_dashboard_shows_counts() -> None:
    client = _signed_in_client()
    client.post("/book", data=BOOKING_FORM)

    response = client.get("/admin")

    assert response.status_code == 200
    assert "Pending Approvals" in response.text
    assert "John Doe" in response.text


def test_appointment_status_change_flow() -> None:
    client = _signed_in_client()
    client.post("/book", data=BOOKING_FORM)
    appointment_id = get_mock_store().table("appointments").rows()[0]["id"]

    response = client.post(
        f"/admin/appointments/{appointment_id}/status",
        data={"status": "confirmed", "return_to": "/admin/appointments?status=confirmed"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/admin/appointments?status=confirmed"

    listing = client.get("/admin/appointments", params={"status": "confirmed"})
    assert "Appointment updated successfully" in listing.text
    assert "John Doe" in listing.text
    assert "Mark Complete" in listing.text


def test_customer_crud() -> None:
    client = _signed_in_client()

    client.post("/admin/customers", data={"name": "Anan", "email": "anan@example.com", "phone": "", "notes": ""})
    listing = client.get("/admin/customers")
    assert "Customer added successfully" in listing.text
    assert "anan@example.com" in listing.text

    customer_id = get_mock_store().table("customers").rows()[0]["id"]
    client.post(f"/admin/customers/{customer_id}/delete")
    assert get_mock_store().table("customers").rows() == []


def test_settings_save_updates_public_page() -> None:
    client = _signed_in_client()

    response = client.post(
        "/admin/settings",
        data={"general.shop_name": "Bangkok Blades", "hours.sunday": "10:00 AM - 4:00 PM"},
        follow_redirects=False,
    )
    assert response.status_code == 303

    stored = {row["key"]: row["value"] for row in get_mock_store().table("site_settings").rows()}
    assert stored["general"]["shopName"] == "Bangkok Blades"
    assert stored["general"]["tagline"] == "Classic Cuts. Modern Style."
    assert stored["hours"]["sunday"] == "10:00 AM - 4:00 PM"
    assert len(stored) == 6

    home = client.get("/")
    assert "Bangkok Blades" in home.text


class SettingsUnavailableGateway:
    use_mock_data = True

    def __init__(self) -> None:
        self.upserts = []

    async def select(self, table, **kwargs):
        return GatewayResult.failure("Unable to reach the booking backend", kind=GatewayErrorKind.transport)

    async def upsert(self, table, record, **kwargs):
        self.upserts.append(record)
        return GatewayResult.success([record])


def test_settings_save_reports_when_current_values_cannot_load() -> None:
    gateway = SettingsUnavailableGateway()
    app.dependency_overrides[get_site_settings_service] = lambda: SiteSettingsService(gateway, cache=QueryCache())
    client = _signed_in_client()

    response = client.post("/admin/settings", data={"general.shop_name": "Bangkok Blades"}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/admin/settings"

    page = client.get("/admin/settings")
    assert page.status_code == 502
    assert "Failed to save settings" in page.text
    assert gateway.upserts == []


def test_settings_reject_script_links() -> None:
    client = _signed_in_client()

    response = client.post(
        "/admin/settings",
        data={"general.shop_name": "Bangkok Blades", "social.facebook": "javascript:alert(1)"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert get_mock_store().table("site_settings").rows() == []

    page = client.get("/admin/settings")
    assert "Failed to save settings" in page.text
    assert "Links must start with http:// or https://" in page.text
    assert "javascript:" not in client.get("/").text


def test_gallery_upload_prefills_add_form() -> None:
    client = _signed_in_client()

    response = client.post(
        "/admin/gallery/upload",
        files={"file": ("fade.jpg", b"jpeg-bytes", "image/jpeg")},
    )

    assert response.status_code == 200
    assert "Image uploaded successfully" in response.text
    paths = get_mock_store().storage.paths("gallery")
    assert len(paths) == 1
    assert f'src="/mock-storage/gallery/{paths[0]}"' in response.text

    stored = client.get(f"/mock-storage/gallery/{paths[0]}")
    assert stored.content == b"jpeg-bytes"


def test_sign_out_returns_to_home() -> None:
    client = _signed_in_client()

    response = client.post("/auth/sign-out", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/"
    assert client.get("/admin", follow_redirects=False).status_code == 303
