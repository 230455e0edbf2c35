import asyncio
from datetime import date

import pytest

from app.clients.gateway import GatewayClient, GatewayErrorKind, GatewayResult
from app.schemas.appointment import AppointmentStatus
from app.schemas.catalog import ServiceForm
from app.schemas.customer import CustomerForm
from app.schemas.gallery import GalleryImageForm
from app.services.appointments import AppointmentService, next_statuses
from app.services.catalog import CatalogService
from app.services.customers import CustomerService
from app.services.dashboard import DashboardService
from app.services.exceptions import DownstreamServiceError
from app.services.gallery import GalleryService, upload_path
from app.services.mock_store import get_mock_store, reset_mock_store
from app.services.query_cache import QueryCache


@pytest.fixture(autouse=True)
def _reset_store() -> None:
    reset_mock_store()
    yield
    reset_mock_store()


def _seed_appointment(**overrides):
    record = {
        "customer_name": "John Doe",
        "customer_email": "john@example.com",
        "service_name": "Hair Cut",
        "appointment_date": "2025-01-15",
        "appointment_time": "14:30:00",
    }
    record.update(overrides)
    return get_mock_store().table("appointments").insert(record)


class UnreachableGateway:
    use_mock_data = True

    async def select(self, table, **kwargs):
        return GatewayResult.failure("Unable to reach the booking backend", kind=GatewayErrorKind.transport)

    async def count(self, table, **kwargs):
        return GatewayResult.failure("Unable to reach the booking backend", kind=GatewayErrorKind.transport)


def test_confirmed_filter_returns_only_confirmed_in_date_time_order() -> None:
    _seed_appointment(customer_name="Late", status="confirmed", appointment_date="2025-01-16", appointment_time="09:00:00")
    _seed_appointment(customer_name="Pending", appointment_date="2025-01-14")
    _seed_appointment(customer_name="Early", status="confirmed", appointment_date="2025-01-15", appointment_time="10:00:00")
    _seed_appointment(customer_name="Noon", status="confirmed", appointment_date="2025-01-15", appointment_time="12:00:00")

    service = AppointmentService(GatewayClient(None), cache=QueryCache())
    confirmed = asyncio.run(service.list(AppointmentStatus.confirmed))

    assert [appt.customer_name for appt in confirmed] == ["Early", "Noon", "Late"]
    assert all(appt.status == AppointmentStatus.confirmed for appt in confirmed)


def test_search_filters_by_customer_or_service_name() -> None:
    _seed_appointment(customer_name="Somchai", service_name="Beard Styling")
    _seed_appointment(customer_name="Anan", service_name="Hair Cut")

    service = AppointmentService(GatewayClient(None), cache=QueryCache())

    assert [a.customer_name for a in asyncio.run(service.list(search="BEARD"))] == ["Somchai"]
    assert [a.customer_name for a in asyncio.run(service.list(search="anan"))] == ["Anan"]


def test_status_transitions_follow_the_lifecycle() -> None:
    assert next_statuses(AppointmentStatus.pending) == [AppointmentStatus.confirmed, AppointmentStatus.cancelled]
    assert next_statuses(AppointmentStatus.confirmed) == [AppointmentStatus.completed]
    assert next_statuses(AppointmentStatus.completed) == []
    assert next_statuses(AppointmentStatus.cancelled) == []


def test_update_status_writes_and_invalidates() -> None:
    row = _seed_appointment()
    cache = QueryCache()
    service = AppointmentService(GatewayClient(None), cache=cache)
    asyncio.run(service.list())
    appointment = asyncio.run(service.get(row["id"]))

    outcome = asyncio.run(service.update_status(appointment, AppointmentStatus.confirmed))

    assert outcome.ok is True
    assert outcome.notification.title == "Appointment updated successfully"
    assert ("appointments", "all") not in cache
    assert asyncio.run(service.get(row["id"])).status == AppointmentStatus.confirmed


def test_disallowed_transition_is_not_written() -> None:
    row = _seed_appointment(status="cancelled")
    service = AppointmentService(GatewayClient(None), cache=QueryCache())
    appointment = asyncio.run(service.get(row["id"]))

    outcome = asyncio.run(service.update_status(appointment, AppointmentStatus.completed))

    assert outcome.ok is False
    assert outcome.notification.title == "Failed to update appointment"
    assert get_mock_store().table("appointments").rows()[0]["status"] == "cancelled"


def test_list_failure_raises_and_is_not_cached() -> None:
    cache = QueryCache()
    service = AppointmentService(UnreachableGateway(), cache=cache)

    with pytest.raises(DownstreamServiceError):
        asyncio.run(service.list())
    assert ("appointments", "all") not in cache


def test_toggling_a_service_twice_restores_it() -> None:
    catalog = CatalogService(GatewayClient(None), cache=QueryCache())
    first = asyncio.run(catalog.list())[0]

    asyncio.run(catalog.toggle_active(first))
    toggled = asyncio.run(catalog.get(first.id))
    assert toggled.is_active is False
    assert first.id not in {service.id for service in asyncio.run(catalog.list_active())}

    asyncio.run(catalog.toggle_active(toggled))
    assert asyncio.run(catalog.get(first.id)).is_active is True


def test_new_service_goes_to_the_end_and_edits_keep_order() -> None:
    catalog = CatalogService(GatewayClient(None), cache=QueryCache())

    outcome = asyncio.run(catalog.create(ServiceForm(name="Hot Towel Shave", price=20, duration_minutes=20)))
    assert outcome.ok is True
    assert outcome.notification.title == "Service created successfully"

    services = asyncio.run(catalog.list())
    created = services[-1]
    assert created.name == "Hot Towel Shave"
    assert created.display_order == 4

    asyncio.run(catalog.update(created, ServiceForm(name="Royal Shave", price=30)))
    updated = asyncio.run(catalog.get(created.id))
    assert updated.name == "Royal Shave"
    assert updated.display_order == 4
    assert updated.duration_minutes == 30


def test_gallery_delete_leaves_gaps_in_display_order() -> None:
    gallery = GalleryService(GatewayClient(None), cache=QueryCache())
    for index in range(3):
        asyncio.run(gallery.create(GalleryImageForm(image_url=f"https://img/{index}.jpg")))
    images = asyncio.run(gallery.list())
    assert [image.display_order for image in images] == [0, 1, 2]

    outcome = asyncio.run(gallery.delete(images[1].id))

    assert outcome.notification.title == "Image deleted successfully"
    assert [image.display_order for image in asyncio.run(gallery.list())] == [0, 2]


def test_gallery_create_requires_an_image() -> None:
    gallery = GalleryService(GatewayClient(None), cache=QueryCache())

    outcome = asyncio.run(gallery.create(GalleryImageForm(title="Fade")))

    assert outcome.ok is False
    assert outcome.notification.title == "Please add an image"
    assert get_mock_store().table("gallery").rows() == []


def test_gallery_upload_returns_public_url() -> None:
    gallery = GalleryService(
        GatewayClient(None), cache=QueryCache(), site_url="http://localhost:8000", clock=lambda: 1700000000000
    )

    outcome = asyncio.run(gallery.upload("fade.PNG", b"png-bytes", "image/png"))

    assert outcome.ok is True
    assert outcome.data == "http://localhost:8000/mock-storage/gallery/gallery/1700000000000.PNG"
    assert get_mock_store().storage.get("gallery", "gallery/1700000000000.PNG") == (b"png-bytes", "image/png")
    assert upload_path("photo.final.jpg", 5) == "gallery/5.jpg"


def test_featured_toggle_is_silent_on_success() -> None:
    gallery = GalleryService(GatewayClient(None), cache=QueryCache())
    asyncio.run(gallery.create(GalleryImageForm(image_url="https://img/a.jpg")))
    image = asyncio.run(gallery.list())[0]

    outcome = asyncio.run(gallery.toggle_featured(image))

    assert outcome.ok is True
    assert outcome.notification is None
    assert [featured.id for featured in asyncio.run(gallery.list_featured())] == [image.id]


def test_customer_search_matches_name_email_and_phone() -> None:
    customers = CustomerService(GatewayClient(None), cache=QueryCache())
    asyncio.run(customers.create(CustomerForm(name="Somchai", email="SOM@example.com", phone="081-555")))
    asyncio.run(customers.create(CustomerForm(name="Anan", phone="089-111")))

    assert [c.name for c in asyncio.run(customers.list("som@"))] == ["Somchai"]
    assert [c.name for c in asyncio.run(customers.list("ANAN"))] == ["Anan"]
    assert [c.name for c in asyncio.run(customers.list("089"))] == ["Anan"]
    assert len(asyncio.run(customers.list(""))) == 2


def test_customer_blank_optional_fields_are_stored_as_null() -> None:
    customers = CustomerService(GatewayClient(None), cache=QueryCache())

    outcome = asyncio.run(customers.create(CustomerForm(name="  Anan  ", email="", phone=" ", notes="")))

    assert outcome.notification.title == "Customer added successfully"
    row = get_mock_store().table("customers").rows()[0]
    assert row["name"] == "Anan"
    assert row["email"] is None and row["phone"] is None and row["notes"] is None


def test_dashboard_counts_and_recent_appointments() -> None:
    _seed_appointment(appointment_date="2025-03-01")
    _seed_appointment(appointment_date="2025-03-01", status="confirmed")
    _seed_appointment(appointment_date="2025-03-02")
    dashboard = DashboardService(GatewayClient(None), cache=QueryCache(), today=lambda: date(2025, 3, 1))

    snapshot = asyncio.run(dashboard.snapshot())

    assert snapshot.stats.total_appointments == 3
    assert snapshot.stats.today_appointments == 2
    assert snapshot.stats.pending_appointments == 2
    assert snapshot.stats.total_services == 4
    assert snapshot.stats.total_customers == 0
    assert len(snapshot.recent_appointments) == 3


def test_dashboard_degrades_to_zero_when_counts_fail() -> None:
    dashboard = DashboardService(UnreachableGateway(), cache=QueryCache())

    snapshot = asyncio.run(dashboard.snapshot())

    assert snapshot.stats.total_appointments == 0
    assert snapshot.stats.total_services == 0
    assert snapshot.recent_appointments == []


class RecoveringGateway:
    """Fails every call until ``healthy`` is set, then reports fixed counts."""

    use_mock_data = True

    def __init__(self) -> None:
        self.healthy = False

    async def count(self, table, **kwargs):
        if not self.healthy:
            return GatewayResult.failure("Unable to reach the booking backend", kind=GatewayErrorKind.transport)
        return GatewayResult.success(7)

    async def select(self, table, **kwargs):
        if not self.healthy:
            return GatewayResult.failure("Unable to reach the booking backend", kind=GatewayErrorKind.transport)
        return GatewayResult.success(
            [
                {
                    "id": "a1",
                    "customer_name": "John Doe",
                    "service_name": "Hair Cut",
                    "appointment_date": "2025-01-15",
                    "appointment_time": "14:30:00",
                }
            ]
        )


def test_dashboard_recovers_after_an_outage() -> None:
    gateway = RecoveringGateway()
    cache = QueryCache()
    dashboard = DashboardService(gateway, cache=cache, today=lambda: date(2025, 1, 15))

    degraded = asyncio.run(dashboard.snapshot())
    assert degraded.stats.total_appointments == 0
    assert degraded.recent_appointments == []
    assert ("dashboard", "stats", "2025-01-15") not in cache
    assert ("dashboard", "recent") not in cache

    gateway.healthy = True
    recovered = asyncio.run(dashboard.snapshot())

    assert recovered.stats.total_appointments == 7
    assert recovered.stats.pending_appointments == 7
    assert [appt.customer_name for appt in recovered.recent_appointments] == ["John Doe"]
    assert ("dashboard", "stats", "2025-01-15") in cache
