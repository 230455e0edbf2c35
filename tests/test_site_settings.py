import asyncio

import pytest
from pydantic import ValidationError

from app.clients.gateway import GatewayClient, GatewayErrorKind, GatewayResult
from app.schemas.site_settings import SettingsSection, SiteSettings
from app.services.mock_store import get_mock_store, reset_mock_store
from app.services.query_cache import QueryCache
from app.services.site_settings import (
    CACHE_KEY,
    SiteSettingsService,
    settings_from_rows,
    update_field,
    update_section,
)


@pytest.fixture(autouse=True)
def _reset_store() -> None:
    reset_mock_store()
    yield
    reset_mock_store()


class FlakyUpsertGateway:
    """Accepts the first ``succeed`` upserts, then rejects every write."""

    use_mock_data = True

    def __init__(self, succeed: int) -> None:
        self.succeed = succeed
        self.keys = []

    async def upsert(self, table, record, *, on_conflict):
        self.keys.append(record["key"])
        if len(self.keys) > self.succeed:
            return GatewayResult.failure("permission denied", kind=GatewayErrorKind.response, status_code=403)
        return GatewayResult.success(None)


def test_empty_store_yields_defaults() -> None:
    settings = asyncio.run(SiteSettingsService(GatewayClient(None), cache=QueryCache()).load())

    assert settings == SiteSettings()
    assert settings.general.shop_name == "Old Thai Barber"
    assert settings.hours.sunday == "Closed"


def test_partial_rows_are_completed_with_defaults() -> None:
    settings = settings_from_rows([{"key": "general", "value": {"shopName": "X"}}])

    assert settings.general.shop_name == "X"
    assert settings.general.tagline == "Classic Cuts. Modern Style."
    assert settings.contact == SiteSettings().contact
    assert settings.about.experience == "20+"


def test_malformed_section_falls_back_to_defaults() -> None:
    settings = settings_from_rows([{"key": "hours", "value": "9-5"}, {"key": "hero", "value": {"heading": 3}}])

    assert settings.hours == SiteSettings().hours
    assert settings.hero == SiteSettings().hero


def test_update_field_returns_a_new_structure() -> None:
    original = SiteSettings()

    changed = update_field(original, SettingsSection.contact, "phone", "+66 999")

    assert changed.contact.phone == "+66 999"
    assert original.contact.phone == "+66 123 456 789"
    with pytest.raises(KeyError):
        update_field(original, SettingsSection.contact, "fax", "nope")


def test_links_must_be_http_urls() -> None:
    original = SiteSettings()

    for bad in ("javascript:alert(1)", "data:text/html,hi", "ftp://files.example.com", "facebook.com"):
        with pytest.raises(ValidationError):
            update_field(original, SettingsSection.social, "facebook", bad)

    linked = update_field(original, SettingsSection.about, "image_url", " https://cdn.example.com/shop.jpg ")
    assert linked.about.image_url == "https://cdn.example.com/shop.jpg"
    assert update_field(linked, SettingsSection.about, "image_url", "").about.image_url == ""


def test_stored_script_link_falls_back_to_defaults() -> None:
    settings = settings_from_rows(
        [{"key": "social", "value": {"facebook": "javascript:alert(1)", "instagram": "https://instagram.com/otb"}}]
    )

    assert settings.social == SiteSettings().social


def test_save_then_load_round_trips_every_section() -> None:
    cache = QueryCache()
    service = SiteSettingsService(GatewayClient(None), cache=cache)
    settings = update_section(
        asyncio.run(service.load()), SettingsSection.hero, {"heading": "Sharp", "background_url": "https://x/bg.jpg"}
    )

    outcome = asyncio.run(service.save(settings))

    assert outcome.ok is True
    assert outcome.notification.title == "Settings saved successfully"
    assert CACHE_KEY not in cache
    rows = get_mock_store().table("site_settings").rows()
    assert sorted(row["key"] for row in rows) == sorted(section.value for section in SettingsSection)
    hero_row = next(row for row in rows if row["key"] == "hero")
    assert hero_row["value"]["backgroundUrl"] == "https://x/bg.jpg"

    reloaded = asyncio.run(service.load())
    assert reloaded == settings


def test_save_stops_at_first_failure_without_rollback() -> None:
    gateway = FlakyUpsertGateway(succeed=2)
    cache = QueryCache()

    outcome = asyncio.run(SiteSettingsService(gateway, cache=cache).save(SiteSettings()))

    assert outcome.ok is False
    assert outcome.notification.title == "Failed to save settings"
    order = [section.value for section in SettingsSection]
    assert gateway.keys == order[:3]


def test_saving_unchanged_settings_still_writes_everything() -> None:
    gateway = FlakyUpsertGateway(succeed=len(SettingsSection))

    outcome = asyncio.run(SiteSettingsService(gateway, cache=QueryCache()).save(SiteSettings()))

    assert outcome.ok is True
    assert len(gateway.keys) == len(SettingsSection)
