from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from pydantic import ValidationError

from app.clients.gateway import GatewayClient
from app.schemas.notification import Notification
from app.schemas.site_settings import SECTION_MODELS, SettingsSection, SiteSettings
from app.services.mutations import MutationOutcome
from app.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

TABLE = "site_settings"
CACHE_KEY = ("site-settings",)


def merge_with_defaults(section: SettingsSection, partial: Optional[Mapping[str, Any]]):
    """Return a complete section: stored fields win, missing fields take the default."""

    model = SECTION_MODELS[section]
    if not isinstance(partial, Mapping):
        return model()
    try:
        return model.model_validate(dict(partial))
    except ValidationError as exc:
        logger.warning("Stored %s settings are malformed, using defaults: %s", section.value, exc)
        return model()


def settings_from_rows(rows: Iterable[Mapping[str, Any]]) -> SiteSettings:
    stored: Dict[str, Any] = {}
    for row in rows:
        stored[str(row.get("key"))] = row.get("value")
    return SiteSettings(
        **{section.value: merge_with_defaults(section, stored.get(section.value)) for section in SettingsSection}
    )


def update_field(settings: SiteSettings, section: SettingsSection, field: str, value: str) -> SiteSettings:
    """Return new settings with one field of one section replaced.

    Raises ``ValidationError`` when the value is not allowed for the field.
    """

    current = settings.section(section)
    if field not in type(current).model_fields:
        raise KeyError(f"{section.value} has no field {field!r}")
    replaced = type(current).model_validate({**current.model_dump(), field: value})
    return settings.model_copy(update={section.value: replaced})


def update_section(
    settings: SiteSettings, section: SettingsSection, values: Mapping[str, str]
) -> SiteSettings:
    for field, value in values.items():
        settings = update_field(settings, section, field, value)
    return settings


class SiteSettingsService:
    def __init__(self, gateway: GatewayClient, *, cache: QueryCache) -> None:
        self._gateway = gateway
        self._cache = cache

    async def _fetch(self) -> SiteSettings:
        result = await self._gateway.select(TABLE)
        return settings_from_rows(result.unwrap())

    async def load(self) -> SiteSettings:
        return await self._cache.get_or_fetch(CACHE_KEY, self._fetch)

    async def save(self, settings: SiteSettings) -> MutationOutcome:
        """Upsert every section, in order, whether or not it changed.

        The first failing write stops the loop; sections already written stay
        written.
        """

        for section in SettingsSection:
            value = settings.section(section).model_dump(by_alias=True)
            result = await self._gateway.upsert(
                TABLE, {"key": section.value, "value": value}, on_conflict="key"
            )
            if not result.ok:
                logger.warning(
                    "Saving settings stopped at %s: %s", section.value, result.message_or("unknown error")
                )
                return MutationOutcome(ok=False, notification=Notification.failure("Failed to save settings"))

        self._cache.invalidate(CACHE_KEY)
        return MutationOutcome(ok=True, notification=Notification.success("Settings saved successfully"))
