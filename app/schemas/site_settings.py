from enum import Enum
from typing import Annotated, Dict, Type

from pydantic import AfterValidator, AnyHttpUrl, BaseModel, ConfigDict, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel


class SettingsSection(str, Enum):
    general = "general"
    contact = "contact"
    hours = "hours"
    social = "social"
    hero = "hero"
    about = "about"


_HTTP_URL = TypeAdapter(AnyHttpUrl)


def _http_link(value: str) -> str:
    """Blank, or an absolute http(s) URL kept as the editor typed it."""

    value = value.strip()
    if not value:
        return value
    try:
        _HTTP_URL.validate_python(value)
    except ValidationError:
        raise ValueError("must be an http:// or https:// URL") from None
    return value


Link = Annotated[str, AfterValidator(_http_link)]


class _Section(BaseModel):
    # Stored rows use the camelCase keys written by the original editor.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class GeneralSettings(_Section):
    shop_name: str = "Old Thai Barber"
    tagline: str = "Classic Cuts. Modern Style."
    description: str = "Premium men's grooming experience"
    logo_url: Link = ""


class ContactSettings(_Section):
    phone: str = "+66 123 456 789"
    email: str = "info@oldthaibarber.com"
    address: str = "123 Barber Street, Bangkok, Thailand"


class HoursSettings(_Section):
    weekdays: str = "9:00 AM - 8:00 PM"
    saturday: str = "9:00 AM - 6:00 PM"
    sunday: str = "Closed"


class SocialSettings(_Section):
    facebook: Link = "https://facebook.com"
    instagram: Link = "https://instagram.com"
    twitter: Link = "https://twitter.com"


class HeroSettings(_Section):
    heading: str = "Classic Cuts. Modern Style."
    subheading: str = "Premium Men's Barber Experience"
    background_url: Link = ""


class AboutSettings(_Section):
    title: str = "Traditional Barbering with a Modern Touch"
    description: str = (
        "With over two decades of experience, we combine timeless techniques with "
        "contemporary style to give you the perfect look."
    )
    image_url: Link = ""
    experience: str = "20+"
    customers: str = "10K+"
    awards: str = "15+"


SECTION_MODELS: Dict[SettingsSection, Type[_Section]] = {
    SettingsSection.general: GeneralSettings,
    SettingsSection.contact: ContactSettings,
    SettingsSection.hours: HoursSettings,
    SettingsSection.social: SocialSettings,
    SettingsSection.hero: HeroSettings,
    SettingsSection.about: AboutSettings,
}


class SiteSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    general: GeneralSettings = GeneralSettings()
    contact: ContactSettings = ContactSettings()
    hours: HoursSettings = HoursSettings()
    social: SocialSettings = SocialSettings()
    hero: HeroSettings = HeroSettings()
    about: AboutSettings = AboutSettings()

    def section(self, section: SettingsSection) -> _Section:
        return getattr(self, section.value)
