"""Marketing page sections and the booking form."""
from __future__ import annotations

from typing import Iterable, List, Mapping, Sequence, Tuple

from app.schemas.catalog import Service
from app.schemas.gallery import GalleryImage
from app.schemas.notification import Notification
from app.schemas.site_settings import SiteSettings
from app.services.booking import SERVICE_LABELS, SERVICE_PRICES
from app.views.html import esc, page, select, text_input

STATIC_SERVICES: Tuple[Tuple[str, str, str], ...] = (
    ("Hair Cut", "Precision haircuts tailored to your style.", "$35"),
    ("Beard Styling", "Hot towel treatment, precise shaping and conditioning.", "$25"),
    ("Hair Wash", "Relaxing hair wash with premium products and scalp massage.", "$15"),
    ("Premium Grooming", "Haircut, beard styling, hot towel and facial grooming.", "$75"),
)

STATIC_GALLERY: Tuple[Tuple[str, str], ...] = (
    ("Classic Fade", "Haircut"),
    ("Beard Sculpting", "Grooming"),
    ("Relaxation", "Experience"),
    ("Premium Care", "Treatment"),
)

# Clears a field's inline error as soon as it is edited and blocks double submits.
BOOKING_SCRIPT = """
document.querySelectorAll('#booking-form [name]').forEach(function (input) {
  input.addEventListener('input', function () {
    var error = document.querySelector('[data-error-for="' + input.name + '"]');
    if (error) { error.remove(); }
  });
});
document.getElementById('booking-form').addEventListener('submit', function () {
  var button = document.getElementById('booking-submit');
  button.disabled = true;
  button.textContent = 'Booking...';
});
"""


def hero_section(settings: SiteSettings) -> str:
    hero = settings.hero
    background = f' style="background-image:url({esc(hero.background_url)})"' if hero.background_url else ""
    return (
        f'<section id="hero"{background}><h1>{esc(settings.general.shop_name)}</h1>'
        f"<h2>{esc(hero.heading)}</h2><p>{esc(hero.subheading)}</p>"
        '<a href="#contact">Book Now</a></section>'
    )


def services_section(services: Sequence[Service]) -> str:
    if services:
        cards = [
            (service.name, service.description or "", f"${service.price:,.0f}") for service in services
        ]
    else:
        cards = list(STATIC_SERVICES)
    items = "".join(
        f'<div class="card"><h3>{esc(name)}</h3><p>{esc(description)}</p><strong>{esc(price)}</strong></div>'
        for name, description, price in cards
    )
    return f'<section id="services"><h2>Our Services</h2><div class="cards">{items}</div></section>'


def gallery_section(images: Sequence[GalleryImage]) -> str:
    if images:
        items = "".join(
            f'<figure class="card"><img src="{esc(image.image_url)}" alt="{esc(image.title or "")}">'
            f"<figcaption>{esc(image.category or '')} {esc(image.title or '')}</figcaption></figure>"
            for image in images
        )
    else:
        items = "".join(
            f'<figure class="card"><figcaption>{esc(category)} {esc(title)}</figcaption></figure>'
            for title, category in STATIC_GALLERY
        )
    return f'<section id="gallery"><h2>Gallery</h2><div class="cards">{items}</div></section>'


def about_section(settings: SiteSettings) -> str:
    about = settings.about
    image = f'<img src="{esc(about.image_url)}" alt="">' if about.image_url else ""
    return (
        f'<section id="about"><h2>{esc(about.title)}</h2>{image}<p>{esc(about.description)}</p>'
        f"<ul><li>{esc(about.experience)} Years Experience</li>"
        f"<li>{esc(about.customers)} Happy Customers</li>"
        f"<li>{esc(about.awards)} Awards</li></ul></section>"
    )


def booking_form(values: Mapping[str, str], errors: Mapping[str, str]) -> str:
    service_options: List[Tuple[str, str]] = [("", "Select a service")] + [
        (key, f"{label} - {SERVICE_PRICES[key]}") for key, label in SERVICE_LABELS.items()
    ]
    fields = "".join(
        [
            text_input("firstName", "First Name", values.get("firstName", ""), error=errors.get("firstName"), placeholder="John"),
            text_input("lastName", "Last Name", values.get("lastName", ""), error=errors.get("lastName"), placeholder="Doe"),
            text_input("email", "Email", values.get("email", ""), error=errors.get("email"), input_type="email", placeholder="john@example.com"),
            text_input("phone", "Phone Number", values.get("phone", ""), input_type="tel", placeholder="+66 81 234 5678"),
            select("service", "Service", service_options, values.get("service", ""), error=errors.get("service")),
            text_input("datetime", "Preferred Date & Time", values.get("datetime", ""), error=errors.get("datetime"), input_type="datetime-local"),
        ]
    )
    return (
        '<form id="booking-form" method="post" action="/book" novalidate>'
        "<h3>Book Your Appointment</h3>"
        f'{fields}<button id="booking-submit" type="submit">Book Now</button></form>'
    )


def contact_section(settings: SiteSettings, values: Mapping[str, str], errors: Mapping[str, str]) -> str:
    contact, hours = settings.contact, settings.hours
    info = (
        f"<div><h3>Location</h3><p>{esc(contact.address)}</p></div>"
        f"<div><h3>Phone</h3><p>{esc(contact.phone)}</p></div>"
        f"<div><h3>Hours</h3><p>Mon - Fri: {esc(hours.weekdays)}</p>"
        f"<p>Saturday: {esc(hours.saturday)}</p><p>Sunday: {esc(hours.sunday)}</p></div>"
        f"<div><h3>Email</h3><p>{esc(contact.email)}</p></div>"
    )
    return (
        '<section id="contact"><h2>Ready For Your Next Look?</h2>'
        f"{info}{booking_form(values, errors)}</section>"
    )


def footer(settings: SiteSettings) -> str:
    social = settings.social
    links = "".join(
        f'<a href="{esc(url)}">{name}</a> '
        for name, url in (("Facebook", social.facebook), ("Instagram", social.instagram), ("Twitter", social.twitter))
        if url
    )
    return f"<footer><p>{esc(settings.general.tagline)}</p>{links}</footer>"


def marketing_page(
    settings: SiteSettings,
    services: Sequence[Service],
    images: Sequence[GalleryImage],
    *,
    values: Mapping[str, str],
    errors: Mapping[str, str],
    notifications: Iterable[Notification] = (),
) -> str:
    body = "".join(
        [
            hero_section(settings),
            services_section(services),
            gallery_section(images),
            about_section(settings),
            contact_section(settings, values, errors),
            footer(settings),
        ]
    )
    return page(settings.general.shop_name, body, notifications=notifications, script=BOOKING_SCRIPT)


def login_page(email: str = "", *, notifications: Iterable[Notification] = ()) -> str:
    body = (
        '<main><h1>Admin Login</h1><form method="post" action="/auth">'
        f'{text_input("email", "Email", email, input_type="email", required=True)}'
        f'{text_input("password", "Password", "", input_type="password", required=True)}'
        '<button type="submit">Sign In</button></form></main>'
    )
    return page("Admin Login", body, notifications=notifications)
