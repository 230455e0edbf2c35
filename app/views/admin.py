"""Admin screen bodies and the response wrapper shared by the admin routes."""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import HTMLResponse

from app.clients.identity import Identity
from app.schemas.appointment import Appointment, AppointmentStatus
from app.schemas.catalog import Service
from app.schemas.customer import Customer
from app.schemas.dashboard import DashboardSnapshot
from app.schemas.gallery import GALLERY_CATEGORIES, GalleryImage
from app.schemas.notification import Notification
from app.schemas.site_settings import SettingsSection, SiteSettings
from app.services.appointments import ALL_STATUSES, next_statuses
from app.views.flash import pop_notifications
from app.views.html import admin_page, build_table, checkbox, esc, post_button, select, text_input, textarea

STATUS_OPTIONS = [(ALL_STATUSES, "All Status")] + [
    (status.value, status.value.title()) for status in AppointmentStatus
]

TRANSITION_LABELS = {
    AppointmentStatus.confirmed: "Confirm",
    AppointmentStatus.cancelled: "Cancel",
    AppointmentStatus.completed: "Mark Complete",
}

SECTION_TITLES = {
    SettingsSection.general: "General",
    SettingsSection.hero: "Hero Section",
    SettingsSection.about: "About Section",
    SettingsSection.contact: "Contact",
    SettingsSection.hours: "Business Hours",
    SettingsSection.social: "Social Media",
}

MULTILINE_FIELDS = {"description", "address"}


def _status_badge(status: AppointmentStatus) -> str:
    return f'<span class="status status-{esc(status.value)}">{esc(status.value)}</span>'


def dashboard_body(snapshot: DashboardSnapshot) -> str:
    stats = snapshot.stats
    cards = [
        ("Today's Appointments", stats.today_appointments),
        ("Pending Approvals", stats.pending_appointments),
        ("Total Customers", stats.total_customers),
        ("Total Services", stats.total_services),
        ("Gallery Images", stats.gallery_images),
        ("Total Appointments", stats.total_appointments),
    ]
    stat_html = "".join(
        f'<div class="stat"><div>{esc(title)}</div><strong>{value}</strong></div>' for title, value in cards
    )
    if snapshot.recent_appointments:
        recent = "<ul>" + "".join(
            f"<li>{esc(appt.customer_name)}: {esc(appt.service_name)} &bull; "
            f"{esc(appt.appointment_date)} at {esc(appt.appointment_time)} {_status_badge(appt.status)}</li>"
            for appt in snapshot.recent_appointments
        ) + "</ul>"
    else:
        recent = "<p>No appointments yet</p>"
    return f'<section class="stats">{stat_html}</section><section><h2>Recent Appointments</h2>{recent}</section>'


def appointment_actions(appointment: Appointment, return_to: str) -> str:
    actions = [f'<a href="/admin/appointments/{esc(appointment.id)}">View</a>']
    for status in next_statuses(appointment.status):
        actions.append(
            post_button(
                f"/admin/appointments/{appointment.id}/status",
                TRANSITION_LABELS[status],
                fields={"status": status.value, "return_to": return_to},
            )
        )
    return " ".join(actions)


def appointments_body(
    appointments: Sequence[Appointment],
    *,
    status: str,
    search: str,
    error: Optional[str] = None,
) -> str:
    filters = (
        '<form method="get" action="/admin/appointments">'
        f'{text_input("q", "Search appointments", search, placeholder="Search appointments...")}'
        f'{select("status", "Filter by status", STATUS_OPTIONS, status)}'
        '<button type="submit">Apply</button></form>'
    )
    if error is not None:
        return filters + error
    return_to = "/admin/appointments?" + urlencode({"status": status, "q": search})
    rows = [
        [
            esc(appt.customer_name)
            + (f"<br><small>{esc(appt.customer_phone)}</small>" if appt.customer_phone else ""),
            esc(appt.service_name),
            esc(appt.appointment_date),
            esc(appt.appointment_time),
            _status_badge(appt.status),
            appointment_actions(appt, return_to),
        ]
        for appt in appointments
    ]
    table = build_table(
        ["Customer", "Service", "Date", "Time", "Status", "Actions"], rows, empty="No appointments found"
    )
    return filters + table


def appointment_detail_body(appointment: Appointment) -> str:
    details = [
        ("Customer", appointment.customer_name),
        ("Email", appointment.customer_email or "N/A"),
        ("Phone", appointment.customer_phone or "N/A"),
        ("Service", appointment.service_name),
        ("Date", appointment.appointment_date),
        ("Time", appointment.appointment_time),
        ("Status", appointment.status.value),
    ]
    if appointment.notes:
        details.append(("Notes", appointment.notes))
    items = "".join(f"<dt>{esc(label)}</dt><dd>{esc(value)}</dd>" for label, value in details)
    return (
        f"<dl>{items}</dl>{appointment_actions(appointment, '/admin/appointments')}"
        '<p><a href="/admin/appointments">Back to appointments</a></p>'
    )


def service_form(service: Optional[Service] = None) -> str:
    action = f"/admin/services/{service.id}" if service else "/admin/services"
    title = "Edit Service" if service else "Add New Service"
    return (
        f'<section><h2>{title}</h2><form method="post" action="{esc(action)}">'
        f'{text_input("name", "Service Name", service.name if service else "", required=True)}'
        f'{textarea("description", "Description", (service.description or "") if service else "")}'
        f'{text_input("price", "Price ($)", service.price if service else "", input_type="number", required=True, extra=" min=0 step=0.01")}'
        f'{text_input("duration_minutes", "Duration (min)", service.duration_minutes if service else 30, input_type="number", required=True, extra=" min=1")}'
        f'{text_input("image_url", "Image URL", (service.image_url or "") if service else "", placeholder="https://...")}'
        f'{checkbox("is_active", "Active", service.is_active if service else True)}'
        f'<button type="submit">{"Update" if service else "Create"}</button></form></section>'
    )


def services_body(services: Sequence[Service], *, error: Optional[str] = None) -> str:
    if error is not None:
        return error + service_form()
    if not services:
        listing = "<p>No services yet. Add your first service!</p>"
    else:
        cards: List[str] = []
        for service in services:
            state = "" if service.is_active else " (inactive)"
            cards.append(
                f'<div class="card"><h3>{esc(service.name)}{state}</h3>'
                f"<p>{esc(service.description or '')}</p>"
                f"<strong>${service.price:,.2f}</strong> <span>{service.duration_minutes} min</span><br>"
                f'<a href="/admin/services/{esc(service.id)}/edit">Edit</a> '
                f'{post_button(f"/admin/services/{service.id}/toggle-active", "Deactivate" if service.is_active else "Activate")} '
                f'{post_button(f"/admin/services/{service.id}/delete", "Delete", confirm="Are you sure you want to delete this service?")}'
                "</div>"
            )
        listing = '<div class="cards">' + "".join(cards) + "</div>"
    return listing + service_form()


def gallery_form(image_url: str = "", title: str = "", category: str = "haircut", featured: bool = False) -> str:
    preview = f'<img src="{esc(image_url)}" alt="Preview" width="200">' if image_url else "<p>No image uploaded</p>"
    return (
        '<section><h2>Add Gallery Image</h2>'
        '<form method="post" action="/admin/gallery/upload" enctype="multipart/form-data">'
        '<label for="file">Upload Image</label><input id="file" type="file" name="file" accept="image/*">'
        '<button type="submit">Upload</button></form>'
        f"{preview}"
        '<form method="post" action="/admin/gallery">'
        f'{text_input("image_url", "Or paste an image URL", image_url, placeholder="https://...")}'
        f'{text_input("title", "Title (optional)", title)}'
        f'{select("category", "Category", [(value, value) for value in GALLERY_CATEGORIES], category)}'
        f'{checkbox("is_featured", "Featured", featured)}'
        '<button type="submit">Add Image</button></form></section>'
    )


def gallery_body(images: Sequence[GalleryImage], *, form: str, error: Optional[str] = None) -> str:
    if error is not None:
        return error + form
    if not images:
        listing = "<p>No images yet. Add your first image!</p>"
    else:
        cards = "".join(
            f'<div class="card"><img src="{esc(image.image_url)}" alt="{esc(image.title or "Gallery image")}">'
            f"<p>{esc(image.title or '')} <small>{esc(image.category or '')}</small>"
            f"{' &#9733;' if image.is_featured else ''}</p>"
            f'{post_button(f"/admin/gallery/{image.id}/toggle-featured", "Unfeature" if image.is_featured else "Feature")} '
            f'{post_button(f"/admin/gallery/{image.id}/delete", "Delete", confirm="Are you sure you want to delete this image?")}'
            "</div>"
            for image in images
        )
        listing = f'<div class="cards">{cards}</div>'
    return listing + form


def customer_form(customer: Optional[Customer] = None) -> str:
    action = f"/admin/customers/{customer.id}" if customer else "/admin/customers"
    title = "Edit Customer" if customer else "Add New Customer"
    return (
        f'<section><h2>{title}</h2><form method="post" action="{esc(action)}">'
        f'{text_input("name", "Name", customer.name if customer else "", required=True)}'
        f'{text_input("email", "Email", (customer.email or "") if customer else "", input_type="email")}'
        f'{text_input("phone", "Phone", (customer.phone or "") if customer else "")}'
        f'{textarea("notes", "Notes", (customer.notes or "") if customer else "")}'
        f'<button type="submit">{"Update" if customer else "Add"}</button></form></section>'
    )


def customers_body(customers: Sequence[Customer], *, search: str, error: Optional[str] = None) -> str:
    search_form = (
        '<form method="get" action="/admin/customers">'
        f'{text_input("q", "Search customers", search, placeholder="Search customers...")}'
        '<button type="submit">Search</button></form>'
    )
    if error is not None:
        return search_form + error + customer_form()
    rows = [
        [
            esc(customer.name),
            esc(customer.email or "-"),
            esc(customer.phone or "-"),
            esc((customer.created_at or "")[:10]),
            f'<a href="/admin/customers/{esc(customer.id)}/edit">Edit</a> '
            + post_button(
                f"/admin/customers/{customer.id}/delete",
                "Delete",
                confirm="Are you sure you want to delete this customer?",
            ),
        ]
        for customer in customers
    ]
    table = build_table(["Name", "Email", "Phone", "Added", "Actions"], rows, empty="No customers found")
    return search_form + table + customer_form()


def _field_label(name: str) -> str:
    return name.replace("_", " ").title()


def settings_body(settings: Optional[SiteSettings], *, error: Optional[str] = None) -> str:
    if error is not None or settings is None:
        return error or ""
    tabs = " | ".join(
        f'<a href="#tab-{section.value}">{esc(SECTION_TITLES[section])}</a>' for section in SettingsSection
    )
    fieldsets: List[str] = []
    for section in SettingsSection:
        values = settings.section(section)
        inputs: List[str] = []
        for field in type(values).model_fields:
            name = f"{section.value}.{field}"
            value = getattr(values, field)
            if field in MULTILINE_FIELDS:
                inputs.append(textarea(name, _field_label(field), value))
            else:
                inputs.append(text_input(name, _field_label(field), value))
        fieldsets.append(
            f'<fieldset id="tab-{section.value}"><legend>{esc(SECTION_TITLES[section])}</legend>'
            + "".join(inputs)
            + "</fieldset>"
        )
    return (
        f"<nav>{tabs}</nav>"
        '<form method="post" action="/admin/settings">'
        + "".join(fieldsets)
        + '<button type="submit">Save Changes</button></form>'
    )


def admin_response(
    request: Request,
    identity: Identity,
    title: str,
    body: str,
    *,
    active: str,
    notifications: Iterable[Notification] = (),
    status_code: int = 200,
) -> HTMLResponse:
    content = admin_page(
        title,
        body,
        active=active,
        user_email=identity.email,
        notifications=pop_notifications(request) + list(notifications),
    )
    return HTMLResponse(content=content, status_code=status_code)
