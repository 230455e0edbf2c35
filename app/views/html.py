"""HTML building blocks shared by the public page and the admin screens."""
from __future__ import annotations

import html
import json
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from app.schemas.notification import Notification, NotificationVariant

ADMIN_NAV: Tuple[Tuple[str, str, str], ...] = (
    ("dashboard", "/admin", "Dashboard"),
    ("appointments", "/admin/appointments", "Appointments"),
    ("services", "/admin/services", "Services & Pricing"),
    ("gallery", "/admin/gallery", "Gallery"),
    ("customers", "/admin/customers", "Customers"),
    ("settings", "/admin/settings", "Site Settings"),
)

STYLES = """
body { font-family: Arial, sans-serif; margin: 0; background: #111; color: #eee; }
a { color: #d4af37; }
main { padding: 2rem; }
header.admin { display: flex; gap: 1rem; align-items: center; padding: 1rem 2rem; background: #1b1b1b; }
header.admin nav a { margin-right: 1rem; text-decoration: none; }
header.admin nav a.active { font-weight: bold; text-decoration: underline; }
section { margin-bottom: 2rem; }
table { border-collapse: collapse; width: 100%; }
th, td { border: 1px solid #333; padding: 0.5rem; text-align: left; }
th { background-color: #222; }
tbody tr:nth-child(even) { background-color: #181818; }
.toast { padding: 0.75rem 1rem; margin-bottom: 0.5rem; border-radius: 6px; background: #1f3b1f; }
.toast.destructive { background: #4a1b1b; }
.field-error { color: #ff6b6b; font-size: 0.85rem; }
.banner { padding: 1rem; background: #4a1b1b; border-radius: 6px; }
.stat { display: inline-block; min-width: 12rem; padding: 1rem; margin: 0 1rem 1rem 0; background: #1b1b1b; }
.status { padding: 0.1rem 0.5rem; border-radius: 999px; background: #333; }
.cards { display: flex; flex-wrap: wrap; gap: 1rem; }
.card { background: #1b1b1b; padding: 1rem; width: 16rem; }
.card img { width: 100%; height: 10rem; object-fit: cover; }
form.inline { display: inline; }
label { display: block; margin-top: 0.5rem; }
"""


def _stringify(value: Any) -> str:
    """Return a display string for table cells."""
    if value is None:
        return ""
    if isinstance(value, (str, int, float, bool)):
        return str(value)
    return json.dumps(value, default=str)


def esc(value: Any) -> str:
    return html.escape(_stringify(value))


def render_notifications(notifications: Iterable[Notification]) -> str:
    parts: List[str] = []
    for notification in notifications:
        css = "toast destructive" if notification.variant == NotificationVariant.destructive else "toast"
        description = f"<div>{esc(notification.description)}</div>" if notification.description else ""
        parts.append(f'<div class="{css}" role="status"><strong>{esc(notification.title)}</strong>{description}</div>')
    if not parts:
        return ""
    return '<div class="toasts">' + "".join(parts) + "</div>"


def build_table(headers: Sequence[str], rows: Iterable[Sequence[str]], *, empty: str = "No records found.") -> str:
    """Render rows of pre-escaped cell HTML as a table."""
    row_list = [list(row) for row in rows]
    if not row_list:
        return f"<p>{html.escape(empty)}</p>"
    header = "".join(f"<th>{html.escape(column)}</th>" for column in headers)
    body_rows = ["<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>" for row in row_list]
    return "<table><thead><tr>" + header + "</tr></thead><tbody>" + "".join(body_rows) + "</tbody></table>"


def error_banner(message: str, retry_url: str) -> str:
    return (
        f'<div class="banner" role="alert"><p>{esc(message)}</p>'
        f'<a href="{esc(retry_url)}">Retry</a></div>'
    )


def post_button(action: str, label: str, *, fields: Optional[dict] = None, confirm: Optional[str] = None) -> str:
    hidden = "".join(
        f'<input type="hidden" name="{esc(name)}" value="{esc(value)}">' for name, value in (fields or {}).items()
    )
    onsubmit = f' onsubmit="return confirm({esc(json.dumps(confirm))})"' if confirm else ""
    return (
        f'<form class="inline" method="post" action="{esc(action)}"{onsubmit}>'
        f'{hidden}<button type="submit">{esc(label)}</button></form>'
    )


def text_input(
    name: str,
    label: str,
    value: Any = "",
    *,
    error: Optional[str] = None,
    input_type: str = "text",
    placeholder: str = "",
    required: bool = False,
    extra: str = "",
) -> str:
    error_html = f'<div class="field-error" data-error-for="{esc(name)}">{esc(error)}</div>' if error else ""
    required_attr = " required" if required else ""
    return (
        f'<label for="{esc(name)}">{esc(label)}</label>'
        f'<input id="{esc(name)}" name="{esc(name)}" type="{esc(input_type)}" value="{esc(value)}"'
        f' placeholder="{esc(placeholder)}"{required_attr}{extra}>{error_html}'
    )


def textarea(name: str, label: str, value: Any = "", *, rows: int = 3) -> str:
    return (
        f'<label for="{esc(name)}">{esc(label)}</label>'
        f'<textarea id="{esc(name)}" name="{esc(name)}" rows="{rows}">{esc(value)}</textarea>'
    )


def select(
    name: str,
    label: str,
    options: Sequence[Tuple[str, str]],
    selected: str = "",
    *,
    error: Optional[str] = None,
) -> str:
    option_html = "".join(
        f'<option value="{esc(value)}"{" selected" if value == selected else ""}>{esc(text)}</option>'
        for value, text in options
    )
    error_html = f'<div class="field-error" data-error-for="{esc(name)}">{esc(error)}</div>' if error else ""
    return (
        f'<label for="{esc(name)}">{esc(label)}</label>'
        f'<select id="{esc(name)}" name="{esc(name)}">{option_html}</select>{error_html}'
    )


def checkbox(name: str, label: str, checked: bool) -> str:
    return (
        f'<label><input type="checkbox" name="{esc(name)}" value="true"{" checked" if checked else ""}> '
        f"{esc(label)}</label>"
    )


def page(title: str, body: str, *, notifications: Iterable[Notification] = (), script: str = "") -> str:
    script_html = f"<script>{script}</script>" if script else ""
    return f"""<!DOCTYPE html>
<html>
    <head>
        <meta charset="utf-8">
        <title>{esc(title)}</title>
        <style>{STYLES}</style>
    </head>
    <body>
        {render_notifications(notifications)}
        {body}
        {script_html}
    </body>
</html>
"""


def admin_page(
    title: str,
    body: str,
    *,
    active: str,
    user_email: str,
    notifications: Iterable[Notification] = (),
) -> str:
    active_attr = ' class="active"'
    links = "".join(
        f'<a href="{href}"{active_attr if key == active else ""}>{esc(label)}</a>'
        for key, href, label in ADMIN_NAV
    )
    header = (
        '<header class="admin"><strong>Old Thai Barber Admin</strong>'
        f"<nav>{links}</nav>"
        f"<span>{esc(user_email)}</span>"
        f'{post_button("/auth/sign-out", "Sign Out")}</header>'
    )
    return page(
        f"{title} | Admin",
        f"{header}<main><h1>{esc(title)}</h1>{render_notifications(notifications)}{body}</main>",
    )
