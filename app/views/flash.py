"""Notifications carried across a redirect in the signed session cookie."""
from __future__ import annotations

from typing import List, Optional

from fastapi import Request

from app.schemas.notification import Notification

FLASH_KEY = "notifications"


def flash(request: Request, notification: Optional[Notification]) -> None:
    if notification is None:
        return
    pending = request.session.setdefault(FLASH_KEY, [])
    pending.append(notification.model_dump(mode="json"))
    request.session[FLASH_KEY] = pending


def pop_notifications(request: Request) -> List[Notification]:
    raw = request.session.pop(FLASH_KEY, None) or []
    return [Notification.model_validate(item) for item in raw]
