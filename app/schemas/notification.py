from enum import Enum
from typing import Optional

from pydantic import BaseModel


class NotificationVariant(str, Enum):
    default = "default"
    destructive = "destructive"


class Notification(BaseModel):
    """A transient user-facing message (rendered as a toast)."""

    title: str
    description: Optional[str] = None
    variant: NotificationVariant = NotificationVariant.default

    @classmethod
    def success(cls, title: str, description: Optional[str] = None) -> "Notification":
        return cls(title=title, description=description)

    @classmethod
    def failure(cls, title: str, description: Optional[str] = None) -> "Notification":
        return cls(title=title, description=description, variant=NotificationVariant.destructive)
