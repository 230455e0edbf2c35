from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Service(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float = Field(ge=0)
    duration_minutes: int = Field(gt=0)
    image_url: Optional[str] = None
    is_active: bool = True
    display_order: int = 0


class ServiceForm(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: float = Field(ge=0)
    duration_minutes: int = Field(default=30, gt=0)
    image_url: Optional[str] = None
    is_active: bool = True

    @field_validator("description", "image_url", mode="before")
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value
