from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Customer(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None


class CustomerForm(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name", mode="before")
    def _strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", "phone", "notes", mode="before")
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value
