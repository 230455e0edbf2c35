from typing import Optional

from pydantic import BaseModel, Field, field_validator

GALLERY_CATEGORIES = ("haircut", "beard", "styling", "grooming", "before-after")


class GalleryImage(BaseModel):
    id: str
    title: Optional[str] = None
    image_url: str
    category: Optional[str] = None
    is_featured: bool = False
    display_order: int = 0


class GalleryImageForm(BaseModel):
    title: Optional[str] = None
    image_url: str = ""
    category: str = Field(default="haircut")
    is_featured: bool = False

    @field_validator("title", mode="before")
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("category")
    def _known_category(cls, value: str) -> str:
        if value not in GALLERY_CATEGORIES:
            raise ValueError(f"category must be one of {', '.join(GALLERY_CATEGORIES)}")
        return value
