from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from app.clients.gateway import GatewayClient, Order
from app.schemas.gallery import GalleryImage, GalleryImageForm
from app.schemas.notification import Notification
from app.services.mutations import MutationOutcome, run_mutation
from app.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

TABLE = "gallery"


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def upload_path(filename: str, millis: int) -> str:
    extension = filename.rsplit(".", 1)[-1]
    return f"gallery/{millis}.{extension}"


class GalleryService:
    def __init__(
        self,
        gateway: GatewayClient,
        *,
        cache: QueryCache,
        bucket: str = "gallery",
        site_url: str = "",
        clock: Callable[[], int] = _epoch_millis,
    ) -> None:
        self._gateway = gateway
        self._cache = cache
        self._bucket = bucket
        self._site_url = site_url
        self._clock = clock

    async def _fetch(self) -> List[GalleryImage]:
        result = await self._gateway.select(TABLE, order=(Order("display_order"),))
        return [GalleryImage.model_validate(row) for row in result.unwrap()]

    async def list(self) -> List[GalleryImage]:
        return await self._cache.get_or_fetch((TABLE,), self._fetch)

    async def list_featured(self) -> List[GalleryImage]:
        return [image for image in await self.list() if image.is_featured]

    async def get(self, image_id: str) -> Optional[GalleryImage]:
        return next((image for image in await self.list() if image.id == image_id), None)

    async def upload(self, filename: str, content: bytes, content_type: str) -> MutationOutcome:
        """Store an image file and return its public URL in ``data``."""

        path = upload_path(filename, self._clock())
        result = await self._gateway.upload(self._bucket, path, content, content_type=content_type)
        if not result.ok:
            logger.warning("Gallery upload failed: %s", result.message_or("unknown error"))
            return MutationOutcome(ok=False, notification=Notification.failure("Failed to upload image"))
        url = self._gateway.public_url(self._bucket, path, site_url=self._site_url)
        return MutationOutcome(
            ok=True, notification=Notification.success("Image uploaded successfully"), data=url
        )

    async def create(self, form: GalleryImageForm) -> MutationOutcome:
        if not form.image_url:
            return MutationOutcome(ok=False, notification=Notification.failure("Please add an image"))

        # Display order is the count at creation time; deletions leave gaps.
        counted = await self._gateway.count(TABLE)
        if not counted.ok:
            return MutationOutcome(ok=False, notification=Notification.failure("Failed to add image"))
        return await run_mutation(
            self._gateway.insert(TABLE, {**form.model_dump(), "display_order": counted.data or 0}),
            cache=self._cache,
            invalidate=[(TABLE,), ("dashboard",)],
            success="Image added successfully",
            failure="Failed to add image",
        )

    async def toggle_featured(self, image: GalleryImage) -> MutationOutcome:
        return await run_mutation(
            self._gateway.update(TABLE, {"id": image.id}, {"is_featured": not image.is_featured}),
            cache=self._cache,
            invalidate=[(TABLE,)],
            success=None,
            failure="Failed to update image",
        )

    async def delete(self, image_id: str) -> MutationOutcome:
        return await run_mutation(
            self._gateway.delete(TABLE, {"id": image_id}),
            cache=self._cache,
            invalidate=[(TABLE,), ("dashboard",)],
            success="Image deleted successfully",
            failure="Failed to delete image",
        )
