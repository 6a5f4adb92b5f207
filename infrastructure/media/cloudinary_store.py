"""Cloudinary implementation of ImageStore.

The Cloudinary SDK is synchronous, so uploads and deletions run in a worker
thread. Images are normalised by Cloudinary itself (``quality`` and
``fetch_format`` set to auto) and always served over HTTPS.
"""

import asyncio
import io

import cloudinary
import cloudinary.uploader

from config import CloudinarySettings
from infrastructure.media.protocol import ImageUploadError, StoredImage
from shared.logging import get_logger

log = get_logger(__name__)


class CloudinaryImageStore:
    def __init__(self, settings: CloudinarySettings) -> None:
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )
        self._folder = settings.cloudinary_folder

    async def upload(self, data: bytes) -> StoredImage:
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(data),
                folder=self._folder,
                resource_type="image",
                quality="auto",
                fetch_format="auto",
            )
        except Exception as e:
            log.error(
                "image_upload_error",
                provider="cloudinary",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ImageUploadError(str(e)) from e

        if not result.get("secure_url") or not result.get("public_id"):
            log.error("image_upload_failed", provider="cloudinary", response=str(result)[:200])
            raise ImageUploadError("upload response carried no URL")

        log.info(
            "image_uploaded",
            provider="cloudinary",
            public_id=result["public_id"],
            size=result.get("bytes"),
        )
        return StoredImage(
            url=result["secure_url"],
            public_id=result["public_id"],
            size=result.get("bytes"),
        )

    async def delete(self, public_id: str) -> bool:
        try:
            result = await asyncio.to_thread(cloudinary.uploader.destroy, public_id)
        except Exception as e:
            log.warning(
                "image_delete_error",
                provider="cloudinary",
                public_id=public_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        if result.get("result") != "ok":
            log.warning(
                "image_delete_failed",
                provider="cloudinary",
                public_id=public_id,
                result=result.get("result"),
            )
            return False
        return True
