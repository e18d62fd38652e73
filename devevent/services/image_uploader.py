"""
Image upload collaborator.

The event layer only needs "bytes in, stable HTTPS URL out"; it never
inspects image content.
"""
import io
from typing import Optional, Protocol

import cloudinary
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from devevent.core.config import settings
from devevent.core.errors import UploadError
from devevent.core.logging import logger


class ImageUploader(Protocol):
    async def upload(self, data: bytes) -> str:
        ...


class CloudinaryUploader:
    """Uploads event banners to Cloudinary and returns their ``secure_url``."""

    def __init__(self, folder: str = settings.UPLOAD_FOLDER):
        self.folder = folder
        if settings.CLOUDINARY_CLOUD_NAME:
            cloudinary.config(
                cloud_name=settings.CLOUDINARY_CLOUD_NAME,
                api_key=settings.CLOUDINARY_API_KEY,
                api_secret=settings.CLOUDINARY_API_SECRET,
                secure=True,
            )

    def _upload_sync(self, data: bytes) -> dict:
        return cloudinary.uploader.upload(io.BytesIO(data), resource_type="image", folder=self.folder)

    async def upload(self, data: bytes) -> str:
        """
        Upload raw image bytes.

        Raises:
            UploadError: Cloudinary rejected the upload or returned no URL
        """
        try:
            result = await run_in_threadpool(self._upload_sync, data)
        except Exception as e:
            logger.error(f"Image upload failed: {e}")
            raise UploadError(e) from e

        url = (result or {}).get("secure_url")
        if not url:
            raise UploadError(RuntimeError("upload response has no secure_url"))
        return url


_uploader: Optional[ImageUploader] = None


def get_image_uploader() -> ImageUploader:
    global _uploader
    if _uploader is None:
        _uploader = CloudinaryUploader()
    return _uploader
