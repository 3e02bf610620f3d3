"""
Image Asset Store Client

Uploads product images to Cloudinary and deletes them again.
Both operations are best-effort: failures are logged and reported as
``None``/``False``, never raised, so a product mutation is not blocked by
the image host.
"""

import logging
import os
import re
from typing import Any, Optional

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from ..core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_VERSION_SEGMENT = re.compile(r"^v\d+/")


def public_id_from_url(url: str) -> Optional[str]:
    """
    Derive the asset public id from a delivery URL.

    ``https://res.cloudinary.com/demo/image/upload/v1751648589/shoes/abc.png``
    yields ``shoes/abc``.
    """
    marker = "/upload/"
    index = url.find(marker)
    if index == -1:
        return None
    path = _VERSION_SEGMENT.sub("", url[index + len(marker):])
    public_id, _ = os.path.splitext(path)
    return public_id or None


class AssetStore:
    """Wrapper around the Cloudinary uploader"""

    def __init__(self, settings: Optional[Settings] = None, uploader: Any = None):
        self._settings = settings
        self._uploader = uploader

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @property
    def uploader(self) -> Any:
        """Cloudinary uploader, configured from settings on first use"""
        if self._uploader is None:
            cloudinary.config(
                cloud_name=self.settings.cloudinary_cloud_name,
                api_key=self.settings.cloudinary_api_key,
                api_secret=self.settings.cloudinary_api_secret,
                secure=True,
            )
            self._uploader = cloudinary.uploader
        return self._uploader

    def upload(self, file_path: str, folder: Optional[str] = None) -> Optional[str]:
        """
        Upload a local file.

        Returns:
            The public URL, or None if the upload failed
        """
        if not self.settings.assets_configured:
            logger.warning("Asset host not configured - skipping upload")
            return None
        if not file_path or not os.path.exists(file_path):
            logger.error(f"File not found at path: {file_path}")
            return None

        folder = self.settings.asset_folder if folder is None else folder

        try:
            result = self.uploader.upload(file_path, folder=folder, resource_type="image")
        except (CloudinaryError, OSError) as e:
            logger.error(f"Asset upload failed for {file_path}: {e}")
            return None

        url = result.get("secure_url") or result.get("url")
        if not url:
            logger.error(f"Asset host returned no URL for {file_path}")
            return None

        logger.info(f"Asset uploaded: {url}")
        return url

    def delete(self, url: str) -> bool:
        """Delete an asset by its URL; returns True when the host confirms"""
        if not self.settings.assets_configured:
            logger.warning("Asset host not configured - skipping delete")
            return False

        public_id = public_id_from_url(url or "")
        if not public_id:
            logger.warning(f"Cannot derive asset id from URL: {url}")
            return False

        try:
            result = self.uploader.destroy(public_id, resource_type="image").get("result")
        except (CloudinaryError, OSError) as e:
            logger.error(f"Asset delete failed for {public_id}: {e}")
            return False

        if result != "ok":
            logger.warning(f"Asset host returned '{result}' deleting {public_id}")
            return False
        return True


# Singleton instance
asset_store = AssetStore()
