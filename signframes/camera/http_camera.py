"""
HTTP snapshot camera backend.

Most IP cameras and phone webcam apps expose a URL that returns the current
frame as a JPEG (e.g. ``http://192.168.1.20:8080/shot.jpg``). This backend
fetches that URL once per still with a persistent ``requests.Session`` and
re-encodes the result at the configured resolution and quality.
"""

from __future__ import annotations

import io
import logging

import requests
from PIL import Image

from ..errors import CaptureDeviceError
from .base import CameraBackend, DEFAULT_HEIGHT, DEFAULT_QUALITY, DEFAULT_WIDTH, encode_still


class HttpSnapshotCamera(CameraBackend):
    """Camera backend that polls a snapshot URL."""

    def __init__(
        self,
        snapshot_url: str,
        image_width: int = DEFAULT_WIDTH,
        image_height: int = DEFAULT_HEIGHT,
        quality: int = DEFAULT_QUALITY,
        timeout: float = 5,
    ) -> None:
        self.snapshot_url = snapshot_url
        self.image_width = image_width
        self.image_height = image_height
        self.quality = quality
        self.timeout = timeout
        self.session = requests.Session()
        self.logger = logging.getLogger(__name__)

    def capture_still(self) -> str:
        """Fetch the current frame.

        Returns:
            JPEG data URL at the configured resolution.

        Raises:
            CaptureDeviceError: on transport errors, non-2xx responses or a
                body that is not an image.
        """
        try:
            response = self.session.get(self.snapshot_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            self.logger.error('Snapshot request failed: %s', exc)
            raise CaptureDeviceError(f'Snapshot request to {self.snapshot_url} failed: {exc}') from exc

        try:
            img = Image.open(io.BytesIO(response.content))
            img.load()
        except OSError as exc:
            raise CaptureDeviceError(f'Snapshot from {self.snapshot_url} is not an image: {exc}') from exc
        return encode_still(img, self.image_width, self.image_height, self.quality)

    def close(self) -> None:
        self.session.close()
