"""
Camera backend abstractions for SignFrames.

A camera backend is the device source the capture scheduler samples. Each
call to ``capture_still`` must return one still image, cropped and scaled to
the backend's fixed resolution and encoded as a data URL
(``data:image/jpeg;base64,...``).

Implementations may use synthetic data for development/testing or talk to
real hardware (libcamera on a Raspberry Pi, an IP camera snapshot URL).
"""

from __future__ import annotations

import io

from PIL import Image, ImageOps

from ..models import to_data_url

DEFAULT_WIDTH = 640
DEFAULT_HEIGHT = 480
DEFAULT_QUALITY = 80


class CameraBackend:
    """Abstract base class for camera backends."""

    image_width = DEFAULT_WIDTH
    image_height = DEFAULT_HEIGHT

    def capture_still(self) -> str:
        """Capture one still image.

        Returns:
            The image as a base64 data URL.

        Raises:
            CaptureDeviceError: if the device cannot produce an image.
            NotImplementedError: if not implemented by subclass.
        """
        raise NotImplementedError('capture_still must be implemented by subclasses')

    def close(self) -> None:
        """Release device resources. Safe to call more than once."""


def encode_still(img: Image.Image, width: int, height: int, quality: int) -> str:
    """Crop/scale an image to ``width`` x ``height`` and JPEG encode it.

    The image is centre-cropped to the target aspect ratio before scaling,
    so every still has the same geometry whatever the source produced.
    """
    if img.mode != 'RGB':
        img = img.convert('RGB')
    if img.size != (width, height):
        img = ImageOps.fit(img, (width, height))
    buf = io.BytesIO()
    img.save(buf, format='JPEG', quality=quality)
    return to_data_url(buf.getvalue(), 'jpeg')
