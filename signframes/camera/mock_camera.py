"""
Mock camera backend for development and testing on machines without a physical camera.

This implementation creates synthetic images using the Pillow library. Each
still is filled with a solid colour and annotated with a running shot
counter, then JPEG encoded in memory.

Usage:

```python
from signframes.camera.mock_camera import MockCamera
cam = MockCamera(image_width=640, image_height=480)
data_url = cam.capture_still()
```
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from .base import CameraBackend, DEFAULT_HEIGHT, DEFAULT_QUALITY, DEFAULT_WIDTH, encode_still

logger = logging.getLogger(__name__)


class MockCamera(CameraBackend):
    """Mock camera backend that generates synthetic images."""

    def __init__(
        self,
        image_width: int = DEFAULT_WIDTH,
        image_height: int = DEFAULT_HEIGHT,
        quality: int = DEFAULT_QUALITY,
        seed: Optional[int] = None,
    ) -> None:
        self.image_width = image_width
        self.image_height = image_height
        self.quality = quality
        self.shots = 0
        self._random = random.Random(seed)
        # Try to load a default font for annotation; fallback gracefully.
        try:
            self.font = ImageFont.load_default()
        except OSError:
            self.font = None

    def capture_still(self) -> str:
        """Generate one synthetic still as a JPEG data URL."""
        self.shots += 1
        r, g, b = [self._random.randint(0, 255) for _ in range(3)]
        img = Image.new('RGB', (self.image_width, self.image_height), color=(r, g, b))

        if self.font:
            draw = ImageDraw.Draw(img)
            draw.text((10, 10), f'Shot {self.shots}', fill=(255 - r, 255 - g, 255 - b), font=self.font)

        logger.debug('Mock still %d generated', self.shots)
        return encode_still(img, self.image_width, self.image_height, self.quality)
