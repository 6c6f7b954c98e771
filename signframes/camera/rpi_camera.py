"""
Raspberry Pi camera backend.

This backend uses the libcamera tools available on Raspberry Pi OS to capture
single stills. It invokes ``libcamera-still`` via subprocess and reads the
JPEG from stdout, so nothing touches the disk.

Note: To use this backend, ensure that libcamera is installed and the camera
is enabled on your Raspberry Pi. Spawning a process per still is slow
(a few hundred milliseconds on a Pi 4); at the default 100 ms sampling
interval the scheduler will end up with fewer frames than requested.

If libcamera is not available (e.g., when running on macOS), this module will
raise ``CaptureDeviceError`` when ``capture_still`` is called.
"""

from __future__ import annotations

import io
import logging
import subprocess
from typing import List

from PIL import Image

from ..errors import CaptureDeviceError
from .base import CameraBackend, DEFAULT_HEIGHT, DEFAULT_QUALITY, DEFAULT_WIDTH, encode_still

logger = logging.getLogger(__name__)


class RpiCamera(CameraBackend):
    """Camera backend using libcamera tools on Raspberry Pi."""

    def __init__(
        self,
        image_width: int = DEFAULT_WIDTH,
        image_height: int = DEFAULT_HEIGHT,
        quality: int = DEFAULT_QUALITY,
        command: str = 'libcamera-still',
    ) -> None:
        self.image_width = image_width
        self.image_height = image_height
        self.quality = quality
        self.command = command

    def _build_command(self) -> List[str]:
        return [
            self.command,
            '-n',                        # no preview
            '-t', '1',                   # shortest possible exposure delay
            '--immediate',
            '-e', 'jpg',
            '-o', '-',                   # write to stdout
            '--width', str(self.image_width),
            '--height', str(self.image_height),
            '--quality', str(self.quality),
        ]

    def capture_still(self) -> str:
        """Capture one still using libcamera-still.

        Returns:
            JPEG data URL at the configured resolution.

        Raises:
            CaptureDeviceError: if libcamera is missing or capturing fails.
        """
        cmd = self._build_command()
        try:
            result = subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except FileNotFoundError as exc:
            raise CaptureDeviceError(f'{self.command} is not available on this system') from exc
        except subprocess.CalledProcessError as exc:
            raise CaptureDeviceError(f'{self.command} failed: {exc.stderr.decode().strip()}') from exc

        if not result.stdout:
            raise CaptureDeviceError(f'{self.command} produced no image data')
        logger.debug('%s returned %d bytes', self.command, len(result.stdout))
        try:
            img = Image.open(io.BytesIO(result.stdout))
            img.load()
        except OSError as exc:
            raise CaptureDeviceError(f'{self.command} returned an unreadable image: {exc}') from exc
        # libcamera may pick a nearby sensor mode; normalise the geometry
        return encode_still(img, self.image_width, self.image_height, self.quality)
