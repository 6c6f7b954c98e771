from .base import CameraBackend
from .mock_camera import MockCamera

__all__ = ['CameraBackend', 'MockCamera']
