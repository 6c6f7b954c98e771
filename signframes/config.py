
"""
Configuration management for SignFrames.

This module defines a dataclass ``Config`` that holds configuration for the
recorder. It can be loaded from a YAML file or constructed manually. The
configuration covers the camera backend, capture timing, label rules, export
settings and paths.

Example YAML configuration (config/signframes.yaml):

```yaml
camera_backend: "mock"          # "rpi" on a Raspberry Pi, "http" for an IP camera
snapshot_url: null              # required for the http backend
image_width: 640
image_height: 480
jpeg_quality: 80
recording_duration_ms: 5000     # sampling window per recording
target_frames: 50               # stills per recording
countdown_ms: 3000              # lead-in before sampling starts
compression_level: 6            # DEFLATE level of the exported ZIP
max_label_length: 50
label_pattern: "^[A-Za-z0-9_-]+$"
output_dir: "./exports"
log_file: "./signframes.log"
```

Using the ``Config.from_yaml`` method simplifies loading configuration:

```python
from signframes.config import Config
config = Config.from_yaml('config/signframes.yaml')
```
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any
import yaml

CAMERA_BACKENDS = ('mock', 'rpi', 'http')


@dataclass
class Config:
    """Configuration settings for the SignFrames recorder."""

    camera_backend: str = 'mock'
    snapshot_url: Optional[str] = None
    http_timeout: float = 5  # seconds
    image_width: int = 640
    image_height: int = 480
    jpeg_quality: int = 80
    recording_duration_ms: float = 5000
    target_frames: int = 50
    countdown_ms: float = 3000
    countdown_tick_ms: float = 1000
    compression_level: int = 6
    frame_extension: str = 'jpg'
    verify_images: bool = False
    label_pattern: str = r'^[A-Za-z0-9_-]+$'
    max_label_length: int = 50
    output_dir: str = './exports'
    log_file: str = './signframes.log'

    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def frame_interval_ms(self) -> float:
        return self.recording_duration_ms / self.target_frames

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Config':
        """Build a config from a mapping; unknown keys end up in ``extra``."""
        data = dict(data or {})
        known = {f.name for f in fields(cls) if f.name != 'extra'}
        kwargs = {k: v for k, v in data.items() if k in known}
        config = cls(**kwargs, extra={k: v for k, v in data.items() if k not in known})
        config.validate()
        return config

    @classmethod
    def from_yaml(cls, path: str) -> 'Config':
        """Load configuration from a YAML file.

        Raises:
            FileNotFoundError: if the YAML file cannot be found.
            yaml.YAMLError: if the YAML file is invalid.
            ValueError: if a setting is out of range.
        """
        with open(path, 'r') as f:
            data = yaml.safe_load(f)

        if data is not None and not isinstance(data, dict):
            raise ValueError(f'Configuration file {path} must contain a mapping')
        return cls.from_dict(data)

    def validate(self) -> None:
        """Check that settings are usable.

        Raises:
            ValueError: naming the first offending setting.
        """
        if self.camera_backend not in CAMERA_BACKENDS:
            raise ValueError(f'Unknown camera backend: {self.camera_backend}')
        if self.camera_backend == 'http' and not self.snapshot_url:
            raise ValueError('snapshot_url is required for the http camera backend')
        if self.recording_duration_ms <= 0:
            raise ValueError('recording_duration_ms must be positive')
        if self.target_frames <= 0:
            raise ValueError('target_frames must be positive')
        if self.countdown_ms < 0:
            raise ValueError('countdown_ms cannot be negative')
        if self.countdown_tick_ms <= 0:
            raise ValueError('countdown_tick_ms must be positive')
        if not 0 <= self.compression_level <= 9:
            raise ValueError('compression_level must be between 0 and 9')
        if not 1 <= self.jpeg_quality <= 95:
            raise ValueError('jpeg_quality must be between 1 and 95')
        if self.image_width <= 0 or self.image_height <= 0:
            raise ValueError('image_width and image_height must be positive')
        if self.max_label_length <= 0:
            raise ValueError('max_label_length must be positive')

    def ensure_paths(self) -> None:
        """Ensure that the export and log directories exist.

        Creates directories as needed. This method is idempotent.
        """
        if not os.path.exists(self.output_dir):
            os.makedirs(self.output_dir, exist_ok=True)

        # Create directory for log file
        log_dir = os.path.dirname(self.log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)
