"""
Presentation layer hooks.

The capture scheduler and archive builder report what they are doing through
a ``CaptureObserver``. The base class ignores every notification, so
observers only override what they display. ``LoggingObserver`` turns the
notifications into log lines and is what the command line uses.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .export.archive import Archive


class CaptureObserver:
    """No-op observer. Subclass and override what you need."""

    def on_countdown(self, seconds_remaining: int) -> None:
        pass

    def on_recording(self) -> None:
        pass

    def on_progress(self, percent: float) -> None:
        """Capture progress in ``[0, 100]``, non-decreasing within a session."""

    def on_completed(self, frame_count: int) -> None:
        pass

    def on_error(self, kind: str) -> None:
        pass

    def on_export_progress(self, current: int, total: int) -> None:
        pass

    def on_exported(self, archive: 'Archive') -> None:
        pass


class LoggingObserver(CaptureObserver):
    """Observer that writes status updates to a logger."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger('signframes')
        self._last_decile = -1

    def on_countdown(self, seconds_remaining: int) -> None:
        self.logger.info('Get ready... %d', seconds_remaining)

    def on_recording(self) -> None:
        self._last_decile = -1
        self.logger.info('Recording! Hold the position')

    def on_progress(self, percent: float) -> None:
        # Log every 10% rather than every frame
        decile = int(percent // 10)
        if decile != self._last_decile:
            self._last_decile = decile
            self.logger.info('Progress: %d%%', percent)

    def on_completed(self, frame_count: int) -> None:
        self.logger.info('Recording completed, %d frames captured', frame_count)

    def on_error(self, kind: str) -> None:
        self.logger.error('Recording failed: %s', kind)

    def on_export_progress(self, current: int, total: int) -> None:
        self.logger.info('Processing recording %d of %d...', current, total)

    def on_exported(self, archive: 'Archive') -> None:
        self.logger.info(
            'Archive ready: %s (%.2f MB, %d frames)',
            archive.filename, len(archive.data) / 1024 / 1024, archive.frame_count,
        )
