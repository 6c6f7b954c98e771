"""
Timed capture of a fixed number of stills.

``CaptureScheduler`` runs one session at a time: a countdown lead-in, then a
sampling phase that asks the camera for a still every ``duration_ms /
target_frames`` milliseconds until either enough frames were captured or the
sampling window is over.

Every wait is computed from the session start on a monotonic clock, never
from the end of the previous capture, so the time spent inside the camera
does not push later samples back. When a capture overruns one or more
slots the scheduler simply moves on to the next future slot; it never fires
captures back to back to catch up, so a slow camera yields fewer frames
rather than bunched ones.

Usage:

```python
scheduler = CaptureScheduler(camera, duration_ms=5000, target_frames=50)
session = await scheduler.start_session('hola', recording_index=1)
```
"""

from __future__ import annotations

import asyncio
import enum
import logging
import math
import time
from typing import Awaitable, Callable, List, Optional

from ..camera.base import CameraBackend
from ..errors import (
    AlreadyRunningError,
    CaptureCancelledError,
    CaptureDeviceError,
    SignFramesError,
)
from ..events import CaptureObserver
from ..models import Frame, Session

logger = logging.getLogger(__name__)


class SchedulerState(str, enum.Enum):
    IDLE = 'idle'
    COUNTDOWN = 'countdown'
    SAMPLING = 'sampling'
    COMPLETED = 'completed'
    ABORTED = 'aborted'


class CaptureScheduler:
    """Samples a camera at fixed, drift-free intervals."""

    def __init__(
        self,
        camera: CameraBackend,
        duration_ms: float = 5000,
        target_frames: int = 50,
        countdown_ms: float = 3000,
        countdown_tick_ms: float = 1000,
        observer: Optional[CaptureObserver] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if duration_ms <= 0:
            raise ValueError('duration_ms must be positive')
        if target_frames <= 0:
            raise ValueError('target_frames must be positive')
        if countdown_ms < 0:
            raise ValueError('countdown_ms cannot be negative')
        if countdown_tick_ms <= 0:
            raise ValueError('countdown_tick_ms must be positive')
        self.camera = camera
        self.duration_ms = duration_ms
        self.target_frames = target_frames
        self.countdown_ms = countdown_ms
        self.countdown_tick_ms = countdown_tick_ms
        self.observer = observer or CaptureObserver()
        self._clock = clock
        self._sleep = sleep

        self.state = SchedulerState.IDLE
        self.last_outcome: Optional[SchedulerState] = None
        self._active = False
        self._cancel_requested = False

    @property
    def interval_ms(self) -> float:
        return self.duration_ms / self.target_frames

    @property
    def is_active(self) -> bool:
        return self._active

    def cancel(self) -> bool:
        """Request cancellation of the active session.

        Takes effect at the next check point, at most one sampling interval
        away. Returns False when no session is running.
        """
        if not self._active:
            return False
        self._cancel_requested = True
        logger.info('Cancellation requested')
        return True

    async def start_session(self, label: str, recording_index: int) -> Session:
        """Run one full countdown + sampling session.

        Returns the uncommitted ``Session``. Nothing is kept on failure.

        Raises:
            AlreadyRunningError: if a session is already active.
            CaptureCancelledError: if ``cancel`` was called before the end.
            CaptureDeviceError: if the camera failed mid-session.
        """
        if self._active:
            raise AlreadyRunningError('A recording is already in progress')
        self._active = True
        self._cancel_requested = False
        self.last_outcome = None
        logger.info('Starting recording %d for %s', recording_index, label)
        try:
            self.state = SchedulerState.COUNTDOWN
            await self._countdown()
            self.state = SchedulerState.SAMPLING
            self.observer.on_recording()
            frames = await self._sample()
            self.last_outcome = SchedulerState.COMPLETED
        except SignFramesError as exc:
            logger.warning('Recording %d for %s aborted: %s', recording_index, label, exc)
            self.observer.on_error(exc.kind)
            raise
        finally:
            if self.last_outcome is None:
                self.last_outcome = SchedulerState.ABORTED
            self.state = SchedulerState.IDLE
            self._active = False
            self._cancel_requested = False

        logger.info('Recording %d for %s completed: %d frames', recording_index, label, len(frames))
        self.observer.on_completed(len(frames))
        return Session(label=label, recording_index=recording_index, frames=tuple(frames))

    def _check_cancelled(self) -> None:
        if self._cancel_requested:
            raise CaptureCancelledError('Recording cancelled')

    def _elapsed_ms(self, start: float) -> float:
        return (self._clock() - start) * 1000.0

    async def _sleep_until(self, start: float, offset_ms: float) -> None:
        delay = start + offset_ms / 1000.0 - self._clock()
        await self._sleep(max(delay, 0.0))

    async def _countdown(self) -> None:
        if self.countdown_ms <= 0:
            return
        # Check points every sampling interval so that a cancel lands quickly
        step = min(self.interval_ms, self.countdown_tick_ms)
        start = self._clock()
        announced = None
        checkpoint = 0
        offset = 0.0
        while offset < self.countdown_ms:
            self._check_cancelled()
            seconds = math.ceil((self.countdown_ms - offset) / self.countdown_tick_ms)
            if seconds != announced:
                announced = seconds
                logger.debug('Countdown: %d', seconds)
                self.observer.on_countdown(seconds)
            checkpoint += 1
            offset = min(checkpoint * step, self.countdown_ms)
            await self._sleep_until(start, offset)
        self._check_cancelled()

    async def _sample(self) -> List[Frame]:
        interval = self.interval_ms
        frames: List[Frame] = []
        self.observer.on_progress(0.0)
        start = self._clock()
        slot = 0
        while True:
            self._check_cancelled()
            elapsed = self._elapsed_ms(start)
            if len(frames) >= self.target_frames or elapsed >= self.duration_ms:
                break

            data = await self._capture_still()
            frames.append(Frame(data=data, elapsed_ms=elapsed, position=len(frames) + 1))
            self.observer.on_progress(min(100.0, len(frames) / self.target_frames * 100.0))

            slot += 1
            now = self._elapsed_ms(start)
            if now > slot * interval:
                skipped = int(now // interval) + 1 - slot
                logger.warning('Capture overran %d sampling slot(s)', skipped)
                slot += skipped
            await self._sleep_until(start, slot * interval)
        return frames

    async def _capture_still(self) -> str:
        try:
            return await asyncio.to_thread(self.camera.capture_still)
        except CaptureDeviceError:
            raise
        except Exception as exc:
            raise CaptureDeviceError(f'Camera failed during capture: {exc}') from exc
