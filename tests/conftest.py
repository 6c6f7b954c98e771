from __future__ import annotations

import asyncio
import base64
import io
from typing import List, Optional

import pytest
from PIL import Image

from signframes.camera.base import CameraBackend
from signframes.events import CaptureObserver
from signframes.models import Frame, Session, to_data_url


def make_jpeg(width: int = 16, height: int = 12, color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new('RGB', (width, height), color=color).save(buf, format='JPEG', quality=80)
    return buf.getvalue()


JPEG_BYTES = make_jpeg()
JPEG_DATA_URL = to_data_url(JPEG_BYTES, 'jpeg')


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class FakeCamera(CameraBackend):
    """Camera returning a fixed payload, optionally slow or failing."""

    def __init__(
        self,
        clock: Optional[FakeClock] = None,
        latency: float = 0.0,
        fail_at: Optional[int] = None,
        error: Optional[Exception] = None,
        payload: str = JPEG_DATA_URL,
    ) -> None:
        self.clock = clock
        self.latency = latency
        self.fail_at = fail_at
        self.error = error or RuntimeError('camera unplugged')
        self.payload = payload
        self.calls: List[float] = []
        self.closed = False

    def capture_still(self) -> str:
        self.calls.append(self.clock() if self.clock else 0.0)
        if self.fail_at is not None and len(self.calls) == self.fail_at:
            raise self.error
        if self.clock is not None:
            self.clock.now += self.latency
        return self.payload

    def close(self) -> None:
        self.closed = True


class RecordingObserver(CaptureObserver):
    def __init__(self) -> None:
        self.countdowns: List[int] = []
        self.progress: List[float] = []
        self.recording = 0
        self.completed: List[int] = []
        self.errors: List[str] = []
        self.export_progress: List[tuple] = []
        self.exported = []

    def on_countdown(self, seconds_remaining: int) -> None:
        self.countdowns.append(seconds_remaining)

    def on_recording(self) -> None:
        self.recording += 1

    def on_progress(self, percent: float) -> None:
        self.progress.append(percent)

    def on_completed(self, frame_count: int) -> None:
        self.completed.append(frame_count)

    def on_error(self, kind: str) -> None:
        self.errors.append(kind)

    def on_export_progress(self, current: int, total: int) -> None:
        self.export_progress.append((current, total))

    def on_exported(self, archive) -> None:
        self.exported.append(archive)


def make_session(label: str, index: int, count: int, payload: str = JPEG_DATA_URL) -> Session:
    frames = tuple(Frame(data=payload, elapsed_ms=i * 100.0, position=i + 1) for i in range(count))
    return Session(label=label, recording_index=index, frames=frames)


def b64_data_url(raw: bytes, mime: str = 'image/jpeg') -> str:
    return f'data:{mime};base64,' + base64.b64encode(raw).decode('ascii')


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def observer():
    return RecordingObserver()
