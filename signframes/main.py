
"""
Main orchestration for SignFrames.

``SignFramesApp`` is the workflow context: it owns the active label, the
recordings made for it, the camera, the capture scheduler and the archive
builder. A workflow starts when a label is accepted and ends with
``reset`` (discard everything) or ``close`` (release the camera).

The command line records a number of sessions for one label and writes the
ZIP archive to the output directory.

Usage:

```bash
python -m signframes.main --config config/signframes.yaml --label hola --sessions 3
```
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from .camera.base import CameraBackend
from .camera.http_camera import HttpSnapshotCamera
from .camera.mock_camera import MockCamera
from .camera.rpi_camera import RpiCamera
from .capture.scheduler import CaptureScheduler
from .capture.store import SessionStore
from .config import Config
from .errors import (
    CaptureCancelledError,
    InvalidLabelError,
    SignFramesError,
    WorkflowError,
)
from .events import CaptureObserver, LoggingObserver
from .export.archive import Archive, ArchiveBuilder, save_archive
from .models import Session, validate_label

logger = logging.getLogger(__name__)


def setup_logging(log_file: str, level: int = logging.INFO) -> None:
    """Configure logging to file and console."""
    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(threadName)s - %(message)s'
    )
    # File handler
    fh = logging.FileHandler(log_file)
    fh.setFormatter(formatter)
    root.addHandler(fh)
    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(formatter)
    root.addHandler(ch)
    # Reduce noise from libraries
    logging.getLogger('PIL').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


class SignFramesApp:
    """Main controller for a SignFrames recording workflow."""

    def __init__(
        self,
        config: Config,
        camera: Optional[CameraBackend] = None,
        observer: Optional[CaptureObserver] = None,
    ) -> None:
        self.config = config
        # Ensure directories exist
        config.ensure_paths()

        self.observer = observer or LoggingObserver()
        # Initialize hardware backend
        self.camera: CameraBackend = camera or self._init_camera()
        self.scheduler = CaptureScheduler(
            self.camera,
            duration_ms=config.recording_duration_ms,
            target_frames=config.target_frames,
            countdown_ms=config.countdown_ms,
            countdown_tick_ms=config.countdown_tick_ms,
            observer=self.observer,
        )
        self.builder = ArchiveBuilder(
            compression_level=config.compression_level,
            frame_extension=config.frame_extension,
            verify_images=config.verify_images,
            observer=self.observer,
        )

        self.label: Optional[str] = None
        self.store: Optional[SessionStore] = None
        self._stop_requested = False

    def _init_camera(self) -> CameraBackend:
        """Instantiate the camera backend based on configuration."""
        cfg = self.config
        if cfg.camera_backend == 'mock':
            return MockCamera(cfg.image_width, cfg.image_height, cfg.jpeg_quality)
        elif cfg.camera_backend == 'rpi':
            return RpiCamera(cfg.image_width, cfg.image_height, cfg.jpeg_quality)
        elif cfg.camera_backend == 'http':
            return HttpSnapshotCamera(
                cfg.snapshot_url, cfg.image_width, cfg.image_height, cfg.jpeg_quality,
                timeout=cfg.http_timeout,
            )
        else:
            raise ValueError(f'Unknown camera backend: {cfg.camera_backend}')

    @property
    def recording_count(self) -> int:
        return self.store.count if self.store else 0

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def _ensure_idle(self) -> None:
        if self.scheduler.is_active:
            raise WorkflowError('A recording is in progress')
        if self.builder.in_progress:
            raise WorkflowError('An export is in progress')

    def start_workflow(self, name: str) -> str:
        """Validate ``name`` and start a fresh workflow for it.

        Any recordings of a previous label are discarded.

        Raises:
            InvalidLabelError: if the name is not an acceptable label.
        """
        label = validate_label(
            name, max_length=self.config.max_label_length, pattern=self.config.label_pattern
        )
        self._ensure_idle()
        self.label = label
        self.store = SessionStore(label)
        self._stop_requested = False
        logger.info('Workflow started for label %s', label)
        return label

    def _require_workflow(self) -> SessionStore:
        if self.label is None or self.store is None:
            raise WorkflowError('No label selected; call start_workflow first')
        return self.store

    async def record(self) -> Session:
        """Run one capture session and commit it.

        Raises:
            WorkflowError: if no label is active.
            AlreadyRunningError, CaptureCancelledError, CaptureDeviceError:
                from the scheduler; nothing is committed.
        """
        store = self._require_workflow()
        captured = await self.scheduler.start_session(self.label, store.next_index)
        return store.append(captured.frames)

    async def export(self) -> Archive:
        """Build the archive of every recording made for the active label."""
        store = self._require_workflow()
        return await self.builder.build(self.label, store.sessions)

    def save(self, archive: Archive, directory: Optional[str] = None) -> Path:
        return save_archive(archive, directory or self.config.output_dir)

    def cancel(self) -> None:
        """Stop the active recording and any that were still planned."""
        self._stop_requested = True
        self.scheduler.cancel()

    def reset(self) -> None:
        """Discard the label and all of its recordings."""
        self._ensure_idle()
        if self.store is not None:
            self.store.reset()
        self.store = None
        self.label = None
        self._stop_requested = False
        logger.info('Workflow reset')

    def close(self) -> None:
        """Release the camera."""
        self.camera.close()
        logger.info('Camera resources released')


async def run_workflow(app: SignFramesApp, label: str, sessions: int, output_dir: Optional[str]) -> int:
    """Record ``sessions`` takes for ``label`` and save the archive.

    Returns a process exit code.
    """
    try:
        app.start_workflow(label)
    except InvalidLabelError as exc:
        logger.error('Invalid label: %s', exc)
        return 2

    for n in range(1, sessions + 1):
        if app.stop_requested:
            break
        try:
            session = await app.record()
        except CaptureCancelledError:
            logger.info('Recording %d cancelled', n)
            break
        except SignFramesError as exc:
            logger.error('Recording %d failed: %s', n, exc)
            continue
        logger.info(
            'Recording %d stored (%d/%d)', session.recording_index, n, sessions
        )

    if app.recording_count == 0:
        logger.error('No recordings to export')
        return 1
    try:
        archive = await app.export()
    except SignFramesError as exc:
        logger.error('Export failed: %s', exc)
        return 1
    path = app.save(archive, output_dir)
    logger.info('Archive written to %s', path)
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='SignFrames sign recorder')
    parser.add_argument('--config', '-c', type=str, help='Path to YAML configuration file')
    parser.add_argument('--label', '-l', type=str, required=True, help='Name of the sign being recorded')
    parser.add_argument('--sessions', '-n', type=int, default=1, help='Number of recordings to make')
    parser.add_argument('--output', '-o', type=str, help='Directory for the ZIP archive')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    config = Config.from_yaml(args.config) if args.config else Config()
    config.ensure_paths()
    setup_logging(config.log_file, logging.DEBUG if args.verbose else logging.INFO)
    app = SignFramesApp(config)

    def handle_signal(signum, frame):
        logging.info('Shutting down...')
        app.cancel()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)
    try:
        code = asyncio.run(run_workflow(app, args.label, args.sessions, args.output))
    finally:
        app.close()
    sys.exit(code)


if __name__ == '__main__':
    main()
