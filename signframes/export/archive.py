"""
ZIP export of recorded sessions.

The archive layout is fixed::

    <label>/
        <label>_001/
            frame_001.jpg
            frame_002.jpg
            ...
        <label>_002/
            ...

Entries hold the raw decoded image bytes, not the data URL wrapper. Frame
file names come from each frame's capture position, so a frame skipped for
having no payload leaves a gap in the numbering instead of shifting the
frames after it.

Any malformed frame fails the whole export and no partial archive is
returned.
"""

from __future__ import annotations

import asyncio
import datetime
import importlib.util
import io
import logging
import os
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from PIL import Image

from ..errors import (
    ArchiveEncodingError,
    ArchiveStructureError,
    DependencyUnavailableError,
    EmptyExportError,
    ExportInProgressError,
    InvalidFrameData,
    SignFramesError,
)
from ..events import CaptureObserver
from ..models import Frame, Session, decode_data_url, has_image_tag, pad_number

logger = logging.getLogger(__name__)

DEFAULT_COMPRESSION_LEVEL = 6


@dataclass(frozen=True)
class Archive:
    """A finished export: ZIP bytes plus a suggested download name."""

    filename: str
    data: bytes
    session_count: int
    frame_count: int
    entries: Tuple[str, ...] = ()


class ArchiveTree:
    """Ordered directory and file entries waiting to be zipped."""

    def __init__(self) -> None:
        self._entries: Dict[str, Optional[bytes]] = {}

    @staticmethod
    def _check_segment(name: str) -> None:
        if not name or name in ('.', '..') or '/' in name or '\\' in name:
            raise ArchiveStructureError(f'Invalid folder name: {name!r}')

    def folder(self, name: str, parent: str = '') -> str:
        """Add a directory entry and return its path (with trailing slash)."""
        self._check_segment(name)
        path = f'{parent}{name}/'
        if path in self._entries or path[:-1] in self._entries:
            raise ArchiveStructureError(f'Could not create folder {path}: entry already exists')
        self._entries[path] = None
        return path

    def add_file(self, path: str, data: bytes) -> None:
        if path in self._entries:
            raise ArchiveStructureError(f'Duplicate archive entry: {path}')
        self._entries[path] = data

    @property
    def entries(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    @property
    def file_count(self) -> int:
        return sum(1 for data in self._entries.values() if data is not None)

    def items(self) -> Iterable[Tuple[str, Optional[bytes]]]:
        return self._entries.items()


class ZipEngine:
    """DEFLATE ZIP encoder built on :mod:`zipfile`."""

    def __init__(self, compression_level: int = DEFAULT_COMPRESSION_LEVEL) -> None:
        if not 0 <= compression_level <= 9:
            raise ValueError('compression_level must be between 0 and 9')
        self.compression_level = compression_level

    def is_available(self) -> bool:
        """DEFLATE needs zlib, which some minimal Python builds lack."""
        return importlib.util.find_spec('zlib') is not None

    def encode(self, tree: ArchiveTree) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(
            buf, 'w', compression=zipfile.ZIP_DEFLATED, compresslevel=self.compression_level
        ) as zf:
            for name, data in tree.items():
                if data is None:
                    info = zipfile.ZipInfo(name)
                    info.external_attr = (0o40755 << 16) | 0x10
                    zf.writestr(info, b'')
                else:
                    zf.writestr(name, data)
        return buf.getvalue()

    def probe(self) -> bool:
        """Round-trip a tiny archive to prove the encoder works."""
        tree = ArchiveTree()
        tree.add_file('test.txt', b'Hello World')
        try:
            with zipfile.ZipFile(io.BytesIO(self.encode(tree))) as zf:
                return zf.testzip() is None and zf.read('test.txt') == b'Hello World'
        except (zipfile.BadZipFile, OSError, RuntimeError) as exc:
            logger.error('ZIP self-test failed: %s', exc)
            return False


class ArchiveBuilder:
    """Turns stored sessions into one ZIP archive.

    Only one build may run at a time; a concurrent call is rejected rather
    than queued. ``compression_level`` configures the default engine and is
    ignored when an ``engine`` is passed in.
    """

    def __init__(
        self,
        engine: Optional[ZipEngine] = None,
        frame_extension: str = 'jpg',
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        verify_images: bool = False,
        observer: Optional[CaptureObserver] = None,
    ) -> None:
        self.engine = engine or ZipEngine(compression_level)
        self.frame_extension = frame_extension.lstrip('.')
        self.verify_images = verify_images
        self.observer = observer or CaptureObserver()
        self._in_progress = False

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    async def build(
        self,
        label: str,
        sessions: Iterable[Session],
        today: Optional[datetime.date] = None,
    ) -> Archive:
        """Build the archive for ``label`` from ``sessions``.

        Raises:
            ExportInProgressError: if another build is running.
            EmptyExportError: if there is nothing to export.
            DependencyUnavailableError: if the ZIP engine cannot run.
            ArchiveStructureError: if a folder entry cannot be created.
            InvalidFrameData: if any frame payload is not a decodable image.
            ArchiveEncodingError: if compression fails.
        """
        if self._in_progress:
            raise ExportInProgressError('An archive is already being generated')
        self._in_progress = True
        try:
            archive = await self._build(label, list(sessions), today)
        except SignFramesError as exc:
            logger.error('Failed to generate archive for %s: %s', label, exc)
            raise
        finally:
            self._in_progress = False
        self.observer.on_exported(archive)
        return archive

    async def _build(
        self, label: str, sessions: List[Session], today: Optional[datetime.date]
    ) -> Archive:
        if not sessions or all(s.frame_count == 0 for s in sessions):
            raise EmptyExportError('There are no recordings to export')
        if not self.engine.is_available():
            raise DependencyUnavailableError('ZIP compression (zlib) is not available')

        tree = ArchiveTree()
        root = tree.folder(label)
        session_count = 0
        for i, session in enumerate(sessions, start=1):
            self.observer.on_export_progress(i, len(sessions))
            if session.frame_count == 0:
                logger.warning('Recording %d has no frames, skipping', session.recording_index)
                continue
            folder = tree.folder(f'{label}_{pad_number(session.recording_index)}', parent=root)
            added = self._add_session(tree, folder, session)
            session_count += 1
            logger.info('Added %s to archive (%d frames)', folder, added)
            # Let other tasks run between recordings
            await asyncio.sleep(0)

        frame_count = tree.file_count
        logger.info('Compressing %d frames from %d recordings', frame_count, session_count)
        try:
            data = await asyncio.to_thread(self.engine.encode, tree)
        except (OSError, ValueError, RuntimeError, zipfile.LargeZipFile, zlib.error) as exc:
            raise ArchiveEncodingError(f'ZIP encoding failed: {exc}') from exc
        if not data:
            raise ArchiveEncodingError('The generated ZIP file is empty')

        return Archive(
            filename=archive_filename(label, today),
            data=data,
            session_count=session_count,
            frame_count=frame_count,
            entries=tree.entries,
        )

    def _add_session(self, tree: ArchiveTree, folder: str, session: Session) -> int:
        added = 0
        for frame in session.frames:
            if not frame.data:
                logger.warning(
                    'Frame %d of recording %d is empty, skipping',
                    frame.position, session.recording_index,
                )
                continue
            raw = self._decode_frame(session, frame)
            name = f'frame_{pad_number(frame.position)}.{self.frame_extension}'
            tree.add_file(folder + name, raw)
            added += 1
        return added

    def _decode_frame(self, session: Session, frame: Frame) -> bytes:
        where = f'recording {session.recording_index}, frame {frame.position}'
        if not has_image_tag(frame.data):
            raise InvalidFrameData(
                f'{where} does not have a valid image format',
                session.recording_index, frame.position,
            )
        try:
            raw = decode_data_url(frame.data)
        except ValueError as exc:
            raise InvalidFrameData(
                f'{where} has corrupt image data: {exc}',
                session.recording_index, frame.position,
            ) from exc
        if self.verify_images:
            try:
                with Image.open(io.BytesIO(raw)) as img:
                    img.verify()
            except (OSError, SyntaxError, ValueError) as exc:
                raise InvalidFrameData(
                    f'{where} is not a readable image: {exc}',
                    session.recording_index, frame.position,
                ) from exc
        return raw


def archive_filename(label: str, today: Optional[datetime.date] = None, extension: str = 'zip') -> str:
    if today is None:
        today = datetime.datetime.now(datetime.timezone.utc).date()
    return f'{label}_{today.isoformat()}.{extension}'


def save_archive(archive: Archive, directory: str) -> Path:
    """Write the archive into ``directory`` and return the file path."""
    os.makedirs(directory, exist_ok=True)
    path = Path(directory) / archive.filename
    with open(path, 'wb') as f:
        f.write(archive.data)
    logger.info('Saved %s (%.2f KB)', path, len(archive.data) / 1024)
    return path
