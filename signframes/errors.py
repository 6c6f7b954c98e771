"""
Exceptions raised by SignFrames.

Every error carries a short ``kind`` string. Observers receive the kind
through ``on_error`` so that a presentation layer can pick a message without
inspecting exception types.
"""

from __future__ import annotations


class SignFramesError(Exception):
    """Base class for all SignFrames errors."""

    kind = 'Error'


class InvalidLabelError(SignFramesError, ValueError):
    """A label failed validation.

    ``reason`` is one of ``'empty'``, ``'too_long'`` or ``'invalid_chars'``.
    """

    kind = 'InvalidLabel'

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class WorkflowError(SignFramesError):
    """An operation needs an active label workflow."""

    kind = 'Workflow'


class AlreadyRunningError(SignFramesError):
    kind = 'AlreadyRunning'


class CaptureDeviceError(SignFramesError):
    """The device source failed to produce a still image."""

    kind = 'CaptureDeviceError'


class CaptureCancelledError(SignFramesError):
    kind = 'Cancelled'


class EmptyExportError(SignFramesError):
    kind = 'EmptyExport'


class DependencyUnavailableError(SignFramesError):
    kind = 'DependencyUnavailable'


class ArchiveStructureError(SignFramesError):
    kind = 'ArchiveStructureError'


class InvalidFrameData(SignFramesError):
    """A frame payload is not a decodable image.

    ``recording_index`` and ``position`` identify the offending frame.
    """

    kind = 'InvalidFrameData'

    def __init__(self, message: str, recording_index: int, position: int) -> None:
        super().__init__(message)
        self.recording_index = recording_index
        self.position = position


class ArchiveEncodingError(SignFramesError):
    kind = 'ArchiveEncodingError'


class ExportInProgressError(SignFramesError):
    kind = 'ExportInProgress'
