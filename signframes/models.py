"""
Data model shared by the capture and export stages.

A ``Frame`` is one still image produced by a camera backend, a ``Session`` is
one completed capture run for a label. Both are frozen dataclasses: once the
scheduler has produced them nothing downstream may change them.

Frame payloads travel as data URLs (``data:image/jpeg;base64,...``). The
helpers at the bottom of this module build and take apart that wrapper.
"""

from __future__ import annotations

import base64
import binascii
import datetime
import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .errors import InvalidLabelError

DEFAULT_LABEL_PATTERN = r'^[A-Za-z0-9_-]+$'
DEFAULT_MAX_LABEL_LENGTH = 50

IMAGE_DATA_URL_PREFIX = 'data:image/'


def validate_label(
    name: str,
    max_length: int = DEFAULT_MAX_LABEL_LENGTH,
    pattern: str = DEFAULT_LABEL_PATTERN,
) -> str:
    """Validate a user supplied label and return it trimmed.

    Raises:
        InvalidLabelError: with ``reason`` set to ``'empty'``, ``'too_long'``
            or ``'invalid_chars'``.
    """
    trimmed = (name or '').strip()
    if not trimmed:
        raise InvalidLabelError('empty', 'Please enter a name for the sign')
    if len(trimmed) > max_length:
        raise InvalidLabelError('too_long', f'The name cannot be longer than {max_length} characters')
    if not re.fullmatch(pattern, trimmed):
        raise InvalidLabelError(
            'invalid_chars',
            'The name may only contain letters, digits, hyphens (-) and underscores (_)',
        )
    return trimmed


@dataclass(frozen=True)
class Frame:
    """One captured still image."""

    data: Optional[str]
    elapsed_ms: float
    position: int


@dataclass(frozen=True)
class Session:
    """One completed capture run for a label."""

    label: str
    recording_index: int
    frames: Tuple[Frame, ...] = ()
    completed_at: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    @property
    def frame_count(self) -> int:
        return len(self.frames)


def pad_number(num: int, digits: int = 3) -> str:
    return str(num).zfill(digits)


def to_data_url(payload: bytes, image_format: str = 'jpeg') -> str:
    """Wrap encoded image bytes in a base64 data URL."""
    encoded = base64.b64encode(payload).decode('ascii')
    return f'{IMAGE_DATA_URL_PREFIX}{image_format.lower()};base64,{encoded}'


def has_image_tag(data: str) -> bool:
    return data.startswith(IMAGE_DATA_URL_PREFIX)


def decode_data_url(data: str) -> bytes:
    """Return the raw image bytes carried by a data URL.

    Raises:
        ValueError: if the URL has no base64 body or the body does not
            decode to any bytes.
    """
    header, sep, body = data.partition(',')
    if not sep or not body:
        raise ValueError('data URL carries no payload')
    if not header.endswith(';base64'):
        raise ValueError('data URL payload is not base64 encoded')
    try:
        raw = base64.b64decode(body, validate=True)
    except binascii.Error as exc:
        raise ValueError(f'invalid base64 payload: {exc}') from exc
    if not raw:
        raise ValueError('decoded payload is empty')
    return raw
