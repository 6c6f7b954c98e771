"""
In-memory ledger of completed capture sessions for one label.
"""

from __future__ import annotations

import datetime
import logging
from typing import Iterable, List, Tuple

from ..models import Frame, Session

logger = logging.getLogger(__name__)


class SessionStore:
    """Append-only list of sessions with sequential recording indices.

    Indices start at 1 and grow by one on every ``append``. A session with
    no frames still takes its slot so that indices never repeat within a
    label workflow. ``reset`` is the only way to drop sessions.
    """

    def __init__(self, label: str) -> None:
        self.label = label
        self._sessions: List[Session] = []
        self._next_index = 1

    def append(self, frames: Iterable[Frame]) -> Session:
        session = Session(
            label=self.label,
            recording_index=self._next_index,
            frames=tuple(frames),
            completed_at=datetime.datetime.now(datetime.timezone.utc),
        )
        self._sessions.append(session)
        self._next_index += 1
        logger.info(
            'Stored recording %d for %s (%d frames)',
            session.recording_index, self.label, session.frame_count,
        )
        return session

    def reset(self) -> None:
        self._sessions.clear()
        self._next_index = 1

    @property
    def sessions(self) -> Tuple[Session, ...]:
        return tuple(self._sessions)

    @property
    def next_index(self) -> int:
        return self._next_index

    @property
    def count(self) -> int:
        return len(self._sessions)

    @property
    def total_frame_count(self) -> int:
        return sum(s.frame_count for s in self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)
