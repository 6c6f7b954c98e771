from .scheduler import CaptureScheduler, SchedulerState
from .store import SessionStore

__all__ = ['CaptureScheduler', 'SchedulerState', 'SessionStore']
