import logging

from signframes.events import CaptureObserver, LoggingObserver
from signframes.export.archive import Archive


def test_base_observer_ignores_everything():
    observer = CaptureObserver()
    observer.on_countdown(3)
    observer.on_recording()
    observer.on_progress(50.0)
    observer.on_completed(50)
    observer.on_error('Cancelled')
    observer.on_export_progress(1, 2)


def test_logging_observer_reports_milestones(caplog):
    observer = LoggingObserver(logging.getLogger('signframes.test'))
    with caplog.at_level(logging.INFO, logger='signframes.test'):
        observer.on_countdown(3)
        observer.on_recording()
        for n in range(1, 51):
            observer.on_progress(n / 50 * 100)
        observer.on_completed(50)
        observer.on_error('CaptureDeviceError')
        observer.on_exported(Archive('hola_2024-05-01.zip', b'x' * 2048, 1, 50))

    messages = [r.getMessage() for r in caplog.records]
    assert 'Get ready... 3' in messages
    assert 'Recording completed, 50 frames captured' in messages
    assert 'Recording failed: CaptureDeviceError' in messages
    # one line per 10% step (2% through 100%), not one per frame
    assert len([m for m in messages if m.startswith('Progress')]) == 11
    assert any(m.startswith('Archive ready: hola_2024-05-01.zip') for m in messages)
