"""
Clock abstraction for the timer engine.
The real clock drives the one-second tick with a QTimer; tests swap in a fake.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer

from .config import TICK_INTERVAL_MS


class CancelHandle(ABC):
    """Returned by Clock.schedule_every_one_second; stops the schedule."""

    @abstractmethod
    def cancel(self):
        pass


class Clock(ABC):
    """Source of wall-clock time and of the repeating one-second callback."""

    @abstractmethod
    def now(self) -> datetime:
        """Current local time."""
        pass

    @abstractmethod
    def schedule_every_one_second(self, callback: Callable[[], None]) -> CancelHandle:
        pass


class _QTimerHandle(CancelHandle):

    def __init__(self, timer: QTimer):
        self._timer = timer

    def cancel(self):
        self._timer.stop()
        self._timer.deleteLater()


class QtClock(Clock):
    """
    Clock backed by the Qt event loop.
    Callbacks run on the thread that owns the clock's parent object.
    """

    def __init__(self, parent: Optional[QObject] = None):
        self._parent = parent

    def now(self) -> datetime:
        return datetime.now()

    def schedule_every_one_second(self, callback: Callable[[], None]) -> CancelHandle:
        timer = QTimer(self._parent)
        timer.setInterval(TICK_INTERVAL_MS)
        timer.timeout.connect(callback)
        timer.start()
        return _QTimerHandle(timer)
