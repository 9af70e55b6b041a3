import os
import tempfile
from concurrent.futures import Executor, Future
from datetime import datetime, timedelta
from typing import Callable, List

# Keep log files out of the user's data directory
os.environ.setdefault("STUDY_FOCUS_DATA_DIR", tempfile.mkdtemp(prefix="study-focus-tests-"))

import pytest
from PySide6.QtCore import QCoreApplication

from focus_core.clock import CancelHandle, Clock
from focus_core.ledger import SessionLedger
from focus_core.models import UserContext
from focus_core.notifications import Notifier
from focus_core.settings_store import SettingsStore
from focus_core.storage import Storage
from focus_core.timer_engine import TimerEngine

# Wednesday
START = datetime(2026, 10, 14, 10, 0, 0)


class FakeHandle(CancelHandle):

    def __init__(self, clock: "FakeClock", callback: Callable[[], None]):
        self.clock = clock
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True
        if self in self.clock.handles:
            self.clock.handles.remove(self)


class FakeClock(Clock):
    """Manual clock: time only moves through advance()."""

    def __init__(self, start: datetime = START):
        self.current = start
        self.handles: List[FakeHandle] = []

    def now(self) -> datetime:
        return self.current

    def schedule_every_one_second(self, callback: Callable[[], None]) -> CancelHandle:
        handle = FakeHandle(self, callback)
        self.handles.append(handle)
        return handle

    def advance(self, seconds: int = 1):
        for _ in range(seconds):
            self.current += timedelta(seconds=1)
            for handle in list(self.handles):
                if not handle.cancelled:
                    handle.callback()


class ImmediateExecutor(Executor):
    """Runs submitted work inline so durable writes finish before asserts."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            result = fn(*args, **kwargs)
        except Exception as e:
            future.set_exception(e)
        else:
            future.set_result(result)
        return future


class RecordingNotifier(Notifier):

    def __init__(self):
        self.messages = []
        self.celebrations = []

    def notify(self, kind: str, message: str):
        self.messages.append((kind, message))

    def celebrate_streak(self, streak_value: int, message: str):
        self.celebrations.append((streak_value, message))

    @property
    def errors(self):
        return [m for kind, m in self.messages if kind == "error"]


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def executor() -> ImmediateExecutor:
    return ImmediateExecutor()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def storage(tmp_path) -> Storage:
    return Storage(str(tmp_path / "study_focus.db"))


@pytest.fixture
def user() -> UserContext:
    return UserContext(user_id="user-1", email="ada@example.com")


@pytest.fixture
def anonymous() -> UserContext:
    return UserContext()


@pytest.fixture
def settings_store(anonymous, storage, notifier, executor) -> SettingsStore:
    return SettingsStore(anonymous, storage, notifier, executor=executor)


@pytest.fixture
def engine(settings_store, clock) -> TimerEngine:
    return TimerEngine(settings_store, clock)


@pytest.fixture
def ledger(user, storage, notifier, clock, executor) -> SessionLedger:
    return SessionLedger(user, storage, notifier, clock, executor=executor)
