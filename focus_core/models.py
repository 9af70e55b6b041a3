"""
Data models for the Study Focus application.
Uses dataclasses for clean, type-annotated data structures.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Optional

from .config import ANONYMOUS_SCOPE
from .errors import ConfigurationError


class TimerMode(Enum):
    """The two top-level modes of the timer state machine."""
    FOCUS = "focus"
    BREAK = "break"


class TaskStatus(Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TaskPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class TimerSettings:
    """
    Timer configuration owned by the current user.
    Replaced as a whole on every update, never mutated in place.
    """
    focus_duration: int = 25
    short_break: int = 5
    long_break: int = 15
    sessions_before_long_break: int = 4
    # Stored and editable, but not consulted by the timer
    auto_start_breaks: bool = False
    auto_start_pomodoros: bool = False

    def __post_init__(self):
        """Reject non-positive durations."""
        for name in ('focus_duration', 'short_break', 'long_break',
                     'sessions_before_long_break'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ConfigurationError(f"{name} must be > 0, got {value}")
        for name in ('auto_start_breaks', 'auto_start_pomodoros'):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"{name} must be a boolean")

    @classmethod
    def field_names(cls) -> tuple:
        return tuple(f.name for f in fields(cls))

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.field_names()}

    @classmethod
    def from_dict(cls, data: dict) -> "TimerSettings":
        """Build settings from a stored mapping, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.field_names()}
        for name in ('auto_start_breaks', 'auto_start_pomodoros'):
            if name in known:
                known[name] = bool(known[name])
        return cls(**known)

    def duration_seconds(self, mode: TimerMode) -> int:
        """Configured length of a mode in seconds (breaks always use short_break)."""
        if mode == TimerMode.FOCUS:
            return self.focus_duration * 60
        return self.short_break * 60


@dataclass(frozen=True)
class ProfileSettings:
    """Profile metadata shown alongside the timer."""
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    avatar_type: Optional[str] = None  # panda | custom | None

    def to_dict(self) -> dict:
        return {
            'full_name': self.full_name,
            'avatar_url': self.avatar_url,
            'avatar_type': self.avatar_type,
        }


@dataclass(frozen=True)
class UserContext:
    """
    The signed-in user, passed explicitly to the stores that need it.
    An anonymous context (no user_id) runs in demo mode against local storage.
    """
    user_id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def storage_key(self) -> str:
        return self.user_id if self.user_id is not None else ANONYMOUS_SCOPE

    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name
        if self.email:
            return self.email.split('@')[0]
        return 'User'


@dataclass
class TimerRuntimeState:
    """
    Snapshot of the countdown.
    Emitted to UI components on every tick and mode change.
    """
    mode: TimerMode = TimerMode.FOCUS
    seconds_remaining: int = 0
    is_running: bool = False
    total_seconds: int = 0

    @property
    def elapsed_seconds(self) -> int:
        return self.total_seconds - self.seconds_remaining

    @property
    def progress_percentage(self) -> float:
        """Return progress as percentage (0-100)."""
        if self.total_seconds == 0:
            return 0.0
        return (self.elapsed_seconds / self.total_seconds) * 100.0

    def format_remaining(self) -> str:
        """Format remaining time as MM:SS."""
        minutes = self.seconds_remaining // 60
        seconds = self.seconds_remaining % 60
        return f"{minutes:02d}:{seconds:02d}"


@dataclass(frozen=True)
class SessionCompleted:
    """Event emitted by the timer when a focus interval runs to zero."""
    focus_minutes: int
    completed_at: datetime


@dataclass
class SessionRecord:
    """
    A completed focus interval.
    Append-only: created once, never updated or deleted by the engine.
    """
    user_id: str
    focus_minutes: int
    duration_seconds: int
    completed_at: int  # Unix timestamp
    id: Optional[int] = None

    @property
    def completed_datetime(self) -> datetime:
        """Completion time on the local calendar."""
        return datetime.fromtimestamp(self.completed_at)


@dataclass
class Profile:
    """Per-account study totals and streak counter."""
    user_id: str
    total_study_minutes: int = 0
    streak_days: int = 0
    last_active_date: Optional[date] = None


@dataclass
class Task:
    """A task as read from the task store."""
    id: str
    title: str
    status: TaskStatus = TaskStatus.TODO
    priority: Optional[TaskPriority] = None
    deadline: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.now)
    last_edited_at: Optional[datetime] = None
    description: Optional[str] = None
    estimated_minutes: Optional[int] = None
