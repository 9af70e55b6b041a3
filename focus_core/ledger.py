"""
Session and streak ledger for the Study Focus application.

Turns completed focus sessions and calendar-day transitions into study-time
and streak increments. Every change is applied to the in-memory profile
first; the durable write runs on an executor and is returned as a Future.
Failed writes are logged and reported but never rolled back, so the numbers
on screen may run ahead of the store until the next successful write.
"""

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from .clock import Clock
from .config import (
    SETTINGS_FETCH_TIMEOUT_SEC, WEEKLY_SESSION_THRESHOLD_MINUTES, WEEKLY_WINDOW_DAYS,
)
from .errors import PersistenceError
from .logging_handler import setup_logger
from .models import Profile, SessionCompleted, SessionRecord, UserContext
from .notifications import ERROR, LoggingNotifier, Notifier
from .storage import PersistenceBackend

logger = setup_logger(__name__)

DAY_LABELS = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']

# Per-day label by number of qualifying sessions, capped at 7
ACTIVITY_LABELS = [
    'Rest', 'Getting Started', 'Building Up', 'Good Progress',
    'Great Work', 'Excellent!', 'On Fire!', 'Unstoppable!',
]

SESSION_STREAK_MESSAGE = "Session completed! Streak increased! 🔥"
DAILY_STREAK_MESSAGE = "Welcome back! Your streak grows."
WELCOME_STREAK_MESSAGE = "Welcome! Your study streak has started."


def empty_week() -> List[int]:
    return [0] * 7


class SessionLedger(QObject):
    """
    Accumulator for study minutes, streak days and weekly activity.

    Two streak-like numbers are kept and not reconciled:
    `profile.streak_days` (persisted, bumped per session and per new day) and
    `get_current_streak()` (days with qualifying sessions this week).

    Signals:
        profile_changed: Emitted with a copy of the Profile after every change
        weekly_activity_changed: Emitted with the 7-slot list after every change
    """

    profile_changed = Signal(object)
    weekly_activity_changed = Signal(object)

    def __init__(
        self,
        user: UserContext,
        backend: PersistenceBackend,
        notifier: Optional[Notifier],
        clock: Clock,
        executor: Optional[Executor] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)

        self.user = user
        self.backend = backend
        self.notifier = notifier or LoggingNotifier()
        self.clock = clock
        # One worker keeps durable writes in submission order
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="ledger"
        )

        self._profile = Profile(user_id=user.storage_key)
        self._weekly_activity = empty_week()
        # Until the stored profile has been read, in-memory totals are not authoritative
        self._loaded = False

    @property
    def profile(self) -> Profile:
        return replace(self._profile)

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def total_study_minutes(self) -> int:
        return self._profile.total_study_minutes

    @property
    def streak_days(self) -> int:
        return self._profile.streak_days

    @property
    def weekly_activity(self) -> List[int]:
        return list(self._weekly_activity)

    # ==================== Loading ====================

    def load(self, timeout: float = SETTINGS_FETCH_TIMEOUT_SEC) -> bool:
        """
        Read the profile and this week's activity from the store.
        A user seen for the first time gets a profile with a one-day streak.

        On failure or timeout the in-memory profile stays at zeros and the
        daily check is disabled until a later load succeeds.

        Returns:
            True when the stored profile was read.
        """
        future = self._executor.submit(self._fetch_profile)
        try:
            profile, created = future.result(timeout=timeout)
        except FutureTimeoutError:
            logger.error("Profile fetch for %s timed out after %.0fs",
                         self.user.storage_key, timeout)
            self.notifier.notify(ERROR, "Network Timeout: your study profile could not be loaded.")
            return False
        except PersistenceError as e:
            logger.error("Error loading profile: %s", e)
            self.notifier.notify(ERROR, "Could not load your study profile.")
            return False

        if created:
            logger.info("Created profile for %s", self.user.storage_key)
            self.notifier.celebrate_streak(1, WELCOME_STREAK_MESSAGE)

        self._profile = profile
        self._loaded = True
        self._emit_profile()
        self.fetch_weekly_activity()
        return True

    def _fetch_profile(self) -> Tuple[Profile, bool]:
        """Runs on the executor. Creates the profile when missing."""
        profile = self.backend.get_profile(self.user.storage_key)
        if profile is not None:
            return profile, False

        profile = Profile(
            user_id=self.user.storage_key,
            streak_days=1,
            last_active_date=self.clock.now().date()
        )
        self.backend.create_profile(profile, full_name=self.user.full_name)
        return profile, True

    def fetch_weekly_activity(self) -> List[int]:
        """
        Rebuild WeeklyActivity from the last seven days of sessions.
        Slots run Monday (0) to Sunday (6); only sessions of at least
        WEEKLY_SESSION_THRESHOLD_MINUTES count.
        """
        since = self.clock.now() - timedelta(days=WEEKLY_WINDOW_DAYS)
        try:
            records = self.backend.query_recent_sessions(self.user.storage_key, since)
        except PersistenceError as e:
            logger.error("Error fetching sessions: %s", e)
            return self.weekly_activity

        weekly = empty_week()
        threshold = WEEKLY_SESSION_THRESHOLD_MINUTES * 60
        for record in records:
            if record.duration_seconds >= threshold:
                weekly[record.completed_datetime.weekday()] += 1

        self._weekly_activity = weekly
        self.weekly_activity_changed.emit(self.weekly_activity)
        return self.weekly_activity

    # ==================== Session completion ====================

    def on_session_completed(self, event: SessionCompleted):
        """Slot for TimerEngine.session_completed."""
        self.record_session(event.focus_minutes, completed_at=event.completed_at)

    def record_session(self, minutes: int, completed_at: Optional[datetime] = None) -> Future:
        """
        Credit a completed focus session.

        Every call adds `minutes` to the study total and one to the streak,
        however many sessions were already recorded today. Sessions of two
        hours or more also count toward today's WeeklyActivity slot.
        Until load() has succeeded the stored totals are incremented in place
        rather than overwritten with the in-memory ones.

        Returns:
            Future resolving once the session record and profile are stored.
            It raises PersistenceError if the write failed.
        """
        completed_at = completed_at or self.clock.now()

        self._profile.total_study_minutes += minutes
        self._profile.streak_days += 1
        if minutes >= WEEKLY_SESSION_THRESHOLD_MINUTES:
            self._weekly_activity[completed_at.weekday()] += 1
            self.weekly_activity_changed.emit(self.weekly_activity)

        new_streak = self._profile.streak_days
        self._emit_profile()
        self.notifier.celebrate_streak(new_streak, SESSION_STREAK_MESSAGE)

        record = SessionRecord(
            user_id=self.user.storage_key,
            focus_minutes=int(minutes),
            duration_seconds=minutes * 60,
            completed_at=int(completed_at.timestamp())
        )
        totals = None
        if self._loaded:
            totals = {
                'total_study_minutes': self._profile.total_study_minutes,
                'streak_days': new_streak,
            }
        return self._executor.submit(self._persist_session, record, totals)

    def _persist_session(self, record: SessionRecord, totals: Optional[Dict[str, int]]) -> int:
        try:
            record_id = self.backend.insert_session_record(record)
            if totals is None:
                # Stored profile never read: apply the increment to what is stored
                stored = self.backend.get_profile(record.user_id) or Profile(user_id=record.user_id)
                totals = {
                    'total_study_minutes': stored.total_study_minutes + record.focus_minutes,
                    'streak_days': stored.streak_days + 1,
                }
            self.backend.update_profile(record.user_id, totals)
        except PersistenceError as e:
            logger.error("Error saving session to database: %s", e)
            self.notifier.notify(ERROR, "Could not save your session. It will show locally.")
            raise
        logger.debug("Stored session %s for %s", record_id, record.user_id)
        return record_id

    # ==================== Daily activity ====================

    def check_daily_activity(self, now: Optional[datetime] = None) -> Optional[Future]:
        """
        Bump the streak once per new local calendar day.
        Gaps do not reset the streak.

        Returns:
            Future for the durable write, or None when already counted today
            or when the stored profile has not been loaded.
        """
        if not self._loaded:
            logger.warning("Skipping daily streak check: profile not loaded")
            return None

        now = now or self.clock.now()
        today = now.date()
        if self._profile.last_active_date == today:
            return None

        self._profile.streak_days += 1
        self._profile.last_active_date = today
        new_streak = self._profile.streak_days

        self._emit_profile()
        self.notifier.celebrate_streak(new_streak, DAILY_STREAK_MESSAGE)

        partial = {'streak_days': new_streak, 'last_active_date': today}
        return self._executor.submit(self._persist_profile, partial)

    def _persist_profile(self, partial: dict) -> bool:
        try:
            self.backend.update_profile(self.user.storage_key, partial)
        except PersistenceError as e:
            logger.error("Error checking streak: %s", e)
            self.notifier.notify(ERROR, "Could not save your streak.")
            raise
        return True

    # ==================== Derived views ====================

    def get_current_streak(self) -> int:
        """Days this week with at least one qualifying session."""
        return sum(1 for count in self._weekly_activity if count > 0)

    def weekly_summary(self) -> dict:
        """Totals and per-day labels for the weekly streak panel."""
        return {
            'total_sessions': sum(self._weekly_activity),
            'days_active': self.get_current_streak(),
            'days': [
                {
                    'day': DAY_LABELS[i],
                    'sessions': count,
                    'label': ACTIVITY_LABELS[min(count, 7)],
                }
                for i, count in enumerate(self._weekly_activity)
            ],
        }

    def reset_for_sign_out(self):
        """Drop in-memory totals when the user signs out."""
        self._loaded = False
        self._profile = Profile(user_id=self.user.storage_key)
        self._weekly_activity = empty_week()
        self._emit_profile()
        self.weekly_activity_changed.emit(self.weekly_activity)

    def _emit_profile(self):
        self.profile_changed.emit(self.profile)

    def shutdown(self):
        """Wait for queued writes to finish."""
        self._executor.shutdown(wait=True)
