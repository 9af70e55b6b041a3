"""
SQLite storage module for the Study Focus application.
Handles database initialization, profile/session persistence, settings and tasks.
"""

import sqlite3
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .config import get_db_path
from .errors import PersistenceError
from .models import (
    Profile, ProfileSettings, SessionRecord, Task, TaskPriority, TaskStatus,
    TimerSettings,
)


class PersistenceBackend(ABC):
    """Durable store for profiles, study sessions and per-user settings."""

    @abstractmethod
    def get_profile(self, user_id: str) -> Optional[Profile]:
        pass

    @abstractmethod
    def create_profile(self, profile: Profile, full_name: Optional[str] = None):
        pass

    @abstractmethod
    def update_profile(self, user_id: str, partial: Dict[str, Any]):
        """Apply a partial update to a profile (last write wins)."""
        pass

    @abstractmethod
    def insert_session_record(self, record: SessionRecord) -> int:
        pass

    @abstractmethod
    def query_recent_sessions(self, user_id: str, since: datetime) -> List[SessionRecord]:
        pass

    @abstractmethod
    def get_timer_settings(self, user_id: str) -> Optional[TimerSettings]:
        pass

    @abstractmethod
    def upsert_timer_settings(self, user_id: str, settings: TimerSettings):
        pass

    @abstractmethod
    def get_profile_settings(self, user_id: str) -> Optional[ProfileSettings]:
        pass

    @abstractmethod
    def get_local_value(self, key: str) -> Optional[str]:
        """Read from the local (device-scoped) key/value storage."""
        pass

    @abstractmethod
    def set_local_value(self, key: str, value: str):
        pass


_PROFILE_COLUMNS = (
    'total_study_minutes', 'streak_days', 'last_active_date',
    'full_name', 'avatar_url', 'avatar_type',
)


class Storage(PersistenceBackend):
    """
    Database storage manager.
    Opens one connection per operation so it can be used from worker threads.
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize storage with database path.

        Args:
            db_path: Optional custom path for database file.
                    If None, uses default app data directory.
        """
        if db_path is None:
            db_path = str(get_db_path())

        self.db_path = db_path
        self._init_database()

    @contextmanager
    def _get_connection(self):
        """Context manager for database connections."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self):
        """Initialize database schema if tables don't exist."""
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS profiles (
                    user_id TEXT PRIMARY KEY,
                    full_name TEXT,
                    avatar_url TEXT,
                    avatar_type TEXT,
                    total_study_minutes INTEGER NOT NULL DEFAULT 0,
                    streak_days INTEGER NOT NULL DEFAULT 0,
                    last_active_date TEXT,
                    updated_at INTEGER NOT NULL
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS study_sessions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    focus_minutes INTEGER NOT NULL,
                    duration_seconds INTEGER NOT NULL,
                    completed_at INTEGER NOT NULL
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS timer_settings (
                    user_id TEXT PRIMARY KEY,
                    focus_duration INTEGER NOT NULL DEFAULT 25,
                    short_break INTEGER NOT NULL DEFAULT 5,
                    long_break INTEGER NOT NULL DEFAULT 15,
                    sessions_before_long_break INTEGER NOT NULL DEFAULT 4,
                    auto_start_breaks INTEGER NOT NULL DEFAULT 0,
                    auto_start_pomodoros INTEGER NOT NULL DEFAULT 0,
                    updated_at INTEGER NOT NULL
                )
            ''')

            # Device-scoped storage for the anonymous (demo mode) user
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS local_storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT,
                    status TEXT NOT NULL DEFAULT 'todo',
                    priority TEXT,
                    deadline INTEGER,
                    estimated_minutes INTEGER,
                    created_at INTEGER NOT NULL,
                    last_edited_at INTEGER
                )
            ''')

            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_sessions_user_completed
                ON study_sessions(user_id, completed_at)
            ''')
            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_tasks_user
                ON tasks(user_id)
            ''')

    # ==================== Profiles ====================

    def get_profile(self, user_id: str) -> Optional[Profile]:
        """Get a profile by user ID."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM profiles WHERE user_id = ?', (user_id,))
            row = cursor.fetchone()
            if row:
                return self._row_to_profile(row)
            return None

    def create_profile(self, profile: Profile, full_name: Optional[str] = None):
        """Insert a profile, leaving an existing one untouched."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT OR IGNORE INTO profiles
                (user_id, full_name, total_study_minutes, streak_days, last_active_date, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
            ''', (
                profile.user_id,
                full_name,
                profile.total_study_minutes,
                profile.streak_days,
                _date_to_str(profile.last_active_date),
                int(time.time())
            ))

    def update_profile(self, user_id: str, partial: Dict[str, Any]):
        """
        Update selected profile columns, creating the row if needed.

        Raises:
            PersistenceError: on unknown columns or database failure.
        """
        unknown = set(partial) - set(_PROFILE_COLUMNS)
        if unknown:
            raise PersistenceError(f"Unknown profile fields: {sorted(unknown)}")
        if not partial:
            return

        values = dict(partial)
        if 'last_active_date' in values:
            values['last_active_date'] = _date_to_str(values['last_active_date'])

        columns = list(values)
        assignments = ', '.join(f'{c} = excluded.{c}' for c in columns)
        placeholders = ', '.join('?' for _ in columns)

        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                INSERT INTO profiles (user_id, {', '.join(columns)}, updated_at)
                VALUES (?, {placeholders}, ?)
                ON CONFLICT(user_id) DO UPDATE SET {assignments}, updated_at = excluded.updated_at
            ''', [user_id, *values.values(), int(time.time())])

    def get_profile_settings(self, user_id: str) -> Optional[ProfileSettings]:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                'SELECT full_name, avatar_url, avatar_type FROM profiles WHERE user_id = ?',
                (user_id,)
            )
            row = cursor.fetchone()
            if row:
                return ProfileSettings(
                    full_name=row['full_name'],
                    avatar_url=row['avatar_url'],
                    avatar_type=row['avatar_type']
                )
            return None

    def _row_to_profile(self, row: sqlite3.Row) -> Profile:
        """Convert a database row to a Profile object."""
        return Profile(
            user_id=row['user_id'],
            total_study_minutes=row['total_study_minutes'] or 0,
            streak_days=row['streak_days'] or 0,
            last_active_date=_str_to_date(row['last_active_date'])
        )

    # ==================== Study sessions ====================

    def insert_session_record(self, record: SessionRecord) -> int:
        """
        Append a completed session.

        Returns:
            ID of the created record.
        """
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO study_sessions
                (user_id, focus_minutes, duration_seconds, completed_at)
                VALUES (?, ?, ?, ?)
            ''', (
                record.user_id,
                record.focus_minutes,
                record.duration_seconds,
                record.completed_at
            ))
            return cursor.lastrowid

    def query_recent_sessions(self, user_id: str, since: datetime) -> List[SessionRecord]:
        """Get a user's sessions completed at or after `since`, oldest first."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT * FROM study_sessions
                WHERE user_id = ? AND completed_at >= ?
                ORDER BY completed_at
            ''', (user_id, int(since.timestamp())))
            return [self._row_to_session(row) for row in cursor.fetchall()]

    def _row_to_session(self, row: sqlite3.Row) -> SessionRecord:
        return SessionRecord(
            id=row['id'],
            user_id=row['user_id'],
            focus_minutes=row['focus_minutes'],
            duration_seconds=row['duration_seconds'],
            completed_at=row['completed_at']
        )

    # ==================== Timer settings ====================

    def get_timer_settings(self, user_id: str) -> Optional[TimerSettings]:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM timer_settings WHERE user_id = ?', (user_id,))
            row = cursor.fetchone()
            if row:
                return TimerSettings.from_dict(dict(row))
            return None

    def upsert_timer_settings(self, user_id: str, settings: TimerSettings):
        values = settings.to_dict()
        columns = list(values)
        assignments = ', '.join(f'{c} = excluded.{c}' for c in columns)
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                INSERT INTO timer_settings (user_id, {', '.join(columns)}, updated_at)
                VALUES (?, {', '.join('?' for _ in columns)}, ?)
                ON CONFLICT(user_id) DO UPDATE SET {assignments}, updated_at = excluded.updated_at
            ''', [
                user_id,
                *(int(v) if isinstance(v, bool) else v for v in values.values()),
                int(time.time())
            ])

    # ==================== Local storage ====================

    def get_local_value(self, key: str) -> Optional[str]:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT value FROM local_storage WHERE key = ?', (key,))
            row = cursor.fetchone()
            return row['value'] if row else None

    def set_local_value(self, key: str, value: str):
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT OR REPLACE INTO local_storage (key, value)
                VALUES (?, ?)
            ''', (key, value))

    # ==================== Tasks ====================

    def add_task(self, user_id: str, task: Task):
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT OR REPLACE INTO tasks
                (id, user_id, title, description, status, priority, deadline,
                 estimated_minutes, created_at, last_edited_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (
                task.id,
                user_id,
                task.title,
                task.description,
                task.status.value,
                task.priority.value if task.priority else None,
                _datetime_to_ts(task.deadline),
                task.estimated_minutes,
                _datetime_to_ts(task.created_at),
                _datetime_to_ts(task.last_edited_at)
            ))

    def list_tasks(self, user_id: str) -> List[Task]:
        """Get a user's tasks in creation order."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                'SELECT * FROM tasks WHERE user_id = ? ORDER BY created_at, rowid',
                (user_id,)
            )
            return [self._row_to_task(row) for row in cursor.fetchall()]

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        return Task(
            id=row['id'],
            title=row['title'],
            description=row['description'],
            status=TaskStatus(row['status']),
            priority=TaskPriority(row['priority']) if row['priority'] else None,
            deadline=_ts_to_datetime(row['deadline']),
            estimated_minutes=row['estimated_minutes'],
            created_at=_ts_to_datetime(row['created_at']),
            last_edited_at=_ts_to_datetime(row['last_edited_at'])
        )


def _date_to_str(value: Optional[date]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def _str_to_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    # Accept full ISO timestamps written by older clients
    return datetime.fromisoformat(value).date()


def _datetime_to_ts(value: Optional[datetime]) -> Optional[int]:
    return int(value.timestamp()) if value is not None else None


def _ts_to_datetime(value: Optional[int]) -> Optional[datetime]:
    return datetime.fromtimestamp(value) if value is not None else None
