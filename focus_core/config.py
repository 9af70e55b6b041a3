"""
Configuration for the Study Focus application.
Resolves on-disk locations and holds engine-wide constants.
"""

import os
from pathlib import Path


# Remote settings/profile fetches give up after this many seconds
SETTINGS_FETCH_TIMEOUT_SEC = 30.0

# Legacy rule: only sessions of at least two hours count toward WeeklyActivity
WEEKLY_SESSION_THRESHOLD_MINUTES = 120

WEEKLY_WINDOW_DAYS = 7

TICK_INTERVAL_MS = 1000

# Storage scope used for the anonymous (demo mode) user
ANONYMOUS_SCOPE = "local"


def get_app_data_dir() -> Path:
    """
    Get the appropriate application data directory based on OS.
    Creates the directory if it doesn't exist.

    STUDY_FOCUS_DATA_DIR overrides the platform default.
    """
    override = os.environ.get('STUDY_FOCUS_DATA_DIR')
    if override:
        base = Path(override)
        base.mkdir(parents=True, exist_ok=True)
        return base

    if os.name == 'nt':  # Windows
        base = Path(os.environ.get('APPDATA', Path.home()))
    elif os.name == 'posix':
        # macOS uses ~/Library/Application Support, Linux uses ~/.local/share
        if os.uname().sysname == 'Darwin':
            base = Path.home() / 'Library' / 'Application Support'
        else:
            base = Path(os.environ.get('XDG_DATA_HOME', Path.home() / '.local' / 'share'))
    else:
        base = Path.home()

    app_dir = base / 'StudyFocus'
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def get_db_path() -> Path:
    return get_app_data_dir() / 'study_focus.db'


def get_log_dir() -> Path:
    log_dir = get_app_data_dir() / 'logs'
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def get_log_level() -> str:
    return os.environ.get('STUDY_FOCUS_LOG_LEVEL', 'INFO').upper()
