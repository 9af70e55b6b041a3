#!/usr/bin/env python3
"""
Study Focus - a Pomodoro-style focus timer with study streaks.

- Focus/break countdown with configurable durations
- Study time and streak tracking per user
- Weekly activity overview and current-task highlight
- Desktop notifications and streak celebrations

Usage:
    pip install -e .
    python main.py

Set STUDY_FOCUS_USER_ID (and optionally STUDY_FOCUS_USER_EMAIL) to sign in;
without it the app runs in demo mode with device-local settings.
"""

import os
import signal
import sys

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt

from focus_core.logging_handler import setup_logger
from focus_core.models import UserContext

logger = setup_logger("study_focus")


def setup_exception_handling():
    """Log unhandled exceptions before the default hook prints them."""
    def exception_hook(exctype, value, traceback):
        logger.critical("Unhandled exception", exc_info=(exctype, value, traceback))
        sys.__excepthook__(exctype, value, traceback)

    sys.excepthook = exception_hook


def setup_signal_handlers(app: QApplication):
    """Set up signal handlers for graceful shutdown."""
    def signal_handler(signum, frame):
        logger.info("Received signal %s, shutting down...", signum)
        app.quit()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def user_from_environment() -> UserContext:
    """Build the current user from the environment (anonymous when unset)."""
    return UserContext(
        user_id=os.environ.get('STUDY_FOCUS_USER_ID') or None,
        email=os.environ.get('STUDY_FOCUS_USER_EMAIL') or None,
        full_name=os.environ.get('STUDY_FOCUS_USER_NAME') or None,
    )


STYLESHEET = """
    QMainWindow, QWidget {
        background-color: #1e1e1e;
        color: #e0e0e0;
    }
    QTabBar::tab {
        background-color: #2d2d2d;
        color: #b0b0b0;
        padding: 12px 25px;
        margin-right: 2px;
        border-top-left-radius: 6px;
        border-top-right-radius: 6px;
    }
    QTabBar::tab:selected {
        background-color: #252525;
        color: #ffffff;
        font-weight: bold;
    }
    QGroupBox {
        font-weight: bold;
        border: 1px solid #404040;
        border-radius: 8px;
        margin-top: 12px;
        padding-top: 12px;
        background-color: #2a2a2a;
    }
    QGroupBox::title {
        subcontrol-origin: margin;
        left: 12px;
        padding: 0 8px;
        color: #FF7043;
    }
    QPushButton:checked {
        background-color: #FF7043;
        color: #ffffff;
    }
    QProgressBar {
        background-color: #2d2d2d;
        border: none;
        border-radius: 4px;
        height: 8px;
    }
    QProgressBar::chunk {
        background-color: #66BB6A;
        border-radius: 4px;
    }
    QSpinBox {
        background-color: #2d2d2d;
        border: 1px solid #404040;
        border-radius: 4px;
        padding: 4px;
    }
"""


def main():
    """Main entry point for the Study Focus application."""
    setup_exception_handling()

    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)
    app.setApplicationName("Study Focus")
    app.setApplicationDisplayName("Study Focus")
    app.setOrganizationName("StudyFocus")
    app.setStyle("Fusion")
    app.setStyleSheet(STYLESHEET)

    setup_signal_handlers(app)

    user = user_from_environment()
    logger.info("Starting for %s", user.storage_key)

    from focus_ui.main_window import MainWindow
    window = MainWindow(user)
    window.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
