"""
Notification module for the Study Focus application.
Surfaces non-blocking toasts and the one-shot streak celebration.
"""

import subprocess
import sys
from abc import ABC, abstractmethod
from typing import Optional

from PySide6.QtCore import QObject, Signal, Slot
from PySide6.QtWidgets import QSystemTrayIcon

from .logging_handler import setup_logger

logger = setup_logger(__name__)

INFO = "info"
ERROR = "error"


class Notifier(ABC):
    """
    Notification collaborator used by the engine.
    Both calls are fire-and-forget and may be made from worker threads.
    """

    @abstractmethod
    def notify(self, kind: str, message: str):
        pass

    @abstractmethod
    def celebrate_streak(self, streak_value: int, message: str):
        pass


class LoggingNotifier(Notifier):
    """Headless notifier: everything goes to the log."""

    def notify(self, kind: str, message: str):
        if kind == ERROR:
            logger.error(message)
        else:
            logger.info(message)

    def celebrate_streak(self, streak_value: int, message: str):
        logger.info("Streak %d: %s", streak_value, message)


class _NotificationBridge(QObject):
    """
    Lives on the GUI thread. Signals emitted from persistence workers are
    queued here before any widget is touched.
    """

    notify_requested = Signal(str, str)
    celebrate_requested = Signal(int, str)

    # Re-emitted on the GUI thread for the celebration dialog
    streak_celebrated = Signal(int, str)

    def __init__(self, manager: "NotificationManager", parent: Optional[QObject] = None):
        super().__init__(parent)
        self._manager = manager
        self.notify_requested.connect(self._on_notify)
        self.celebrate_requested.connect(self._on_celebrate)

    @Slot(str, str)
    def _on_notify(self, kind: str, message: str):
        self._manager._show(kind, message)

    @Slot(int, str)
    def _on_celebrate(self, streak_value: int, message: str):
        self.streak_celebrated.emit(streak_value, message)
        self._manager._show(INFO, f"🔥 {streak_value} - {message}")


class NotificationManager(LoggingNotifier):
    """
    Manages desktop notifications on top of the log.
    Uses the system tray when available, native commands otherwise.
    """

    TITLES = {
        INFO: "Study Focus",
        ERROR: "Study Focus - Error",
    }

    def __init__(self, parent: Optional[QObject] = None):
        self._bridge = _NotificationBridge(self, parent)
        self._tray_icon: Optional[QSystemTrayIcon] = None
        self._notification_enabled = True

    @property
    def streak_celebrated(self):
        """Signal(int, str) fired on the GUI thread for each celebration."""
        return self._bridge.streak_celebrated

    def set_tray_icon(self, tray_icon: QSystemTrayIcon):
        """Set the system tray icon for showing notifications."""
        self._tray_icon = tray_icon

    @property
    def notification_enabled(self) -> bool:
        return self._notification_enabled

    @notification_enabled.setter
    def notification_enabled(self, value: bool):
        self._notification_enabled = value

    def notify(self, kind: str, message: str):
        super().notify(kind, message)
        self._bridge.notify_requested.emit(kind, message)

    def celebrate_streak(self, streak_value: int, message: str):
        super().celebrate_streak(streak_value, message)
        self._bridge.celebrate_requested.emit(streak_value, message)

    def _show(self, kind: str, message: str):
        """Show a desktop notification."""
        if not self._notification_enabled:
            return

        title = self.TITLES.get(kind, self.TITLES[INFO])
        icon = (QSystemTrayIcon.MessageIcon.Critical if kind == ERROR
                else QSystemTrayIcon.MessageIcon.Information)

        if self._tray_icon is not None and QSystemTrayIcon.isSystemTrayAvailable():
            self._tray_icon.showMessage(title, message, icon, 3000)
        else:
            # Fallback: try native notification command
            self._show_native_notification(title, message)

    def _show_native_notification(self, title: str, message: str):
        """Show notification using native OS commands."""
        system = sys.platform.lower()

        try:
            if system == 'darwin':
                script = f'display notification "{message}" with title "{title}"'
                subprocess.run(
                    ['osascript', '-e', script],
                    capture_output=True,
                    timeout=5
                )
            elif system.startswith('linux'):
                subprocess.run(
                    ['notify-send', title, message],
                    capture_output=True,
                    timeout=5
                )
            # Windows notifications handled by tray icon
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Could not show notification: %s", e)


# Global instance
_notification_manager: Optional[NotificationManager] = None


def get_notification_manager() -> NotificationManager:
    """Get or create the global NotificationManager instance."""
    global _notification_manager
    if _notification_manager is None:
        _notification_manager = NotificationManager()
    return _notification_manager
