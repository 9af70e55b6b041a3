"""
Main window for the Study Focus application.
Builds the engine components for the signed-in user and hosts the pages.
"""

import uuid
from typing import Optional
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QTabWidget,
    QSystemTrayIcon, QMenu, QApplication
)
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QIcon, QAction, QCloseEvent, QPixmap, QPainter, QColor

from focus_core.clock import QtClock
from focus_core.errors import PersistenceError
from focus_core.ledger import SessionLedger
from focus_core.logging_handler import setup_logger
from focus_core.models import Task, TimerMode, TimerRuntimeState, UserContext
from focus_core.notifications import ERROR, INFO, get_notification_manager
from focus_core.settings_store import SettingsStore
from focus_core.storage import Storage
from focus_core.timer_engine import TimerEngine

from .settings_page import SettingsPage
from .streak_dialog import StreakCelebrationDialog
from .timer_page import TimerPage

logger = setup_logger(__name__)


def create_app_icon() -> QIcon:
    """Create a simple app icon programmatically."""
    sizes = [16, 32, 48, 64]
    icon = QIcon()

    for size in sizes:
        pixmap = QPixmap(size, size)
        pixmap.fill(Qt.GlobalColor.transparent)

        painter = QPainter(pixmap)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        # Flame-coloured disc with a white core
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QColor("#FF7043"))
        margin = size // 8
        painter.drawEllipse(margin, margin, size - 2*margin, size - 2*margin)

        inner_margin = size // 3
        painter.setBrush(QColor("white"))
        painter.drawEllipse(
            inner_margin, inner_margin,
            size - 2*inner_margin, size - 2*inner_margin
        )

        painter.end()
        icon.addPixmap(pixmap)

    return icon


class MainWindow(QMainWindow):
    """
    Main application window with tabbed interface.
    """

    def __init__(self, user: UserContext, storage: Optional[Storage] = None):
        super().__init__()

        self.user = user
        self.storage = storage or Storage()
        self.notifier = get_notification_manager()
        self.clock = QtClock(self)

        self.settings_store = SettingsStore(self.user, self.storage, self.notifier, parent=self)
        self.ledger = SessionLedger(self.user, self.storage, self.notifier, self.clock, parent=self)
        self.timer_engine = TimerEngine(self.settings_store, self.clock, parent=self)

        self.setWindowTitle("Study Focus")
        self.setMinimumSize(700, 550)
        self.resize(800, 620)

        self.app_icon = create_app_icon()
        self.setWindowIcon(self.app_icon)

        self._setup_ui()
        self._setup_tray()
        self._connect_signals()

        # Pages listen for these updates, so load after wiring
        self.settings_store.load()
        self.ledger.load()
        self.ledger.check_daily_activity()

    def _setup_ui(self):
        """Set up the main UI."""
        central = QWidget()
        self.setCentralWidget(central)

        layout = QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)

        self.tabs = QTabWidget()
        self.tabs.setDocumentMode(True)

        tasks = self.storage.list_tasks(self.user.storage_key)
        self.timer_page = TimerPage(self.timer_engine, self.ledger, tasks)
        self.settings_page = SettingsPage(self.settings_store, self.ledger, self.notifier)

        self.tabs.addTab(self.timer_page, "Timer")
        self.tabs.addTab(self.settings_page, "Settings")

        layout.addWidget(self.tabs)

        self.streak_dialog = StreakCelebrationDialog(self)

    def _setup_tray(self):
        """Set up system tray icon."""
        if not QSystemTrayIcon.isSystemTrayAvailable():
            return

        self.tray_icon = QSystemTrayIcon(self.app_icon, self)
        self.tray_icon.setToolTip("Study Focus")

        tray_menu = QMenu()

        show_action = QAction("Show", self)
        show_action.triggered.connect(self._show_window)
        tray_menu.addAction(show_action)

        tray_menu.addSeparator()

        self.tray_toggle_action = QAction("Start", self)
        self.tray_toggle_action.triggered.connect(self.timer_engine.toggle)
        tray_menu.addAction(self.tray_toggle_action)

        reset_action = QAction("Reset", self)
        reset_action.triggered.connect(self.timer_engine.reset)
        tray_menu.addAction(reset_action)

        tray_menu.addSeparator()

        quit_action = QAction("Quit", self)
        quit_action.triggered.connect(self._quit_app)
        tray_menu.addAction(quit_action)

        self.tray_icon.setContextMenu(tray_menu)
        self.tray_icon.activated.connect(self._on_tray_activated)
        self.tray_icon.show()

        self.notifier.set_tray_icon(self.tray_icon)

    def _connect_signals(self):
        """Connect signals from various components."""
        self.timer_engine.session_completed.connect(self.ledger.on_session_completed)
        self.timer_engine.ticked.connect(self._on_timer_tick)
        self.notifier.streak_celebrated.connect(self.streak_dialog.celebrate)
        self.timer_page.task_added.connect(self._add_task)
        self.settings_page.sign_out_requested.connect(self._sign_out)

    @Slot(str)
    def _add_task(self, title: str):
        """Store a new todo task and refresh the current-task panel."""
        task = Task(id=uuid.uuid4().hex, title=title, created_at=self.clock.now())
        try:
            self.storage.add_task(self.user.storage_key, task)
            tasks = self.storage.list_tasks(self.user.storage_key)
        except PersistenceError as e:
            logger.error("Error adding task: %s", e)
            self.notifier.notify(ERROR, "Could not add the task.")
            return
        self.timer_page.refresh_tasks(tasks)

    @Slot()
    def _sign_out(self):
        """Clear the signed-in user's state and close the app."""
        logger.info("Signing out %s", self.user.storage_key)
        self.timer_engine.pause()
        self.ledger.reset_for_sign_out()
        self.timer_page.refresh_tasks([])
        self.notifier.notify(INFO, "Signed out.")
        self._quit_app()

    @Slot(object)
    def _on_timer_tick(self, state: TimerRuntimeState):
        """Handle timer tick for tray updates."""
        if not hasattr(self, 'tray_icon'):
            return
        mode_name = "Focus" if state.mode == TimerMode.FOCUS else "Break"
        status = "" if state.is_running else " (paused)"
        self.tray_icon.setToolTip(
            f"Study Focus - {mode_name}{status}\n{state.format_remaining()}"
        )
        self.tray_toggle_action.setText("Pause" if state.is_running else "Start")

    @Slot(QSystemTrayIcon.ActivationReason)
    def _on_tray_activated(self, reason: QSystemTrayIcon.ActivationReason):
        """Handle tray icon activation."""
        if reason == QSystemTrayIcon.ActivationReason.DoubleClick:
            self._show_window()

    @Slot()
    def _show_window(self):
        """Show and bring window to front."""
        self.show()
        self.raise_()
        self.activateWindow()

    @Slot()
    def _quit_app(self):
        """Quit the application."""
        self._cleanup()
        QApplication.quit()

    def closeEvent(self, event: QCloseEvent):
        """Handle window close event."""
        # Minimize to tray instead of closing if timer is running
        if self.timer_engine.is_running:
            if hasattr(self, 'tray_icon') and self.tray_icon.isVisible():
                event.ignore()
                self.hide()
                self.tray_icon.showMessage(
                    "Study Focus",
                    "Timer still running. Click tray icon to show window.",
                    QSystemTrayIcon.MessageIcon.Information,
                    2000
                )
                return

        self._cleanup()
        event.accept()

    def _cleanup(self):
        """Clean up resources before exit."""
        logger.info("Shutting down")
        self.timer_engine.cleanup()

        # Let queued writes land before the process exits
        self.ledger.shutdown()
        self.settings_store.shutdown()

        if hasattr(self, 'tray_icon'):
            self.tray_icon.hide()
