"""
Settings page widget for the Study Focus application.
Edits the timer durations and shows profile statistics.
"""

from typing import Optional
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QFormLayout, QLabel, QCheckBox,
    QGroupBox, QSpinBox, QLineEdit, QPushButton
)
from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtGui import QFont

from focus_core.config import get_app_data_dir
from focus_core.errors import ConfigurationError
from focus_core.ledger import SessionLedger
from focus_core.models import Profile, TimerSettings
from focus_core.notifications import ERROR, Notifier
from focus_core.settings_store import SettingsStore


class SettingsPage(QWidget):
    """
    Settings page for configuring the timer.

    Signals:
        sign_out_requested: Emitted when the user presses "Sign Out"
    """

    sign_out_requested = Signal()

    def __init__(
        self,
        settings_store: SettingsStore,
        ledger: SessionLedger,
        notifier: Notifier,
        parent: Optional[QWidget] = None
    ):
        super().__init__(parent)

        self.settings_store = settings_store
        self.ledger = ledger
        self.notifier = notifier

        self._setup_ui()
        self._load_settings(self.settings_store.timer_settings)
        self._connect_signals()
        self._on_profile_changed(self.ledger.profile)

    def _setup_ui(self):
        """Set up the UI components."""
        layout = QVBoxLayout(self)
        layout.setSpacing(20)
        layout.setContentsMargins(30, 30, 30, 30)

        header = QLabel("Settings")
        header_font = QFont()
        header_font.setPointSize(18)
        header_font.setBold(True)
        header.setFont(header_font)
        layout.addWidget(header)

        # Durations section
        timer_box = QGroupBox("Timer")
        timer_layout = QFormLayout(timer_box)

        self.focus_spin = self._minutes_spin(1, 180)
        timer_layout.addRow("Focus duration:", self.focus_spin)
        self.short_break_spin = self._minutes_spin(1, 60)
        timer_layout.addRow("Short break:", self.short_break_spin)
        self.long_break_spin = self._minutes_spin(1, 90)
        timer_layout.addRow("Long break:", self.long_break_spin)
        self.sessions_spin = QSpinBox()
        self.sessions_spin.setRange(1, 12)
        timer_layout.addRow("Sessions before long break:", self.sessions_spin)

        self.auto_break_check = QCheckBox("Auto-start breaks")
        timer_layout.addRow(self.auto_break_check)
        self.auto_focus_check = QCheckBox("Auto-start pomodoros")
        timer_layout.addRow(self.auto_focus_check)

        layout.addWidget(timer_box)

        # Profile section
        profile_box = QGroupBox("Profile")
        profile_layout = QVBoxLayout(profile_box)
        name_form = QFormLayout()
        self.name_edit = QLineEdit()
        self.name_edit.setPlaceholderText(self.settings_store.user.display_name)
        name_form.addRow("Display name:", self.name_edit)
        profile_layout.addLayout(name_form)
        self.stats_label = QLabel("")
        profile_layout.addWidget(self.stats_label)

        path_label = QLabel(f"Data location: {get_app_data_dir()}")
        path_label.setStyleSheet("color: #808080; font-size: 11px;")
        path_label.setWordWrap(True)
        path_label.setTextInteractionFlags(
            Qt.TextInteractionFlag.TextSelectableByMouse
        )
        profile_layout.addWidget(path_label)

        if self.settings_store.user.is_authenticated:
            self.sign_out_btn = QPushButton("Sign Out")
            self.sign_out_btn.setToolTip("Clear this session's totals and close the app")
            self.sign_out_btn.clicked.connect(self.sign_out_requested.emit)
            profile_layout.addWidget(self.sign_out_btn)

        layout.addWidget(profile_box)
        layout.addStretch()

    def _minutes_spin(self, low: int, high: int) -> QSpinBox:
        spin = QSpinBox()
        spin.setRange(low, high)
        spin.setSuffix(" min")
        return spin

    def _inputs(self):
        return [
            self.focus_spin, self.short_break_spin, self.long_break_spin,
            self.sessions_spin, self.auto_break_check, self.auto_focus_check,
        ]

    def _connect_signals(self):
        """Connect widget signals."""
        for spin in (self.focus_spin, self.short_break_spin,
                     self.long_break_spin, self.sessions_spin):
            spin.valueChanged.connect(self._on_setting_changed)
        self.auto_break_check.toggled.connect(self._on_setting_changed)
        self.auto_focus_check.toggled.connect(self._on_setting_changed)

        self.name_edit.editingFinished.connect(self._on_name_edited)

        self.settings_store.settings_changed.connect(self._load_settings)
        self.ledger.profile_changed.connect(self._on_profile_changed)

    @Slot(object)
    def _load_settings(self, settings: TimerSettings):
        """Show settings without writing them back."""
        # Block signals while loading to prevent save loops
        for widget in self._inputs():
            widget.blockSignals(True)

        self.focus_spin.setValue(settings.focus_duration)
        self.short_break_spin.setValue(settings.short_break)
        self.long_break_spin.setValue(settings.long_break)
        self.sessions_spin.setValue(settings.sessions_before_long_break)
        self.auto_break_check.setChecked(settings.auto_start_breaks)
        self.auto_focus_check.setChecked(settings.auto_start_pomodoros)

        for widget in self._inputs():
            widget.blockSignals(False)

    @Slot()
    def _on_setting_changed(self):
        """Handle settings change."""
        try:
            self.settings_store.update_timer_settings(
                focus_duration=self.focus_spin.value(),
                short_break=self.short_break_spin.value(),
                long_break=self.long_break_spin.value(),
                sessions_before_long_break=self.sessions_spin.value(),
                auto_start_breaks=self.auto_break_check.isChecked(),
                auto_start_pomodoros=self.auto_focus_check.isChecked(),
            )
        except ConfigurationError as e:
            self.notifier.notify(ERROR, str(e))
            self._load_settings(self.settings_store.timer_settings)

    @Slot()
    def _on_name_edited(self):
        name = self.name_edit.text().strip()
        if not name or name == self.settings_store.profile_settings.full_name:
            return
        # Save failures are reported by the store
        self.settings_store.update_profile_settings(full_name=name)

    @Slot(object)
    def _on_profile_changed(self, profile: Profile):
        if not self.name_edit.hasFocus():
            self.name_edit.setText(self.settings_store.profile_settings.full_name or "")
        self.stats_label.setText(
            f"Streak: {profile.streak_days} days • "
            f"Study time: {profile.total_study_minutes // 60}h {profile.total_study_minutes % 60}m"
        )
