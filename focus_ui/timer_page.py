"""
Timer page widget for the Study Focus application.
Contains the countdown display, controls, weekly streak and current task.
"""

from typing import List, Optional
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QGroupBox, QFrame, QProgressBar, QLineEdit
)
from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtGui import QFont

from focus_core.focus_task import progress_overview, select_focus_task
from focus_core.ledger import SessionLedger
from focus_core.models import Profile, Task, TimerMode, TimerRuntimeState
from focus_core.timer_engine import TimerEngine

MODE_COLORS = {
    TimerMode.FOCUS: ("#66BB6A", "FOCUS"),
    TimerMode.BREAK: ("#42A5F5", "BREAK"),
}

BUTTON_STYLE = """
    QPushButton {
        background-color: %s;
        color: white;
        border: none;
        border-radius: 5px;
        font-size: 14px;
        font-weight: bold;
    }
    QPushButton:hover {
        background-color: %s;
    }
"""


class TimerPage(QWidget):
    """
    Main timer page with countdown display and controls.

    Signals:
        task_added: Emitted with the title typed into the quick-add field
    """

    task_added = Signal(str)

    def __init__(
        self,
        timer_engine: TimerEngine,
        ledger: SessionLedger,
        tasks: List[Task],
        parent: Optional[QWidget] = None
    ):
        super().__init__(parent)

        self.timer_engine = timer_engine
        self.ledger = ledger
        self._tasks = tasks

        self._setup_ui()
        self._connect_signals()

        self._on_tick(self.timer_engine.snapshot())
        self._on_mode_changed(self.timer_engine.mode, self.timer_engine.mode)
        self._on_profile_changed(self.ledger.profile)
        self._on_weekly_activity_changed(self.ledger.weekly_activity)
        self.refresh_tasks(tasks)

    def _setup_ui(self):
        """Set up the UI components."""
        layout = QVBoxLayout(self)
        layout.setSpacing(20)
        layout.setContentsMargins(30, 30, 30, 30)

        # Mode selector
        mode_layout = QHBoxLayout()
        self.focus_mode_btn = QPushButton("Focus")
        self.break_mode_btn = QPushButton("Break")
        for btn in (self.focus_mode_btn, self.break_mode_btn):
            btn.setCheckable(True)
            btn.setMinimumSize(100, 32)
            mode_layout.addWidget(btn)
        layout.addLayout(mode_layout)

        # Mode label (FOCUS / BREAK)
        self.mode_label = QLabel("FOCUS")
        self.mode_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        mode_font = QFont()
        mode_font.setPointSize(18)
        mode_font.setBold(True)
        self.mode_label.setFont(mode_font)
        layout.addWidget(self.mode_label)

        # Big countdown display
        self.time_label = QLabel("25:00")
        self.time_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        time_font = QFont()
        time_font.setPointSize(72)
        time_font.setBold(True)
        self.time_label.setFont(time_font)
        self.time_label.setMinimumHeight(120)
        layout.addWidget(self.time_label)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setTextVisible(False)
        layout.addWidget(self.progress_bar)

        # Control buttons
        button_layout = QHBoxLayout()
        button_layout.setSpacing(15)

        self.toggle_btn = QPushButton("Start")
        self.toggle_btn.setMinimumSize(120, 45)
        self.toggle_btn.setStyleSheet(BUTTON_STYLE % ("#4CAF50", "#45a049"))
        button_layout.addWidget(self.toggle_btn)

        self.reset_btn = QPushButton("Reset")
        self.reset_btn.setMinimumSize(100, 45)
        self.reset_btn.setStyleSheet(BUTTON_STYLE % ("#9E9E9E", "#757575"))
        button_layout.addWidget(self.reset_btn)

        layout.addLayout(button_layout)

        line = QFrame()
        line.setFrameShape(QFrame.Shape.HLine)
        line.setFrameShadow(QFrame.Shadow.Sunken)
        layout.addWidget(line)

        # Dashboard
        dashboard = QHBoxLayout()
        dashboard.setSpacing(20)

        task_box = QGroupBox("Current Task")
        task_layout = QVBoxLayout(task_box)
        self.task_label = QLabel("No tasks yet")
        self.task_label.setWordWrap(True)
        task_layout.addWidget(self.task_label)
        self.overview_label = QLabel("")
        self.overview_label.setStyleSheet("color: #a0a0a0;")
        task_layout.addWidget(self.overview_label)
        self.task_input = QLineEdit()
        self.task_input.setPlaceholderText("Add a task and press Enter")
        task_layout.addWidget(self.task_input)
        dashboard.addWidget(task_box)

        streak_box = QGroupBox("Weekly Streak")
        streak_layout = QVBoxLayout(streak_box)
        self.streak_summary_label = QLabel("")
        streak_layout.addWidget(self.streak_summary_label)
        days_layout = QHBoxLayout()
        self.day_labels: List[QLabel] = []
        for _ in range(7):
            day_label = QLabel("")
            day_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            days_layout.addWidget(day_label)
            self.day_labels.append(day_label)
        streak_layout.addLayout(days_layout)
        self.profile_label = QLabel("")
        self.profile_label.setStyleSheet("color: #a0a0a0;")
        streak_layout.addWidget(self.profile_label)
        dashboard.addWidget(streak_box)

        layout.addLayout(dashboard)
        layout.addStretch()

    def _connect_signals(self):
        """Connect widget signals to slots."""
        self.timer_engine.ticked.connect(self._on_tick)
        self.timer_engine.mode_changed.connect(self._on_mode_changed)
        self.ledger.profile_changed.connect(self._on_profile_changed)
        self.ledger.weekly_activity_changed.connect(self._on_weekly_activity_changed)

        self.toggle_btn.clicked.connect(self.timer_engine.toggle)
        self.reset_btn.clicked.connect(self.timer_engine.reset)
        self.focus_mode_btn.clicked.connect(lambda: self.timer_engine.set_mode(TimerMode.FOCUS))
        self.break_mode_btn.clicked.connect(lambda: self.timer_engine.set_mode(TimerMode.BREAK))
        self.task_input.returnPressed.connect(self._on_task_entered)

    @Slot()
    def _on_task_entered(self):
        title = self.task_input.text().strip()
        if title:
            self.task_added.emit(title)
            self.task_input.clear()

    def refresh_tasks(self, tasks: List[Task]):
        """Re-derive the current task and progress overview."""
        self._tasks = tasks
        task = select_focus_task(tasks)
        self.task_label.setText(task.title if task else "No tasks yet")
        self._update_overview()

    def _update_overview(self):
        overview = progress_overview(self._tasks, self.ledger.total_study_minutes)
        self.overview_label.setText(
            f"{overview['completed']}/{overview['total_tasks']} done • "
            f"{overview['in_progress']} in progress • "
            f"{overview['overall_progress']:.0f}% • {overview['study_hours']}h studied"
        )

    @Slot(object)
    def _on_tick(self, state: TimerRuntimeState):
        """Handle timer tick - update display."""
        self.time_label.setText(state.format_remaining())
        self.progress_bar.setValue(int(max(0.0, min(100.0, state.progress_percentage))))
        self.toggle_btn.setText("Pause" if state.is_running else "Start")

    @Slot(object, object)
    def _on_mode_changed(self, old_mode: TimerMode, new_mode: TimerMode):
        """Handle mode change - update colors and mode buttons."""
        color, text = MODE_COLORS[new_mode]
        self.mode_label.setText(text)
        self.mode_label.setStyleSheet(f"color: {color}; font-size: 20px;")
        self.time_label.setStyleSheet(f"color: {color}; font-size: 80px;")
        self.focus_mode_btn.setChecked(new_mode == TimerMode.FOCUS)
        self.break_mode_btn.setChecked(new_mode == TimerMode.BREAK)

    @Slot(object)
    def _on_profile_changed(self, profile: Profile):
        self.profile_label.setText(
            f"🔥 {profile.streak_days} day streak • "
            f"{profile.total_study_minutes} min total"
        )
        self._update_overview()

    @Slot(object)
    def _on_weekly_activity_changed(self, weekly: List[int]):
        summary = self.ledger.weekly_summary()
        self.streak_summary_label.setText(
            f"{summary['days_active']} days active • "
            f"{summary['total_sessions']} focus sessions"
        )
        for label, day in zip(self.day_labels, summary['days']):
            label.setText(f"{day['day']}\n{day['sessions']}")
            label.setToolTip(day['label'])
