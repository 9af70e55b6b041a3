# UI module for Study Focus application
from .main_window import MainWindow
from .timer_page import TimerPage
from .settings_page import SettingsPage
from .streak_dialog import StreakCelebrationDialog

__all__ = ['MainWindow', 'TimerPage', 'SettingsPage', 'StreakCelebrationDialog']
