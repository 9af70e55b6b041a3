"""
Timer engine for the Study Focus application.
Implements the focus/break countdown state machine.
"""

from typing import Optional

from PySide6.QtCore import QObject, Signal

from .clock import CancelHandle, Clock
from .logging_handler import setup_logger
from .models import SessionCompleted, TimerMode, TimerRuntimeState, TimerSettings
from .settings_store import SettingsStore

logger = setup_logger(__name__)


class TimerEngine(QObject):
    """
    Core timer engine implementing a two-mode state machine.

    Modes:
        FOCUS: Counting down a focus interval
        BREAK: Counting down a break interval
    Each mode is either running or paused. The engine starts in FOCUS, paused.

    Signals:
        ticked: Emitted with a TimerRuntimeState after every state change
        mode_changed: Emitted when the mode switches (old_mode, new_mode)
        running_changed: Emitted when the timer starts or stops
        session_completed: Emitted with a SessionCompleted when a focus interval reaches zero
    """

    ticked = Signal(object)
    mode_changed = Signal(object, object)
    running_changed = Signal(bool)
    session_completed = Signal(object)

    def __init__(
        self,
        settings_store: SettingsStore,
        clock: Clock,
        parent: Optional[QObject] = None
    ):
        """
        Initialize the timer engine.

        Args:
            settings_store: Source of the configured durations.
            clock: Provides the current time and the one-second tick.
            parent: Optional Qt parent object.
        """
        super().__init__(parent)

        self.settings_store = settings_store
        self.clock = clock

        self._mode = TimerMode.FOCUS
        self._is_running = False
        self._seconds_remaining = self._settings.duration_seconds(TimerMode.FOCUS)
        self._tick_handle: Optional[CancelHandle] = None

        self.settings_store.settings_changed.connect(self._on_settings_changed)

    @property
    def _settings(self) -> TimerSettings:
        return self.settings_store.timer_settings

    @property
    def mode(self) -> TimerMode:
        return self._mode

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def seconds_remaining(self) -> int:
        return self._seconds_remaining

    @property
    def total_seconds(self) -> int:
        """Configured length of the current mode, from the current settings."""
        return self._settings.duration_seconds(self._mode)

    def snapshot(self) -> TimerRuntimeState:
        return TimerRuntimeState(
            mode=self._mode,
            seconds_remaining=self._seconds_remaining,
            is_running=self._is_running,
            total_seconds=self.total_seconds,
        )

    def progress(self) -> float:
        """Percentage of the current mode already elapsed."""
        total = self.total_seconds
        return (total - self._seconds_remaining) / total * 100

    def set_mode(self, mode: TimerMode):
        """Switch mode, stop, and restart the countdown. In-flight progress is discarded."""
        old_mode = self._mode
        self._set_running(False)
        self._mode = mode
        self._seconds_remaining = self._settings.duration_seconds(mode)

        if old_mode != mode:
            self.mode_changed.emit(old_mode, mode)
        self.ticked.emit(self.snapshot())

    def toggle(self):
        """Start a paused timer or pause a running one."""
        self._set_running(not self._is_running)
        self.ticked.emit(self.snapshot())

    def start(self):
        if not self._is_running:
            self.toggle()

    def pause(self):
        if self._is_running:
            self.toggle()

    def reset(self):
        """Stop and restore the full duration of the current mode."""
        self._set_running(False)
        self._seconds_remaining = self._settings.duration_seconds(self._mode)
        self.ticked.emit(self.snapshot())

    def tick(self):
        """
        Advance the countdown by one second.
        Reaching zero completes the current mode.
        """
        if not self._is_running:
            return

        if self._seconds_remaining > 0:
            self._seconds_remaining -= 1

        if self._seconds_remaining == 0:
            self._on_mode_complete()
        else:
            self.ticked.emit(self.snapshot())

    def _on_mode_complete(self):
        """
        Handle completion of the current mode.
        Completion always stops the timer; auto-start settings are not consulted.
        """
        settings = self._settings
        old_mode = self._mode

        if old_mode == TimerMode.FOCUS:
            event = SessionCompleted(
                focus_minutes=settings.focus_duration,
                completed_at=self.clock.now()
            )
            logger.info("Focus session completed (%d min)", event.focus_minutes)
            self.session_completed.emit(event)
            self._mode = TimerMode.BREAK
        else:
            logger.info("Break completed")
            self._mode = TimerMode.FOCUS

        self._seconds_remaining = settings.duration_seconds(self._mode)
        self._set_running(False)

        self.mode_changed.emit(old_mode, self._mode)
        self.ticked.emit(self.snapshot())

    def _on_settings_changed(self, settings: TimerSettings):
        """Resize a paused countdown; a running one keeps its in-flight value."""
        if self._is_running:
            return
        self._seconds_remaining = settings.duration_seconds(self._mode)
        self.ticked.emit(self.snapshot())

    def _set_running(self, running: bool):
        if running == self._is_running:
            return

        self._is_running = running
        if running:
            self._tick_handle = self.clock.schedule_every_one_second(self.tick)
        elif self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

        self.running_changed.emit(running)

    def cleanup(self):
        """Cleanup resources. Call before application exit."""
        self._set_running(False)
