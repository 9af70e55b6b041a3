"""
Settings store for the Study Focus application.
Holds the current user's timer configuration and profile metadata.

Authenticated users read and write through the persistence backend; the
anonymous (demo mode) user keeps timer settings in local scoped storage.
Every update is applied in memory first and persisted in the background.
"""

import dataclasses
import json
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from PySide6.QtCore import QObject, Signal

from .config import SETTINGS_FETCH_TIMEOUT_SEC
from .errors import ConfigurationError, PersistenceError
from .logging_handler import setup_logger
from .models import ProfileSettings, TimerSettings, UserContext
from .notifications import ERROR, LoggingNotifier, Notifier
from .storage import PersistenceBackend

logger = setup_logger(__name__)

LOCAL_TIMER_SETTINGS_KEY = "timerSettings"


class SettingsStore(QObject):
    """
    Source of truth for timer durations.

    Signals:
        settings_changed: Emitted with the new TimerSettings after every update
    """

    settings_changed = Signal(object)

    def __init__(
        self,
        user: UserContext,
        backend: PersistenceBackend,
        notifier: Optional[Notifier],
        executor: Optional[Executor] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)

        self.user = user
        self.backend = backend
        self.notifier = notifier or LoggingNotifier()
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="settings"
        )

        self._timer_settings = TimerSettings()
        self._profile_settings = ProfileSettings()
        self.loading = True

    @property
    def timer_settings(self) -> TimerSettings:
        return self._timer_settings

    @property
    def profile_settings(self) -> ProfileSettings:
        return self._profile_settings

    def load(self, timeout: float = SETTINGS_FETCH_TIMEOUT_SEC):
        """
        Load settings for the current user.
        Falls back to defaults (and tells the user) when the fetch fails
        or takes longer than `timeout` seconds.
        """
        try:
            if not self.user.is_authenticated:
                self._load_local()
                return

            future = self._executor.submit(self._fetch_remote)
            try:
                timer_settings, profile_settings = future.result(timeout=timeout)
            except FutureTimeoutError:
                logger.error("Settings fetch for %s timed out after %.0fs",
                             self.user.user_id, timeout)
                self.notifier.notify(
                    ERROR, "Network Timeout: using default values. Your changes may not save."
                )
                return
            except (PersistenceError, ConfigurationError) as e:
                logger.error("Error fetching settings: %s", e)
                self.notifier.notify(
                    ERROR, "Error loading settings: using default values. Your changes may not save."
                )
                return

            self._profile_settings = profile_settings
            self._set_timer_settings(timer_settings)
        finally:
            self.loading = False

    def _fetch_remote(self):
        """Runs on the executor. Initialises missing rows with defaults."""
        user_id = self.user.user_id

        timer_settings = self.backend.get_timer_settings(user_id)
        if timer_settings is None:
            timer_settings = TimerSettings()
            try:
                self.backend.upsert_timer_settings(user_id, timer_settings)
            except PersistenceError as e:
                logger.error("Failed to init settings: %s", e)

        profile_settings = self.backend.get_profile_settings(user_id)
        if profile_settings is None:
            profile_settings = ProfileSettings(full_name=self.user.display_name)

        return timer_settings, profile_settings

    def _load_local(self):
        raw = self.backend.get_local_value(LOCAL_TIMER_SETTINGS_KEY)
        if raw is None:
            return
        try:
            settings = TimerSettings.from_dict(json.loads(raw))
        except (ValueError, TypeError) as e:
            # ConfigurationError is a ValueError, as is a JSON decode failure
            logger.error("Failed to parse local settings: %s", e)
            return
        self._set_timer_settings(settings)

    def _set_timer_settings(self, settings: TimerSettings):
        self._timer_settings = settings
        self.settings_changed.emit(settings)

    def update_timer_settings(self, **partial) -> Future:
        """
        Apply a partial update and persist it in the background.

        Raises:
            ConfigurationError: unknown field or invalid value; nothing is applied.
        """
        unknown = set(partial) - set(TimerSettings.field_names())
        if unknown:
            raise ConfigurationError(f"Unknown timer settings: {sorted(unknown)}")

        new_settings = dataclasses.replace(self._timer_settings, **partial)
        self._set_timer_settings(new_settings)
        logger.debug("Timer settings updated: %s", new_settings)

        return self._executor.submit(self._persist_timer_settings, new_settings)

    def _persist_timer_settings(self, settings: TimerSettings) -> bool:
        try:
            if self.user.is_authenticated:
                self.backend.upsert_timer_settings(self.user.user_id, settings)
            else:
                self.backend.set_local_value(
                    LOCAL_TIMER_SETTINGS_KEY, json.dumps(settings.to_dict())
                )
        except PersistenceError as e:
            logger.error("Error saving timer settings: %s", e)
            self.notifier.notify(ERROR, "Sync Failed: could not save settings.")
            raise
        return True

    def update_profile_settings(self, **partial) -> Future:
        """Apply a partial profile metadata update and persist it in the background."""
        unknown = set(partial) - set(self._profile_settings.to_dict())
        if unknown:
            raise ConfigurationError(f"Unknown profile settings: {sorted(unknown)}")

        self._profile_settings = dataclasses.replace(self._profile_settings, **partial)
        return self._executor.submit(self._persist_profile_settings, dict(partial))

    def _persist_profile_settings(self, partial: dict) -> bool:
        if not self.user.is_authenticated:
            return True
        try:
            self.backend.update_profile(self.user.user_id, partial)
        except PersistenceError as e:
            logger.error("Error saving profile settings: %s", e)
            self.notifier.notify(ERROR, "Sync Failed: could not update profile.")
            raise
        return True

    def shutdown(self):
        self._executor.shutdown(wait=True)
