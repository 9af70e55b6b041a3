import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from focus_core.errors import ConfigurationError, PersistenceError
from focus_core.models import TimerSettings
from focus_core.settings_store import LOCAL_TIMER_SETTINGS_KEY, SettingsStore
from focus_core.storage import Storage


class SlowStorage(Storage):
    """Blocks settings reads until released."""

    def __init__(self, db_path):
        super().__init__(db_path)
        self.release = threading.Event()

    def get_timer_settings(self, user_id):
        self.release.wait(5)
        return super().get_timer_settings(user_id)


class BrokenStorage(Storage):

    def get_timer_settings(self, user_id):
        raise PersistenceError("connection refused")

    def upsert_timer_settings(self, user_id, settings):
        raise PersistenceError("connection refused")


def test_anonymous_load_without_saved_settings_keeps_defaults(settings_store):
    settings_store.load()

    assert settings_store.timer_settings == TimerSettings()
    assert settings_store.loading is False


def test_update_emits_settings_changed(settings_store):
    received = []
    settings_store.settings_changed.connect(lambda s: received.append(s))

    settings_store.update_timer_settings(focus_duration=50)

    assert received == [TimerSettings(focus_duration=50)]


def test_invalid_update_changes_nothing(settings_store):
    received = []
    settings_store.settings_changed.connect(lambda s: received.append(s))

    with pytest.raises(ConfigurationError):
        settings_store.update_timer_settings(focus_duration=0)
    with pytest.raises(ConfigurationError):
        settings_store.update_timer_settings(pomodoro_length=30)

    assert settings_store.timer_settings == TimerSettings()
    assert received == []


def test_anonymous_settings_persist_locally(anonymous, storage, notifier, executor, settings_store):
    settings_store.update_timer_settings(focus_duration=45, auto_start_breaks=True).result()

    assert json.loads(storage.get_local_value(LOCAL_TIMER_SETTINGS_KEY))['focus_duration'] == 45

    reloaded = SettingsStore(anonymous, storage, notifier, executor=executor)
    reloaded.load()
    assert reloaded.timer_settings == TimerSettings(focus_duration=45, auto_start_breaks=True)


def test_unparsable_local_settings_are_ignored(settings_store, storage):
    storage.set_local_value(LOCAL_TIMER_SETTINGS_KEY, "{not json")

    settings_store.load()

    assert settings_store.timer_settings == TimerSettings()


def test_invalid_local_settings_are_ignored(settings_store, storage):
    storage.set_local_value(LOCAL_TIMER_SETTINGS_KEY, json.dumps({"focus_duration": -1}))

    settings_store.load()

    assert settings_store.timer_settings == TimerSettings()


def test_authenticated_load_initialises_missing_settings(user, storage, notifier, executor):
    store = SettingsStore(user, storage, notifier, executor=executor)

    store.load()

    assert store.timer_settings == TimerSettings()
    assert storage.get_timer_settings(user.user_id) == TimerSettings()
    assert store.profile_settings.full_name == "ada"


def test_authenticated_load_reads_saved_settings(user, storage, notifier, executor):
    storage.upsert_timer_settings(user.user_id, TimerSettings(focus_duration=40, short_break=8))
    store = SettingsStore(user, storage, notifier, executor=executor)

    store.load()

    assert store.timer_settings.focus_duration == 40
    assert store.timer_settings.short_break == 8


def test_authenticated_update_is_upserted(user, storage, notifier, executor):
    store = SettingsStore(user, storage, notifier, executor=executor)
    store.load()

    store.update_timer_settings(short_break=10).result()

    assert storage.get_timer_settings(user.user_id).short_break == 10


def test_load_timeout_falls_back_to_defaults(tmp_path, user, notifier):
    backend = SlowStorage(str(tmp_path / "slow.db"))
    backend.upsert_timer_settings(user.user_id, TimerSettings(focus_duration=60))
    executor = ThreadPoolExecutor(max_workers=1)
    store = SettingsStore(user, backend, notifier, executor=executor)

    try:
        store.load(timeout=0.05)
    finally:
        backend.release.set()
        executor.shutdown(wait=True)

    assert store.timer_settings == TimerSettings()
    assert store.loading is False
    assert any("Network Timeout" in message for message in notifier.errors)


def test_load_error_falls_back_to_defaults(tmp_path, user, notifier, executor):
    store = SettingsStore(user, BrokenStorage(str(tmp_path / "broken.db")), notifier, executor=executor)

    store.load()

    assert store.timer_settings == TimerSettings()
    assert any("Error loading settings" in message for message in notifier.errors)


def test_failed_save_keeps_new_settings(tmp_path, user, notifier, executor):
    store = SettingsStore(user, BrokenStorage(str(tmp_path / "broken.db")), notifier, executor=executor)

    future = store.update_timer_settings(focus_duration=35)

    with pytest.raises(PersistenceError):
        future.result()
    assert store.timer_settings.focus_duration == 35
    assert any("Sync Failed" in message for message in notifier.errors)


def test_update_profile_settings(user, storage, notifier, executor):
    store = SettingsStore(user, storage, notifier, executor=executor)

    store.update_profile_settings(full_name="Ada L", avatar_type="panda").result()

    assert store.profile_settings.full_name == "Ada L"
    assert storage.get_profile_settings(user.user_id).avatar_type == "panda"


def test_default_notifier_writes_to_log(tmp_path, user, executor, caplog):
    store = SettingsStore(user, BrokenStorage(str(tmp_path / "broken.db")), None, executor=executor)

    with caplog.at_level(logging.INFO):
        store.load()

    assert any("Error loading settings" in record.getMessage() for record in caplog.records)
