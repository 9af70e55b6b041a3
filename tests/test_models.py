import pytest

from focus_core.errors import ConfigurationError
from focus_core.models import TimerMode, TimerRuntimeState, TimerSettings, UserContext


def test_timer_settings_defaults():
    settings = TimerSettings()

    assert settings.focus_duration == 25
    assert settings.short_break == 5
    assert settings.long_break == 15
    assert settings.sessions_before_long_break == 4
    assert settings.auto_start_breaks is False
    assert settings.auto_start_pomodoros is False


@pytest.mark.parametrize("field", [
    "focus_duration", "short_break", "long_break", "sessions_before_long_break",
])
@pytest.mark.parametrize("value", [0, -5, 2.5, True])
def test_invalid_durations_rejected(field, value):
    with pytest.raises(ConfigurationError):
        TimerSettings(**{field: value})


def test_auto_start_flags_must_be_bool():
    with pytest.raises(ConfigurationError):
        TimerSettings(auto_start_breaks="yes")


def test_from_dict_ignores_unknown_keys_and_coerces_flags():
    settings = TimerSettings.from_dict({
        'user_id': 'user-1',
        'focus_duration': 50,
        'auto_start_breaks': 1,
        'updated_at': 1700000000,
    })

    assert settings == TimerSettings(focus_duration=50, auto_start_breaks=True)


def test_duration_seconds_per_mode():
    settings = TimerSettings(focus_duration=30, short_break=6, long_break=20)

    assert settings.duration_seconds(TimerMode.FOCUS) == 1800
    assert settings.duration_seconds(TimerMode.BREAK) == 360


@pytest.mark.parametrize("seconds, expected", [
    (1500, "25:00"),
    (61, "01:01"),
    (9, "00:09"),
    (0, "00:00"),
    (6000, "100:00"),
])
def test_format_remaining(seconds, expected):
    state = TimerRuntimeState(seconds_remaining=seconds, total_seconds=6000)
    assert state.format_remaining() == expected


def test_progress_of_empty_state_is_zero():
    assert TimerRuntimeState().progress_percentage == 0.0


def test_user_context_scopes():
    anonymous = UserContext()
    signed_in = UserContext(user_id="user-1", email="grace@example.com")

    assert anonymous.is_authenticated is False
    assert anonymous.storage_key == "local"
    assert anonymous.display_name == "User"
    assert signed_in.storage_key == "user-1"
    assert signed_in.display_name == "grace"
