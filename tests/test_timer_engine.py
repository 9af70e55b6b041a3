"""Tests for the focus/break countdown state machine."""

import pytest

from focus_core.models import SessionCompleted, TimerMode


def collect_sessions(engine):
    events = []
    engine.session_completed.connect(lambda event: events.append(event))
    return events


def run_down_to(engine, seconds_left: int):
    while engine.is_running and engine.seconds_remaining > seconds_left:
        engine.tick()


def test_initial_state_is_paused_focus(engine):
    assert engine.mode == TimerMode.FOCUS
    assert engine.is_running is False
    assert engine.seconds_remaining == 25 * 60
    assert engine.progress() == 0


def test_tick_while_paused_does_nothing(engine):
    engine.tick()
    assert engine.seconds_remaining == 1500


def test_countdown_decreases_by_one_per_tick(engine):
    engine.toggle()
    seen = []
    for _ in range(10):
        engine.tick()
        seen.append(engine.seconds_remaining)

    assert seen == list(range(1499, 1489, -1))


def test_countdown_never_goes_negative(settings_store, engine):
    settings_store.update_timer_settings(focus_duration=1)
    engine.toggle()

    for _ in range(200):
        engine.tick()
        assert engine.seconds_remaining >= 0


def test_focus_completion_switches_to_break(settings_store, engine, clock):
    settings_store.update_timer_settings(focus_duration=1, short_break=5)
    events = collect_sessions(engine)
    engine.toggle()
    run_down_to(engine, 1)
    assert engine.mode == TimerMode.FOCUS

    engine.tick()

    assert engine.mode == TimerMode.BREAK
    assert engine.seconds_remaining == 5 * 60
    assert engine.is_running is False
    assert events == [SessionCompleted(focus_minutes=1, completed_at=clock.now())]


def test_break_completion_returns_to_focus_without_session(engine):
    events = collect_sessions(engine)
    engine.set_mode(TimerMode.BREAK)
    engine.toggle()
    run_down_to(engine, 1)

    engine.tick()

    assert engine.mode == TimerMode.FOCUS
    assert engine.seconds_remaining == 25 * 60
    assert engine.is_running is False
    assert events == []


def test_auto_start_settings_do_not_resume(settings_store, engine):
    settings_store.update_timer_settings(
        focus_duration=1, auto_start_breaks=True, auto_start_pomodoros=True
    )
    engine.toggle()
    run_down_to(engine, 0)

    assert engine.mode == TimerMode.BREAK
    assert engine.is_running is False


def test_break_always_uses_short_break(settings_store, engine):
    settings_store.update_timer_settings(short_break=7, long_break=30, sessions_before_long_break=1)
    engine.set_mode(TimerMode.BREAK)
    assert engine.seconds_remaining == 7 * 60


def test_settings_change_while_paused_resizes(settings_store, engine):
    settings_store.update_timer_settings(focus_duration=30)
    assert engine.seconds_remaining == 1800


def test_settings_change_for_other_mode_keeps_current_length(settings_store, engine):
    engine.toggle()
    engine.tick()
    engine.toggle()

    settings_store.update_timer_settings(short_break=10)

    # Paused focus is re-synced to the focus duration
    assert engine.seconds_remaining == 1500


def test_settings_change_while_running_keeps_countdown(settings_store, engine):
    engine.toggle()
    run_down_to(engine, 600)

    settings_store.update_timer_settings(focus_duration=30)

    assert engine.seconds_remaining == 600
    assert engine.total_seconds == 1800


def test_new_durations_apply_at_next_mode_entry(settings_store, engine):
    engine.toggle()
    run_down_to(engine, 600)
    settings_store.update_timer_settings(short_break=10)

    run_down_to(engine, 0)

    assert engine.mode == TimerMode.BREAK
    assert engine.seconds_remaining == 10 * 60


def test_set_mode_discards_progress_and_stops(engine):
    events = collect_sessions(engine)
    engine.toggle()
    run_down_to(engine, 100)

    engine.set_mode(TimerMode.BREAK)

    assert engine.mode == TimerMode.BREAK
    assert engine.is_running is False
    assert engine.seconds_remaining == 300
    assert events == []


def test_reset_restores_current_mode_duration(engine):
    engine.set_mode(TimerMode.BREAK)
    engine.toggle()
    for _ in range(42):
        engine.tick()

    engine.reset()

    assert engine.mode == TimerMode.BREAK
    assert engine.is_running is False
    assert engine.seconds_remaining == 300


def test_pause_keeps_remaining_time(engine):
    engine.start()
    for _ in range(5):
        engine.tick()
    engine.pause()
    engine.tick()

    assert engine.seconds_remaining == 1495
    assert engine.is_running is False


def test_progress_is_percentage_elapsed(engine):
    engine.toggle()
    for _ in range(150):
        engine.tick()

    assert engine.progress() == pytest.approx(10.0)
    assert engine.snapshot().progress_percentage == pytest.approx(10.0)


def test_toggle_schedules_and_cancels_tick(engine, clock):
    engine.toggle()
    assert len(clock.handles) == 1

    clock.advance(3)
    assert engine.seconds_remaining == 1497

    engine.toggle()
    assert clock.handles == []

    clock.advance(3)
    assert engine.seconds_remaining == 1497


def test_completion_cancels_scheduled_tick(settings_store, engine, clock):
    settings_store.update_timer_settings(focus_duration=1)
    engine.toggle()

    clock.advance(60)

    assert engine.mode == TimerMode.BREAK
    assert clock.handles == []


def test_ticked_signal_carries_snapshot(engine):
    states = []
    engine.ticked.connect(lambda state: states.append(state))
    engine.toggle()
    engine.tick()

    assert states[-1].seconds_remaining == 1499
    assert states[-1].is_running is True
    assert states[-1].format_remaining() == "24:59"


def test_mode_changed_signal_on_completion(settings_store, engine):
    changes = []
    engine.mode_changed.connect(lambda old, new: changes.append((old, new)))
    settings_store.update_timer_settings(focus_duration=1)
    engine.toggle()
    run_down_to(engine, 0)

    assert changes == [(TimerMode.FOCUS, TimerMode.BREAK)]
