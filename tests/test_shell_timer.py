"""Client-side pomodoro timer state machine."""

from __future__ import annotations

import pytest

from miniapps_shell.state.pomodoro_timer import PomodoroTimer, format_time, next_session_type


@pytest.fixture
def timer():
    return PomodoroTimer()


class TestTimerClock:
    def test_idle_timer_shows_full_duration(self, timer):
        assert timer.remaining_seconds(now=1000.0) == 25 * 60
        assert timer.progress(now=1000.0) == 0.0

    def test_running_counts_down(self, timer):
        timer.start(now=100.0)
        assert timer.state == "running"
        assert timer.remaining_seconds(now=160.0) == 25 * 60 - 60

    def test_pause_freezes_and_resume_continues(self, timer):
        timer.start(now=0.0)
        timer.pause(now=90.0)
        assert timer.state == "paused"
        assert timer.remaining_seconds(now=5000.0) == 25 * 60 - 90
        timer.resume(now=6000.0)
        assert timer.remaining_seconds(now=6010.0) == 25 * 60 - 100

    def test_start_ignored_while_running(self, timer):
        timer.start(now=0.0)
        timer.start(now=500.0)
        assert timer.started_at == 0.0

    def test_pause_and_resume_ignored_in_wrong_state(self, timer):
        timer.pause(now=10.0)
        assert timer.state == "idle"
        timer.resume(now=10.0)
        assert timer.state == "idle"

    def test_tick_fires_once_at_zero(self, timer):
        timer.start(now=0.0)
        assert timer.tick(now=25 * 60 - 1) is False
        assert timer.tick(now=25 * 60) is True
        assert timer.state == "finished"
        assert timer.tick(now=25 * 60 + 5) is False
        assert timer.remaining_seconds(now=99999.0) == 0
        assert timer.progress(now=99999.0) == 1.0

    def test_reset(self, timer):
        timer.start(now=0.0)
        timer.reset()
        assert (timer.state, timer.started_at, timer.elapsed_before_pause) == ("idle", None, 0.0)


class TestTimerCycle:
    def test_four_work_sessions_then_long_break(self, timer):
        sequence = []
        for _ in range(4):
            assert timer.session_type == "work"
            sequence.append(timer.advance())
            timer.advance()
        assert sequence == ["short_break", "short_break", "short_break", "long_break"]
        assert timer.completed_work == 4

    def test_skip_does_not_count_work(self, timer):
        assert timer.skip() == "short_break"
        assert timer.completed_work == 0
        assert timer.skip() == "work"

    def test_select(self, timer):
        timer.start(now=0.0)
        timer.select("long_break")
        assert timer.session_type == "long_break"
        assert timer.state == "idle"
        assert timer.duration_seconds == 15 * 60
        with pytest.raises(ValueError):
            timer.select("nap")

    def test_next_session_type_matches_cycle(self):
        assert next_session_type("work", 3) == "long_break"
        assert next_session_type("long_break", 4) == "work"


class TestTimerSerialization:
    def test_round_trip_through_session_state(self, timer):
        timer.start(now=12.5)
        restored = PomodoroTimer.from_dict(timer.to_dict())
        assert restored == timer

    def test_from_dict_sanitizes(self):
        restored = PomodoroTimer.from_dict({"session_type": "nap", "state": "exploded", "unknown": 1})
        assert restored.session_type == "work"
        assert restored.state == "idle"

    def test_from_empty(self):
        assert PomodoroTimer.from_dict(None) == PomodoroTimer()


@pytest.mark.parametrize("seconds, expected", [(1500, "25:00"), (61, "01:01"), (0, "00:00"), (-5, "00:00")])
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected
