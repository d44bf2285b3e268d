"""
Tests for snapshot value types, clock helpers and display formatting.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from countdownhour.clock import next_occurrence
from countdownhour.formatting import format_elapsed, format_end_time, format_remaining
from countdownhour.models import (
    PomodoroPhase,
    PomodoroSettings,
    PomodoroSnapshot,
    PomodoroTodo,
    TimerSnapshot,
)


def _ms(*args) -> int:
    return int(datetime(*args).timestamp() * 1000)


# ── Settings ─────────────────────────────────────────────────────────────────

class TestPomodoroSettings:
    def test_defaults(self):
        assert PomodoroSettings().to_dict() == {
            "work_duration_minutes": 25,
            "short_break_minutes": 5,
            "long_break_minutes": 15,
            "pomodoros_until_long_break": 4,
        }

    @pytest.mark.parametrize(
        "field, raw, expected",
        [
            ("work_duration_minutes", 0, 1),
            ("work_duration_minutes", 500, 120),
            ("short_break_minutes", 61, 60),
            ("long_break_minutes", -4, 1),
            ("pomodoros_until_long_break", 11, 10),
            ("pomodoros_until_long_break", "x", 4),
            ("work_duration_minutes", None, 25),
        ],
    )
    def test_values_are_clamped(self, field, raw, expected):
        assert getattr(PomodoroSettings(**{field: raw}), field) == expected

    def test_from_dict_ignores_unknown_keys(self):
        s = PomodoroSettings.from_dict({"short_break_minutes": 8, "theme": "dark"})
        assert s.short_break_minutes == 8
        assert s.work_duration_minutes == 25


# ── Phases ───────────────────────────────────────────────────────────────────

class TestPomodoroPhase:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("work", PomodoroPhase.WORK),
            ("LONG_BREAK", PomodoroPhase.LONG_BREAK),
            ("  short_break ", PomodoroPhase.SHORT_BREAK),
            (PomodoroPhase.PAUSED, PomodoroPhase.PAUSED),
            ("unknown", PomodoroPhase.WORK),
            (None, PomodoroPhase.WORK),
        ],
    )
    def test_parse(self, raw, expected):
        assert PomodoroPhase.parse(raw) is expected

    def test_parse_with_explicit_default(self):
        assert PomodoroPhase.parse("??", default=PomodoroPhase.IDLE) is PomodoroPhase.IDLE

    def test_running_and_break_flags(self):
        assert {p for p in PomodoroPhase if p.is_running} == {
            PomodoroPhase.WORK, PomodoroPhase.SHORT_BREAK, PomodoroPhase.LONG_BREAK,
        }
        assert {p for p in PomodoroPhase if p.is_break} == {
            PomodoroPhase.SHORT_BREAK, PomodoroPhase.LONG_BREAK,
        }

    def test_labels(self):
        assert [p.label for p in PomodoroPhase] == [
            "Ready", "Focus", "Short Break", "Long Break", "Paused",
        ]


# ── Snapshots ────────────────────────────────────────────────────────────────

class TestSnapshots:
    def test_timer_components(self):
        snap = TimerSnapshot(remaining_millis=2 * 3_600_000 + 5 * 60_000 + 9_500, total_millis=4 * 3_600_000)
        assert (snap.remaining_hours, snap.remaining_minutes, snap.remaining_seconds) == (2, 5, 9)
        assert 0.0 <= snap.progress <= 1.0

    def test_progress_is_zero_without_total(self):
        assert TimerSnapshot().progress == 0.0
        assert PomodoroSnapshot().progress == 0.0

    def test_elapsed_since_finish(self):
        assert TimerSnapshot().elapsed_since_finish_ms(1000) is None
        assert TimerSnapshot(finished_at=1000).elapsed_since_finish_ms(4000) == 3000

    def test_elapsed_since_completion(self):
        snap = PomodoroSnapshot(session_completed_at=10_000)
        assert snap.elapsed_since_completion_ms(75_000) == 65_000
        assert snap.elapsed_since_completion_ms(5_000) == 0

    def test_long_break_due_follows_settings(self):
        settings = PomodoroSettings(pomodoros_until_long_break=2)
        assert not PomodoroSnapshot(current_pomodoro_in_cycle=1, settings=settings).long_break_due
        assert PomodoroSnapshot(current_pomodoro_in_cycle=2, settings=settings).long_break_due

    def test_todo_from_dict_defaults(self):
        todo = PomodoroTodo.from_dict({"id": 7, "text": "x"})
        assert todo == PomodoroTodo(id="7", text="x", is_completed=False, completed_at=None)
        assert PomodoroTodo.from_dict(todo.to_dict()) == todo


# ── Clock helpers ────────────────────────────────────────────────────────────

class TestNextOccurrence:
    def test_later_today(self):
        now = _ms(2026, 3, 2, 9, 15)
        assert next_occurrence(17, 0, now) == _ms(2026, 3, 2, 17, 0)

    def test_earlier_time_is_tomorrow(self):
        now = _ms(2026, 3, 2, 9, 15)
        assert next_occurrence(9, 0, now) == _ms(2026, 3, 3, 9, 0)

    def test_same_minute_stays_today(self):
        now = _ms(2026, 3, 2, 9, 15)
        assert next_occurrence(9, 15, now) == now


# ── Formatting ───────────────────────────────────────────────────────────────

class TestFormatting:
    @pytest.mark.parametrize(
        "millis, text",
        [
            (0, "00:00"),
            (-500, "00:00"),
            (59_999, "00:59"),
            (25 * 60_000, "25:00"),
            (3_600_000, "01:00:00"),
            (23 * 3_600_000 + 59 * 60_000 + 59_000, "23:59:59"),
        ],
    )
    def test_format_remaining(self, millis, text):
        assert format_remaining(millis) == text

    @pytest.mark.parametrize(
        "millis, text",
        [(0, "+00:00"), (65_000, "+01:05"), (3_723_000, "+1:02:03")],
    )
    def test_format_elapsed(self, millis, text):
        assert format_elapsed(millis) == text

    def test_format_end_time(self):
        now = _ms(2026, 3, 2, 14, 30)
        assert format_end_time(now, 25 * 60_000) == "14:55"
        assert format_end_time(now, 10 * 3_600_000) == "00:30"
