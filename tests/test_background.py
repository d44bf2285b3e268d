"""Tests for the keep-alive background ticker and its status line."""

import pytest

from countdownhour.models import PomodoroPhase, TimerStatus
from countdownhour.platform.background import COUNTDOWN, POMODORO, BackgroundTicker, StatusLine
from countdownhour.sessions.pomodoro import PomodoroSession
from countdownhour.sessions.timer import CountdownTimerSession

MINUTE = 60_000


@pytest.fixture
def statuses():
    return []


@pytest.fixture
def ticker(engine, statuses):
    return BackgroundTicker(engine, on_status=statuses.append)


class TestCountdownMode:
    def test_start_publishes_initial_status(self, ticker, clock):
        ticker.start_countdown(clock() + 90 * MINUTE)
        assert ticker.status == StatusLine("Countdown", "01:30:00")
        assert ticker.countdown_running
        assert ticker.ticking

    def test_target_in_the_past_is_ignored(self, ticker, clock, statuses):
        ticker.start_countdown(clock() - 1)
        assert not ticker.countdown_running
        assert statuses == []

    def test_tick_refreshes_status_text(self, ticker, clock):
        ticker.start_countdown(clock() + 10 * MINUTE)
        clock.advance(4 * MINUTE + 30_000)
        ticker.tick()
        assert ticker.status.text == "05:30"
        assert ticker.countdown_remaining_ms == 5 * MINUTE + 30_000

    def test_completion_notifies_owner_once(self, ticker, clock):
        calls = []
        ticker.on_countdown_complete = lambda: calls.append("countdown")
        ticker.start_countdown(clock() + MINUTE)
        clock.advance(MINUTE)
        ticker.tick()
        ticker.tick()
        assert calls == ["countdown"]
        assert ticker.status == StatusLine("Countdown", "Finished!")
        assert not ticker.countdown_running


class TestPomodoroMode:
    @pytest.mark.parametrize(
        "phase, title",
        [
            ("work", "Focus"),
            ("SHORT_BREAK", "Short Break"),
            (PomodoroPhase.LONG_BREAK, "Long Break"),
            ("nonsense", "Focus"),
        ],
    )
    def test_phase_names_map_to_titles(self, ticker, phase, title):
        ticker.start_pomodoro(25 * MINUTE, phase)
        assert ticker.status == StatusLine(title, "25:00")

    def test_pause_and_resume(self, ticker, clock):
        ticker.start_pomodoro(10 * MINUTE, "work")
        clock.advance(3 * MINUTE)
        ticker.pause()
        assert ticker.status == StatusLine("Timer", "Paused")
        assert ticker.pomodoro_remaining_ms == 7 * MINUTE
        assert not ticker.ticking

        clock.advance(MINUTE)
        ticker.resume()
        assert ticker.pomodoro_running
        clock.advance(7 * MINUTE - 1000)
        ticker.tick()
        assert ticker.status.text == "00:01"

    def test_add_time_moves_the_deadline(self, ticker, clock):
        ticker.start_pomodoro(5 * MINUTE, "work")
        ticker.add_time(MINUTE)
        clock.advance(5 * MINUTE)
        ticker.tick()
        assert ticker.pomodoro_running
        assert ticker.status.text == "01:00"

    def test_add_time_when_idle_is_ignored(self, ticker, statuses):
        ticker.add_time(MINUTE)
        assert statuses == []

    def test_stop_clears_everything(self, ticker):
        ticker.start_pomodoro(5 * MINUTE, "work")
        ticker.stop()
        assert ticker.status == StatusLine("", "")
        assert ticker.pomodoro_phase == PomodoroPhase.IDLE
        assert not ticker.ticking


class TestSync:
    def test_sync_arms_when_not_ticking(self, ticker, clock):
        ticker.sync_pomodoro_state(4 * MINUTE, True, "short_break")
        assert ticker.ticking
        assert ticker.status == StatusLine("Short Break", "04:00")

    def test_sync_while_ticking_only_retargets(self, ticker, clock, statuses):
        ticker.start_pomodoro(10 * MINUTE, "work")
        clock.advance(MINUTE)
        ticker.sync_pomodoro_state(5 * MINUTE, True, "work")
        assert len(statuses) == 1
        ticker.tick()
        assert ticker.status.text == "05:00"

    def test_sync_with_nothing_running_is_ignored(self, ticker):
        ticker.sync_countdown_state(5 * MINUTE, False)
        ticker.sync_countdown_state(0, True)
        assert not ticker.ticking


class TestSessionWiring:
    def test_ticker_reaching_zero_completes_session_once(self, engine, clock, chime):
        ticker = BackgroundTicker(engine)
        session = PomodoroSession(engine, chime=chime, background=ticker)
        ticker.on_pomodoro_complete = session.sync_from_background

        session.start_work()
        deadline = session.deadline_ms
        clock.advance(25 * MINUTE + 2000)
        ticker.tick()
        session.tick()

        snap = session.snapshot
        assert snap.phase == PomodoroPhase.IDLE
        assert snap.completed_pomodoros == 1
        assert snap.session_completed_at == deadline
        assert chime.calls == [False]


class TestSharedTicker:
    @pytest.fixture
    def shared(self, engine, chime):
        ticker = BackgroundTicker(engine)
        timer = CountdownTimerSession(engine, chime=chime, background=ticker)
        pomodoro = PomodoroSession(engine, chime=chime, background=ticker)
        ticker.on_countdown_complete = timer.sync_from_background
        ticker.on_pomodoro_complete = pomodoro.sync_from_background
        timer.set_target(15, 0)              # 30 minutes from the fixture clock
        return ticker, timer, pomodoro

    def test_last_armed_session_owns_the_status_line(self, shared, clock):
        ticker, timer, pomodoro = shared
        timer.start()
        pomodoro.start_work()
        clock.advance(MINUTE)
        ticker.tick()
        assert ticker.owner == POMODORO
        assert ticker.status == StatusLine("Focus", "24:00")
        assert ticker.countdown_running
        assert ticker.countdown_remaining_ms == 29 * MINUTE

    def test_stopping_the_timer_keeps_pomodoro_alive(self, shared):
        ticker, timer, pomodoro = shared
        pomodoro.start_work()
        timer.start()
        timer.stop()
        assert pomodoro.snapshot.phase == PomodoroPhase.WORK
        assert ticker.is_ticking(POMODORO)
        assert not ticker.is_ticking(COUNTDOWN)
        assert ticker.pomodoro_running
        assert ticker.status == StatusLine("Focus", "25:00")

    def test_pomodoro_completion_goes_to_pomodoro(self, shared, clock, chime):
        ticker, timer, pomodoro = shared
        timer.start()
        pomodoro.start_work()
        clock.advance(25 * MINUTE + 1000)
        ticker.tick()

        assert pomodoro.snapshot.phase == PomodoroPhase.IDLE
        assert pomodoro.snapshot.completed_pomodoros == 1
        assert timer.snapshot.status == TimerStatus.RUNNING
        assert chime.calls == [False]
        # status line falls back to the still-running countdown
        assert ticker.owner == COUNTDOWN
        assert ticker.status.title == "Countdown"

    def test_pausing_one_session_leaves_the_other_ticking(self, shared, clock):
        ticker, timer, pomodoro = shared
        timer.start()
        pomodoro.start_work()
        pomodoro.pause()
        assert ticker.is_ticking(COUNTDOWN)
        assert not ticker.is_ticking(POMODORO)
        pomodoro.resume()
        assert ticker.is_ticking(POMODORO)
        assert ticker.owner == POMODORO
